"""Outbound email for one-time codes.

Senders raise NotificationError on failure; callers decide whether that is fatal.
"""
from typing import Optional, Protocol

import httpx

from assistant_backend.core.exceptions import NotificationError
from assistant_backend.utils.logger import get_logger

logger = get_logger("assistant_backend.services.notifications")

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"

VERIFICATION_SUBJECT = "Verify your email address"
RESET_SUBJECT = "Your password reset code"


def _verification_body(code: str, ttl_minutes: int) -> str:
    return (
        f"Your verification code is {code}.\n\n"
        f"It expires in {ttl_minutes} minutes. If you did not create an account, ignore this email."
    )


def _reset_body(code: str, ttl_minutes: int) -> str:
    return (
        f"Your password reset code is {code}.\n\n"
        f"It expires in {ttl_minutes} minutes. If you did not request a reset, ignore this email."
    )


class NotificationSender(Protocol):
    async def send_verification_code(self, email: str, code: str) -> None: ...

    async def send_password_reset_code(self, email: str, code: str) -> None: ...

    async def aclose(self) -> None: ...


class SendGridNotificationSender:
    """Delivers codes through the SendGrid v3 mail API."""

    def __init__(
        self,
        api_key: str,
        from_email: str,
        from_name: Optional[str] = None,
        code_ttl_minutes: int = 15,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self._api_key = api_key
        self._from_email = from_email
        self._from_name = from_name
        self._code_ttl_minutes = code_ttl_minutes
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def send_verification_code(self, email: str, code: str) -> None:
        await self._send(email, VERIFICATION_SUBJECT, _verification_body(code, self._code_ttl_minutes))

    async def send_password_reset_code(self, email: str, code: str) -> None:
        await self._send(email, RESET_SUBJECT, _reset_body(code, self._code_ttl_minutes))

    async def _send(self, to_email: str, subject: str, content: str) -> None:
        sender = {"email": self._from_email}
        if self._from_name:
            sender["name"] = self._from_name
        message = {
            "from": sender,
            "personalizations": [{"to": [{"email": to_email}], "subject": subject}],
            "content": [{"type": "text/plain", "value": content}],
        }
        try:
            response = await self._client.post(
                SENDGRID_SEND_URL,
                headers={"Authorization": f"Bearer {self._api_key}"},
                json=message,
            )
        except httpx.HTTPError as e:
            raise NotificationError(f"Email request failed: {e}") from e

        if response.status_code >= 300:
            raise NotificationError(
                f"Email provider returned {response.status_code}: {response.text[:200]}"
            )
        logger.info("Email sent", extra={
            "subject": subject,
            "message_id": response.headers.get("X-Message-Id", "unknown"),
        })

    async def aclose(self) -> None:
        await self._client.aclose()


class LoggingNotificationSender:
    """Development sender: nothing leaves the process, the code goes to the DEBUG log."""

    async def send_verification_code(self, email: str, code: str) -> None:
        logger.warning("Email delivery disabled - verification code not sent", extra={"to": email})
        logger.debug(f"Verification code for {email}: {code}")

    async def send_password_reset_code(self, email: str, code: str) -> None:
        logger.warning("Email delivery disabled - reset code not sent", extra={"to": email})
        logger.debug(f"Password reset code for {email}: {code}")

    async def aclose(self) -> None:
        return None
