import json

import httpx
import pytest

from assistant_backend.core.exceptions import NotificationError
from assistant_backend.services.notifications import (
    RESET_SUBJECT,
    SENDGRID_SEND_URL,
    VERIFICATION_SUBJECT,
    LoggingNotificationSender,
    SendGridNotificationSender,
)


def _sender(handler) -> SendGridNotificationSender:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SendGridNotificationSender(
        api_key="SG.test",
        from_email="no-reply@x.com",
        from_name="Writing Assistant",
        client=client,
    )


async def test_sendgrid_payload():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(202, headers={"X-Message-Id": "abc"})

    sender = _sender(handler)
    await sender.send_verification_code("a@x.com", "123456")
    await sender.send_password_reset_code("a@x.com", "654321")
    await sender.aclose()

    assert len(requests) == 2
    first = requests[0]
    assert str(first.url) == SENDGRID_SEND_URL
    assert first.headers["Authorization"] == "Bearer SG.test"
    body = json.loads(first.content)
    assert body["from"] == {"email": "no-reply@x.com", "name": "Writing Assistant"}
    assert body["personalizations"][0]["to"] == [{"email": "a@x.com"}]
    assert body["personalizations"][0]["subject"] == VERIFICATION_SUBJECT
    assert "123456" in body["content"][0]["value"]

    second = json.loads(requests[1].content)
    assert second["personalizations"][0]["subject"] == RESET_SUBJECT
    assert "654321" in second["content"][0]["value"]


async def test_sendgrid_error_status_raises():
    sender = _sender(lambda request: httpx.Response(401, text="unauthorized"))

    with pytest.raises(NotificationError):
        await sender.send_verification_code("a@x.com", "123456")
    await sender.aclose()


async def test_sendgrid_transport_error_raises():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    sender = _sender(handler)
    with pytest.raises(NotificationError):
        await sender.send_password_reset_code("a@x.com", "123456")
    await sender.aclose()


async def test_logging_sender_never_raises():
    sender = LoggingNotificationSender()
    await sender.send_verification_code("a@x.com", "123456")
    await sender.send_password_reset_code("a@x.com", "123456")
    await sender.aclose()
