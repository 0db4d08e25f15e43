"""Account lifecycle: registration, email verification, login/logout, password reset.

States per user: Unregistered -> PendingVerification -> Verified. Password reset is
an independent overlay (NoResetChallenge -> PendingReset -> NoResetChallenge) that
only a verified user can enter. Each challenge kind has at most one live code; a
new request overwrites the previous one.
"""
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from assistant_backend.core.config import Settings
from assistant_backend.core.exceptions import (
    AlreadyVerified,
    ChallengeExpired,
    EmailInUse,
    InvalidChallenge,
    InvalidCredentials,
    NotVerified,
    PasswordMismatch,
    PasswordUnchanged,
    RateLimited,
    TokenInvalid,
    UnknownEmail,
    UserNotFound,
    ValidationFailed,
    WeakPassword,
)
from assistant_backend.core.security import (
    PASSWORD_RESET_TOKEN,
    TokenIssuer,
    hash_password,
    verify_password,
)
from assistant_backend.core.validators import normalize_email, validate_password, validate_registration
from assistant_backend.models.user import User
from assistant_backend.models.user_session import UserSession
from assistant_backend.services.notifications import NotificationSender
from assistant_backend.utils.clock import utcnow
from assistant_backend.utils.logger import get_logger
from assistant_backend.utils.otp import codes_match, generate_code

logger = get_logger("assistant_backend.services.auth")


class AuthService:
    def __init__(
        self,
        db: AsyncSession,
        token_issuer: TokenIssuer,
        notifier: NotificationSender,
        settings: Settings,
        now: Callable[[], datetime] = utcnow,
        code_generator: Callable[[], str] = generate_code,
    ):
        self.db = db
        self.token_issuer = token_issuer
        self.notifier = notifier
        self.now = now
        self.generate_code = code_generator
        self.code_ttl = timedelta(minutes=settings.OTP_EXPIRE_MINUTES)
        self.resend_interval = timedelta(seconds=settings.OTP_RESEND_INTERVAL_SECONDS)
        self.session_ttl = timedelta(minutes=settings.SESSION_TOKEN_EXPIRE_MINUTES)
        self.reset_ttl = timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)

    async def _find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).filter(User.email == normalize_email(email)))
        return result.scalar_one_or_none()

    def _ensure_resend_allowed(self, sent_at: Optional[datetime], now: datetime) -> None:
        if sent_at is not None and now - sent_at < self.resend_interval:
            raise RateLimited()

    # ------ Registration -----
    async def register(
        self,
        email: str,
        password: str,
        full_name: Optional[str] = None,
        phone: Optional[str] = None,
        date_of_birth: Optional[str] = None,
    ) -> dict:
        errors = validate_registration(email, password, full_name, phone, date_of_birth)
        if errors:
            logger.info("Registration rejected - invalid input", extra={
                "fields": [e.field for e in errors],
            })
            raise ValidationFailed(errors)

        email = normalize_email(email)
        now = self.now()
        user = await self._find_by_email(email)

        if user is not None:
            if user.is_verified:
                logger.warning("Registration failed - email in use", extra={"email": email})
                raise EmailInUse()
            # Resuming a pending registration requires the original password
            if not verify_password(password, user.password_hash):
                logger.warning("Registration resume failed - password mismatch", extra={"email": email})
                raise InvalidCredentials()
            self._ensure_resend_allowed(user.two_factor_token_sent_at, now)
            message = "Verification code resent"
        else:
            user = User(
                email=email,
                password_hash=hash_password(password),
                full_name=full_name,
                phone=phone,
                date_of_birth=date_of_birth,
                is_verified=False,
            )
            self.db.add(user)
            message = "User registered successfully"

        code = self.generate_code()
        user.two_factor_token = code
        user.two_factor_token_expires_at = now + self.code_ttl
        user.two_factor_token_sent_at = now
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            await self.db.rollback()
            raise EmailInUse()
        await self.db.refresh(user)
        logger.info("Verification code issued", extra={"user_id": user.id, "email": email})

        try:
            await self.notifier.send_verification_code(email, code)
        except Exception as e:
            logger.error("Failed to send verification email", extra={"user_id": user.id, "error": str(e)})

        return {"message": message}

    async def verify_registration(self, email: str, code: str) -> dict:
        user = await self._find_by_email(email)
        if user is None:
            raise UnknownEmail()
        if user.is_verified:
            raise AlreadyVerified()
        self._check_challenge(user.two_factor_token, user.two_factor_token_expires_at, code)

        user.is_verified = True
        user.two_factor_token = None
        user.two_factor_token_expires_at = None
        user.two_factor_token_sent_at = None
        await self.db.commit()
        logger.info("User verified", extra={"user_id": user.id})
        return {"message": "User verified successfully"}

    def _check_challenge(
        self,
        expected: Optional[str],
        expires_at: Optional[datetime],
        supplied: str,
    ) -> None:
        if not expected or expires_at is None:
            raise InvalidChallenge()
        # Expiry wins over a correct code
        if self.now() > expires_at:
            raise ChallengeExpired()
        if not codes_match(expected, supplied):
            raise InvalidChallenge()

    # ------ Login / Logout -----
    async def login(self, email: str, password: str) -> dict:
        user = await self._find_by_email(email)
        if user is None or not verify_password(password or "", user.password_hash):
            logger.warning("Login failed - invalid credentials", extra={"email": normalize_email(email)})
            raise InvalidCredentials()
        if not user.is_verified:
            logger.info("Login refused - not verified", extra={"user_id": user.id})
            raise NotVerified()

        token = self.token_issuer.issue(str(user.id), self.session_ttl)
        self.db.add(UserSession(user_id=user.id, login_time=self.now()))
        await self.db.commit()
        logger.info("Login successful", extra={"user_id": user.id})
        return {"message": "Logged in successfully", "token": token}

    async def logout(self, user_id: int) -> dict:
        result = await self.db.execute(
            select(UserSession)
            .filter(UserSession.user_id == user_id, UserSession.logout_time.is_(None))
            .order_by(UserSession.login_time.desc(), UserSession.id.desc())
            .limit(1)
        )
        session = result.scalar_one_or_none()
        if session is None:
            logger.info("Logout with no open session", extra={"user_id": user_id})
        else:
            session.logout_time = self.now()
            await self.db.commit()
            logger.info("Logout recorded", extra={"user_id": user_id, "session_id": session.id})
        return {"message": "Logged out successfully"}

    async def get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise UserNotFound()
        return user

    # ------ Password reset -----
    async def request_password_reset(self, email: str) -> dict:
        user = await self._find_by_email(email)
        if user is None:
            logger.warning("Password reset requested for unknown email")
            raise UnknownEmail()
        if not user.is_verified:
            raise NotVerified()

        now = self.now()
        self._ensure_resend_allowed(user.reset_token_sent_at, now)

        code = self.generate_code()
        user.reset_token = code
        user.reset_token_expires_at = now + self.code_ttl
        user.reset_token_sent_at = now
        await self.db.commit()
        logger.info("Password reset code issued", extra={"user_id": user.id})

        try:
            await self.notifier.send_password_reset_code(user.email, code)
        except Exception as e:
            logger.error("Failed to send password reset email", extra={"user_id": user.id, "error": str(e)})

        return {"message": "Password reset code sent to your email"}

    async def verify_reset_challenge(self, email: str, code: str) -> dict:
        user = await self._find_by_email(email)
        if user is None:
            raise UnknownEmail()
        self._check_challenge(user.reset_token, user.reset_token_expires_at, code)

        reset_token = self.token_issuer.issue(str(user.id), self.reset_ttl, purpose=PASSWORD_RESET_TOKEN)
        logger.info("Password reset code verified", extra={"user_id": user.id})
        return {"message": "OTP verified successfully", "resetToken": reset_token}

    async def complete_password_reset(
        self,
        reset_token: str,
        new_password: str,
        confirm_password: str,
    ) -> dict:
        if new_password != confirm_password:
            raise PasswordMismatch()
        if validate_password(new_password):
            raise WeakPassword()

        subject = self.token_issuer.verify(reset_token, purpose=PASSWORD_RESET_TOKEN)
        try:
            user = await self.db.get(User, int(subject))
        except ValueError:
            raise TokenInvalid()
        if user is None:
            logger.warning("Password reset for a user that no longer exists", extra={"user_id": subject})
            raise TokenInvalid()

        if verify_password(new_password, user.password_hash):
            raise PasswordUnchanged()

        user.password_hash = hash_password(new_password)
        user.reset_token = None
        user.reset_token_expires_at = None
        user.reset_token_sent_at = None
        await self.db.commit()
        logger.info("Password reset successful", extra={"user_id": user.id})
        return {"message": "Password reset successfully"}
