from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import bcrypt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError, ExpiredSignatureError

from assistant_backend.core.exceptions import (
    AuthorizationError,
    TokenExpired,
    TokenInvalid,
)
from assistant_backend.utils.logger import get_logger

logger = get_logger("assistant_backend.core.security")

ACCESS_TOKEN = "access"
PASSWORD_RESET_TOKEN = "password_reset"

# Reads Authorization: Bearer <token>; missing header is reported by get_current_user_id
bearer_scheme = HTTPBearer(auto_error=False)


# ------ Password Hashing -----
def hash_password(password: str) -> str:
    """Hash password using bcrypt. Safely handles 72-byte limit.

    Returns hashed password as string.
    """
    password_bytes = password.encode('utf-8')[:72]

    if not password_bytes:
        raise ValueError("Password cannot be empty")

    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash."""
    password_bytes = plain_password.encode('utf-8')[:72]

    if not password_bytes or not hashed_password:
        return False

    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))
    except ValueError:
        # Malformed stored hash
        logger.warning("Stored password hash could not be parsed")
        return False


# ------ JWT Tokens -----
class TokenIssuer:
    """Issues and verifies signed, self-expiring tokens.

    Each token carries a ``type`` claim so a password-reset token can never be
    used as a session token (and vice versa). There is no revocation: a token
    is valid until its embedded expiry.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._now = now

    def issue(self, subject: str, ttl: timedelta, purpose: str = ACCESS_TOKEN) -> str:
        issued_at = self._now()
        claims = {
            "sub": str(subject),
            "type": purpose,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + ttl).timestamp()),
        }
        token = jwt.encode(claims, self._secret_key, algorithm=self._algorithm)
        logger.debug("Token issued", extra={"user_sub": claims["sub"], "token_type": purpose})
        return token

    def verify(self, token: str, purpose: str = ACCESS_TOKEN) -> str:
        """Return the token subject, or raise TokenExpired / TokenInvalid."""
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except ExpiredSignatureError:
            logger.info("Token expired", extra={"token_type": purpose})
            raise TokenExpired()
        except JWTError as e:
            logger.warning("Token decode failed", extra={"error": str(e), "token_type": purpose})
            raise TokenInvalid()

        subject: Optional[str] = payload.get("sub")
        if not subject:
            logger.warning("Token has no subject", extra={"token_type": purpose})
            raise TokenInvalid()
        if payload.get("type") != purpose:
            logger.warning("Token used for the wrong purpose", extra={
                "expected": purpose,
                "actual": payload.get("type"),
            })
            raise TokenInvalid()
        return subject


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


# ------ Current user -----
def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> int:
    """
    Dependency used in protected routes.
    - Reads the bearer token from the Authorization header.
    - Verifies it as a session token.
    - Raises 401 with a distinct message for missing, expired and invalid tokens.
    """
    if credentials is None or not credentials.credentials:
        logger.info("Token missing from header")
        raise AuthorizationError("Authorization token is required")

    try:
        subject = issuer.verify(credentials.credentials)
    except TokenExpired:
        raise AuthorizationError("Token expired")
    except TokenInvalid:
        raise AuthorizationError("Invalid token")

    try:
        return int(subject)
    except ValueError:
        logger.warning("Token subject is not a user id", extra={"user_sub": subject})
        raise AuthorizationError("Invalid token")
