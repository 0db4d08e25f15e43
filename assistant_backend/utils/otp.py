import hmac
import secrets
from typing import Optional

OTP_MIN = 100000
OTP_MAX = 999999


def generate_code() -> str:
    """Uniformly random 6-digit code in [100000, 999999]."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def codes_match(expected: Optional[str], supplied: Optional[str]) -> bool:
    if not expected or supplied is None:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), str(supplied).strip().encode("utf-8"))
