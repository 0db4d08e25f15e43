"""Pure input validators.

Each validator takes a plain value and returns an error message, or ``None``
when the value is acceptable. ``validate_registration`` composes them into a
list of field-tagged errors so the caller can fix everything in one round trip.
"""
import re
from datetime import datetime
from typing import List, Optional

from email_validator import EmailNotValidError, validate_email as _check_email

from assistant_backend.core.exceptions import FieldError

MIN_PASSWORD_LENGTH = 8

_FULL_NAME_RE = re.compile(r"^[A-Za-z\s]+$")
_PHONE_RE = re.compile(r"^\d{10}$")
_DOB_RE = re.compile(r"^\d{2}/\d{2}/\d{4}$")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def validate_email(email: Optional[str]) -> Optional[str]:
    if not email or not email.strip():
        return "Email is required"
    try:
        _check_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return "Invalid email address"
    return None


def validate_password(password: Optional[str]) -> Optional[str]:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
    return None


def validate_full_name(full_name: Optional[str]) -> Optional[str]:
    if full_name is None:
        return None
    if not _FULL_NAME_RE.match(full_name):
        return "Full name can only contain letters and spaces"
    return None


def validate_phone(phone: Optional[str]) -> Optional[str]:
    if phone is None:
        return None
    if not _PHONE_RE.match(phone):
        return "Phone number must be exactly 10 digits"
    return None


def validate_date_of_birth(dob: Optional[str]) -> Optional[str]:
    if dob is None:
        return None
    message = "Date of birth must be in the format MM/DD/YYYY"
    if not _DOB_RE.match(dob):
        return message
    try:
        datetime.strptime(dob, "%m/%d/%Y")
    except ValueError:
        return message
    return None


def validate_registration(
    email: Optional[str],
    password: Optional[str],
    full_name: Optional[str] = None,
    phone: Optional[str] = None,
    date_of_birth: Optional[str] = None,
) -> List[FieldError]:
    checks = (
        ("email", validate_email(email)),
        ("password", validate_password(password)),
        ("fullName", validate_full_name(full_name)),
        ("phone", validate_phone(phone)),
        ("dateOfBirth", validate_date_of_birth(date_of_birth)),
    )
    return [FieldError(field, message) for field, message in checks if message]
