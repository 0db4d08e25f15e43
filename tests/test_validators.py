from assistant_backend.core.validators import (
    normalize_email,
    validate_date_of_birth,
    validate_email,
    validate_full_name,
    validate_password,
    validate_phone,
    validate_registration,
)


def test_email_shape():
    assert validate_email("a@x.com") is None
    assert validate_email("not-an-email") == "Invalid email address"
    assert validate_email("") == "Email is required"
    assert validate_email(None) == "Email is required"


def test_normalize_email():
    assert normalize_email("  A@X.com ") == "a@x.com"


def test_password_length():
    assert validate_password("password1") is None
    assert validate_password("12345678") is None
    assert validate_password("short") is not None
    assert validate_password(None) is not None


def test_full_name_letters_and_spaces_only():
    assert validate_full_name(None) is None
    assert validate_full_name("Ada Lovelace") is None
    assert validate_full_name("R2 D2") == "Full name can only contain letters and spaces"


def test_phone_exactly_ten_digits():
    assert validate_phone(None) is None
    assert validate_phone("0123456789") is None
    assert validate_phone("123456789") is not None
    assert validate_phone("012345678a") is not None
    assert validate_phone("01234567890") is not None


def test_date_of_birth_format():
    assert validate_date_of_birth(None) is None
    assert validate_date_of_birth("02/28/1990") is None
    assert validate_date_of_birth("2/28/1990") is not None
    assert validate_date_of_birth("1990-02-28") is not None
    assert validate_date_of_birth("02/30/1990") is not None
    assert validate_date_of_birth("13/01/1990") is not None


def test_registration_collects_every_field_error():
    errors = validate_registration("bad", "short", "J0hn", "12", "1990/01/01")
    assert [e.field for e in errors] == ["email", "password", "fullName", "phone", "dateOfBirth"]


def test_registration_valid_input_has_no_errors():
    assert validate_registration("a@x.com", "password1", "Ada", "0123456789", "12/10/1815") == []
