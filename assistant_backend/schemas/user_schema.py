from pydantic import BaseModel, Field
from typing import Optional


# Request bodies keep field values as plain strings; the auth service validates
# them and reports every problem as a field-tagged error.
class RegisterRequest(BaseModel):
    email: str
    password: str
    full_name: Optional[str] = Field(default=None, alias="fullName")
    phone: Optional[str] = None
    date_of_birth: Optional[str] = Field(default=None, alias="dateOfBirth")

    class Config:
        populate_by_name = True


class VerifyRequest(BaseModel):
    email: str
    two_fa_token: str = Field(alias="twoFAToken")

    class Config:
        populate_by_name = True
        coerce_numbers_to_str = True


class LoginRequest(BaseModel):
    email: str
    password: str


class PasswordResetRequest(BaseModel):
    email: str


class VerifyResetOtpRequest(BaseModel):
    email: str
    otp: str

    class Config:
        coerce_numbers_to_str = True


class ResetPasswordRequest(BaseModel):
    reset_token: str = Field(alias="resetToken")
    new_password: str = Field(alias="newPassword")
    confirm_new_password: str = Field(alias="confirmNewPassword")

    class Config:
        populate_by_name = True


class MessageResponse(BaseModel):
    message: str


class TokenResponse(BaseModel):
    message: str
    token: str


class ResetTokenResponse(BaseModel):
    message: str
    reset_token: str = Field(alias="resetToken")

    class Config:
        populate_by_name = True


class UserResponse(BaseModel):
    """Public view of a user; hashes and challenge codes are never included."""
    id: int
    email: str
    full_name: Optional[str] = Field(default=None, alias="fullName")
    phone: Optional[str] = None
    date_of_birth: Optional[str] = Field(default=None, alias="dateOfBirth")
    is_verified: bool = Field(alias="isVerified")

    class Config:
        populate_by_name = True
        from_attributes = True
