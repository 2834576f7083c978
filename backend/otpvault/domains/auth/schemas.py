"""Auth domain Pydantic schemas."""

from pydantic import BaseModel, EmailStr, Field, field_validator

from otpvault.common.passwords import check_password_length


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)
    confirm_password: str = Field(..., min_length=1, max_length=72)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        return check_password_length(v)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=72)
    new_password: str = Field(..., min_length=1, max_length=72)
    confirm_password: str = Field(..., min_length=1, max_length=72)

    @field_validator("new_password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        return check_password_length(v)


class DeleteAccountRequest(BaseModel):
    password: str = Field(..., min_length=1, max_length=72)
