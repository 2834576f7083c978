"""Admin domain Pydantic schemas."""

from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime

from otpvault.common.passwords import check_password_length
from otpvault.domains.auth.session import Role


class UserResponse(BaseModel):
    """Schema for user response (never includes the password hash)."""

    id: str
    email: str
    role: Role
    created_at: datetime

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    """Schema for admin-created users."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)
    role: Role = Role.USER

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        return check_password_length(v)


class UserUpdate(BaseModel):
    """Schema for admin user updates; omitted fields are unchanged."""

    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, max_length=72)
    role: Optional[Role] = None

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: Optional[str]) -> Optional[str]:
        return check_password_length(v) if v is not None else v


class SettingsUpdate(BaseModel):
    registration_enabled: Optional[bool] = None
