"""Vault domain Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class AccountCreate(BaseModel):
    service_name: str = Field(..., min_length=1, max_length=200)
    username: str = Field("", max_length=255)
    password: str = ""
    otp_secret: str = ""


class AccountUpdate(BaseModel):
    """``password`` / ``otp_secret`` are only changed when present in the body."""

    service_name: str = Field(..., min_length=1, max_length=200)
    username: str = Field("", max_length=255)
    password: Optional[str] = None
    otp_secret: Optional[str] = None


class AccountResponse(BaseModel):
    """Decrypted view of a vault entry."""

    id: str
    service_name: str
    username: str
    password: str
    otp_secret: str
    created_at: datetime
    updated_at: datetime


class OtpResponse(BaseModel):
    current: str
    next: str
    seconds_remaining: int
    period: int
