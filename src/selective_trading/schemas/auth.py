"""Authentication-related Pydantic schemas."""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from selective_trading.utils.phone import normalize_phone

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(value: str) -> str:
    """Lower-case and sanity-check an email address."""
    value = value.strip().lower()
    if not _EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email address")
    return value


class PhoneRequest(BaseModel):
    """Base schema for requests identified by a phone number."""

    phone: str = Field(..., min_length=1, description="Phone number; non-digits are ignored")

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        """Normalize the phone number to digits only."""
        return normalize_phone(v)


class SignupRequest(PhoneRequest):
    """Schema for starting a signup; every field is required."""

    company_name: str = Field(..., min_length=1, max_length=200)
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320)
    address: str = Field(..., min_length=1, max_length=500)

    @field_validator("company_name", "name", "address")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Trim surrounding whitespace and reject blank values."""
        v = v.strip()
        if not v:
            raise ValueError("Field must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Lower-case and sanity-check the email address."""
        return normalize_email(v)


class VerifyRequest(PhoneRequest):
    """Submission of a verification code."""

    code: str = Field(..., min_length=4, max_length=4, pattern=r"^\d{4}$")


class MessageResponse(BaseModel):
    """Generic acknowledgement."""

    success: bool = True
    message: str


class UserResponse(BaseModel):
    """Public view of an account."""

    id: int
    phone: str
    name: str
    company_name: str
    email: str | None
    address: str
    is_admin: bool

    model_config = ConfigDict(from_attributes=True)


class SessionResponse(BaseModel):
    """Returned once a session cookie has been issued."""

    success: bool = True
    user: UserResponse


class LoginCheckResponse(BaseModel):
    """Outcome of a login attempt by phone number."""

    success: bool = True
    needs_verification: bool = Field(
        ..., description="True when a code was emailed and must be verified"
    )
    message: str | None = None
    user: UserResponse | None = None
