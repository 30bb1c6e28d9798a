"""Customer profile and back-office customer schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .auth import normalize_email


class ProfileUpdate(BaseModel):
    """Changes a customer may make to their own account; phone is fixed."""

    name: str | None = Field(None, max_length=200)
    company_name: str | None = Field(None, max_length=200)
    email: str | None = Field(None, min_length=3, max_length=320)
    address: str | None = Field(None, max_length=500)

    @field_validator("name", "company_name", "address")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        """Trim surrounding whitespace."""
        return v.strip() if v is not None else v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        """Lower-case and sanity-check the email address."""
        return normalize_email(v) if v is not None else v


class CustomerStatusUpdate(BaseModel):
    """Activate or deactivate a customer account."""

    is_active: bool


class CustomerResponse(BaseModel):
    """Back-office view of a customer account."""

    id: int
    phone: str
    name: str
    company_name: str
    email: str | None
    address: str
    is_active: bool
    last_login: datetime | None
    created_at: datetime
    order_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class CustomerPage(BaseModel):
    """One page of back-office customer search results."""

    customers: list[CustomerResponse]
    total: int
    page: int
    limit: int
    pages: int
