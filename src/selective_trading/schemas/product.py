"""Product catalogue schemas."""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class ProductCreate(BaseModel):
    """Schema for adding a product to the catalogue."""

    slug: str = Field(..., min_length=1, max_length=120)
    name_en: str = Field(..., min_length=1, description="English display name")
    name_ar: str = Field(..., min_length=1, description="Arabic display name")
    image: str = Field("", description="Image URL or path")
    is_available: bool = True
    sort_order: int = 0

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        """Slugs are lower-case words joined by dashes."""
        v = v.strip().lower()
        if not _SLUG_PATTERN.match(v):
            raise ValueError("Slug must contain lower-case letters, digits and dashes")
        return v


class ProductUpdate(BaseModel):
    """Partial update of a product."""

    name_en: str | None = Field(None, min_length=1)
    name_ar: str | None = Field(None, min_length=1)
    image: str | None = None
    is_available: bool | None = None
    sort_order: int | None = None


class ProductResponse(BaseModel):
    """Catalogue entry returned to clients."""

    id: int
    slug: str
    name_en: str
    name_ar: str
    image: str
    is_available: bool
    sort_order: int

    model_config = ConfigDict(from_attributes=True)
