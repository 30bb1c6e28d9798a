"""Order-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class OrderItemRequest(BaseModel):
    """A requested product line."""

    product_id: int = Field(..., ge=1)
    quantity: int = Field(..., ge=1, description="Number of units (cartons or pieces)")
    unit_type: Literal["carton", "piece"] = "piece"


class OrderCreate(BaseModel):
    """Schema for placing or editing an order."""

    items: list[OrderItemRequest] = Field(..., min_length=1)
    message: str | None = Field(None, max_length=500)


class OrderUpdate(BaseModel):
    """Schema for editing an order; omitted fields are left unchanged."""

    items: list[OrderItemRequest] | None = Field(None, min_length=1)
    message: str | None = Field(None, max_length=500)
    status: Literal["new", "received"] | None = Field(
        None, description="Admins only"
    )


class OrderItemResponse(BaseModel):
    """A product line as stored on the order."""

    product_id: int
    product_name_en: str
    product_name_ar: str
    quantity: int
    unit_type: str

    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    """An order with its items and history."""

    id: int
    order_number: str = Field(..., description="Daily order number, e.g. ST251103-0001")
    customer_id: int
    customer_name: str
    customer_phone: str
    items: list[OrderItemResponse]
    total_items: int
    status: str
    message: str | None
    can_edit: bool
    edit_deadline: datetime | None
    history: list[dict[str, Any]]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderListResponse(BaseModel):
    """Orders visible to the caller."""

    orders: list[OrderResponse]


class OrderPage(BaseModel):
    """One page of back-office order search results."""

    orders: list[OrderResponse]
    total: int
    page: int
    limit: int
    pages: int
