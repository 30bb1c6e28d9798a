"""Back-office schemas."""

from pydantic import BaseModel, Field


class ProductStat(BaseModel):
    """Quantity ordered for one product."""

    product: str
    quantity: int


class AdminStatsResponse(BaseModel):
    """Order statistics for the selected date filter."""

    filter: str = Field(..., description="today, all or custom")
    total_orders: int
    new_orders: int
    received_orders: int
    total_customers: int
    product_stats: list[ProductStat]


class SequenceStatus(BaseModel):
    """Order numbers issued so far for the current business day."""

    day_key: str = Field(..., description="Prefix and business date, e.g. ST251103")
    issued: int = Field(..., description="Sequence values handed out today")
    last_order_number: str | None = None
