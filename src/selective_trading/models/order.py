# src/selective_trading/models/order.py
"""SQLAlchemy models for customer orders and their line items."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from selective_trading.db.session import Base
from selective_trading.db.time import ensure_utc, utcnow

ORDER_STATUS_NEW = "new"
ORDER_STATUS_RECEIVED = "received"
ORDER_STATUSES = (ORDER_STATUS_NEW, ORDER_STATUS_RECEIVED)

UNIT_TYPE_CARTON = "carton"
UNIT_TYPE_PIECE = "piece"


class Order(Base):
    """An order placed by a customer, identified by its daily order number."""

    __tablename__ = "customer_order"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_number: Mapped[str] = mapped_column(String(48), unique=True, nullable=False)
    customer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("customer.id"), nullable=False, index=True
    )
    # Snapshot of the customer at order time.
    customer_name: Mapped[str] = mapped_column(Text, nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(32), nullable=False)
    total_items: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ORDER_STATUS_NEW, index=True
    )
    message: Mapped[str | None] = mapped_column(String(500), nullable=True)
    edit_deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # List of {action, by, by_name, timestamp, changes?}; reassign to persist changes.
    history: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    items: Mapped[list[OrderItem]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    def is_editable(self, now: datetime | None = None) -> bool:
        """Return True while the order is new and inside its edit window."""
        if self.status != ORDER_STATUS_NEW or self.edit_deadline is None:
            return False
        return (now or utcnow()) < ensure_utc(self.edit_deadline)

    @property
    def can_edit(self) -> bool:
        """Editability evaluated against the current time."""
        return self.is_editable()

    def record(self, action: str, by: int, by_name: str, changes: str | None = None) -> None:
        """Append an entry to the order history."""
        entry: dict[str, Any] = {
            "action": action,
            "by": by,
            "by_name": by_name,
            "timestamp": utcnow().isoformat(),
        }
        if changes:
            entry["changes"] = changes
        self.history = [*(self.history or []), entry]


class OrderItem(Base):
    """A product line within an order."""

    __tablename__ = "order_item"
    __table_args__ = (CheckConstraint("quantity >= 1", name="ck_order_item_quantity_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("customer_order.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("product.id"), nullable=False, index=True
    )
    product_name_en: Mapped[str] = mapped_column(Text, nullable=False)
    product_name_ar: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_type: Mapped[str] = mapped_column(String(16), nullable=False, default=UNIT_TYPE_PIECE)

    order: Mapped[Order] = relationship("Order", back_populates="items")
