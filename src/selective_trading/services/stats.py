"""Back-office aggregation over orders."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Final

from sqlalchemy import func
from sqlalchemy.orm import Session

from selective_trading.db.guard import storage_guard
from selective_trading.models import Order, OrderItem, User
from selective_trading.models.order import ORDER_STATUS_NEW, ORDER_STATUS_RECEIVED
from selective_trading.utils.dates import business_day_bounds, business_today

STATS_FILTERS: Final = ("today", "all", "custom")


def admin_stats(
    db: Session,
    filter_name: str = "today",
    custom_day: date | None = None,
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Summarize orders for the selected day (or all time).

    Args:
        db: Database session.
        filter_name: ``today``, ``all`` or ``custom``.
        custom_day: Required when ``filter_name`` is ``custom``.
        now: Reference time for ``today``.

    Raises:
        ValueError: For an unknown filter or ``custom`` without a day.
    """
    if filter_name not in STATS_FILTERS:
        raise ValueError(f"Unknown filter {filter_name!r}")
    if filter_name == "custom" and custom_day is None:
        raise ValueError("A date is required for the custom filter")

    conditions = []
    if filter_name != "all":
        day = business_today(now) if filter_name == "today" else custom_day
        start, end = business_day_bounds(day)  # type: ignore[arg-type]
        conditions = [Order.created_at >= start, Order.created_at < end]

    with storage_guard(db, "compute order statistics"):
        status_counts = dict(
            db.query(Order.status, func.count(Order.id))
            .filter(*conditions)
            .group_by(Order.status)
            .all()
        )
        total_customers = (
            db.query(func.count(User.id)).filter(User.is_admin.is_(False)).scalar() or 0
        )
        quantities = (
            db.query(OrderItem.product_name_en, func.sum(OrderItem.quantity))
            .join(Order, OrderItem.order_id == Order.id)
            .filter(*conditions)
            .group_by(OrderItem.product_name_en)
            .order_by(func.sum(OrderItem.quantity).desc(), OrderItem.product_name_en)
            .all()
        )

    return {
        "filter": filter_name,
        "total_orders": sum(status_counts.values()),
        "new_orders": status_counts.get(ORDER_STATUS_NEW, 0),
        "received_orders": status_counts.get(ORDER_STATUS_RECEIVED, 0),
        "total_customers": total_customers,
        "product_stats": [
            {"product": name, "quantity": int(quantity or 0)} for name, quantity in quantities
        ],
    }
