"""Order placement, editing and listing rules."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from selective_trading.core.errors import OrderRuleViolation
from selective_trading.core.settings import settings
from selective_trading.db.guard import storage_guard
from selective_trading.db.time import utcnow
from selective_trading.models import Order, OrderItem, Product, User
from selective_trading.models.order import (
    ORDER_STATUS_NEW,
    ORDER_STATUS_RECEIVED,
    ORDER_STATUSES,
    UNIT_TYPE_PIECE,
)
from selective_trading.services.sequence import SequenceIssuer
from selective_trading.utils.dates import business_day_bounds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderLine:
    """A requested product and quantity."""

    product_id: int
    quantity: int
    unit_type: str = UNIT_TYPE_PIECE


class OrderService:
    """Creates and mutates orders on behalf of customers and admins."""

    def __init__(self, db: Session, issuer: SequenceIssuer | None = None) -> None:
        self._db = db
        self._issuer = issuer or SequenceIssuer(db)

    def place_order(
        self,
        customer: User,
        lines: Sequence[OrderLine],
        message: str | None = None,
        *,
        now: datetime | None = None,
    ) -> Order:
        """Validate ``lines``, assign the next order number and persist the order.

        Raises:
            OrderRuleViolation: If the order is too small or references missing
                or unavailable products.
            StorageUnavailable: If the database failed.
        """
        now = now or utcnow()
        items = self._build_items(lines)
        order_number = self._issuer.next_order_number(now)

        order = Order(
            order_number=order_number,
            customer_id=customer.id,
            customer_name=customer.display_name,
            customer_phone=customer.phone,
            total_items=sum(item.quantity for item in items),
            status=ORDER_STATUS_NEW,
            message=message,
            edit_deadline=now + timedelta(hours=settings.order_edit_window_hours),
            history=[],
            created_at=now,
            items=items,
        )
        order.record("created", customer.id, customer.display_name)
        with storage_guard(self._db, "create an order"):
            self._db.add(order)
            self._db.commit()
            self._db.refresh(order)
        logger.info("Order %s created for customer %s", order.order_number, customer.id)
        return order

    def update_order(
        self,
        order: Order,
        editor: User,
        lines: Sequence[OrderLine] | None = None,
        message: str | None = None,
        *,
        status: str | None = None,
        now: datetime | None = None,
    ) -> Order:
        """Apply an edit to ``order`` and record it in the history.

        Customers may replace the items and message of their own order while
        it is inside its edit window. Admins may edit any order at any time and
        may also move it between ``new`` and ``received``.

        Args:
            order: The order to change.
            editor: Customer or admin performing the edit.
            lines: New product lines; ``None`` keeps the current items.
            message: New note; ``None`` keeps it, an empty string clears it.
            status: Admin only; ``new`` or ``received``.
            now: Reference time for the edit window.

        Raises:
            OrderRuleViolation: If the window has closed for a customer, a
                customer tries to change the status, or the new lines break
                the order rules.
        """
        if not editor.is_admin:
            if status is not None:
                raise OrderRuleViolation("Only admins can change the order status")
            if not order.is_editable(now):
                raise OrderRuleViolation("Order can no longer be edited")
        if status is not None and status not in ORDER_STATUSES:
            raise OrderRuleViolation(f"Unknown order status {status!r}")

        changes: list[str] = []
        if lines is not None:
            items = self._build_items(lines)
            previous_total = order.total_items
            order.items = items
            order.total_items = sum(item.quantity for item in items)
            changes.append(f"total items {previous_total} -> {order.total_items}")
        if message is not None:
            order.message = message or None
        if status is not None and status != order.status:
            changes.append(f"status {order.status} -> {status}")
            order.status = status

        order.record(
            "updated",
            editor.id,
            editor.display_name,
            changes="; ".join(changes) or None,
        )
        with storage_guard(self._db, "update an order"):
            self._db.commit()
            self._db.refresh(order)
        logger.info("Order %s updated by %s", order.order_number, editor.id)
        return order

    def delete_order(self, order: Order, actor: User) -> None:
        """Remove an order and its items.

        Customers may only delete their own orders while they are still
        ``new``; admins may delete any order. The order number is not reused.

        Raises:
            OrderRuleViolation: If a customer's order was already received.
        """
        if not actor.is_admin and order.status != ORDER_STATUS_NEW:
            raise OrderRuleViolation("Cannot delete order after it has been received")
        order_number = order.order_number
        with storage_guard(self._db, "delete an order"):
            self._db.delete(order)
            self._db.commit()
        logger.info("Order %s deleted by %s", order_number, actor.id)

    def mark_received(self, order: Order, admin: User) -> Order:
        """Mark an order as received; this also closes editing."""
        if order.status == ORDER_STATUS_RECEIVED:
            return order
        order.status = ORDER_STATUS_RECEIVED
        order.record("received", admin.id, admin.display_name)
        with storage_guard(self._db, "mark an order as received"):
            self._db.commit()
            self._db.refresh(order)
        logger.info("Order %s marked received by %s", order.order_number, admin.id)
        return order

    def get_order(self, order_id: int) -> Order | None:
        """Return an order by primary key."""
        with storage_guard(self._db, "load an order"):
            return self._db.get(Order, order_id)

    def list_orders(
        self,
        *,
        customer_id: int | None = None,
        status: str | None = None,
        day: date | None = None,
    ) -> list[Order]:
        """Return orders newest first, optionally scoped to a customer and day."""
        query = self._filtered(customer_id=customer_id, status=status)
        if day is not None:
            start, end = business_day_bounds(day)
            query = query.filter(Order.created_at >= start, Order.created_at < end)
        with storage_guard(self._db, "list orders"):
            return query.order_by(Order.created_at.desc(), Order.id.desc()).all()

    def search_orders(
        self,
        *,
        page: int = 1,
        limit: int = 20,
        status: str | None = None,
        search: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        customer_id: int | None = None,
    ) -> tuple[list[Order], int]:
        """Return one page of orders for the back office and the total match count."""
        query = self._filtered(customer_id=customer_id, status=status)
        if search:
            query = query.filter(func.lower(Order.order_number).contains(search.lower()))
        if start_date is not None:
            query = query.filter(Order.created_at >= business_day_bounds(start_date)[0])
        if end_date is not None:
            query = query.filter(Order.created_at < business_day_bounds(end_date)[1])

        with storage_guard(self._db, "search orders"):
            total = query.count()
            orders = (
                query.order_by(Order.created_at.desc(), Order.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
                .all()
            )
        return orders, total

    def _filtered(self, *, customer_id: int | None, status: str | None) -> Query[Order]:
        query = self._db.query(Order)
        if customer_id is not None:
            query = query.filter(Order.customer_id == customer_id)
        if status and status != "all":
            query = query.filter(Order.status == status)
        return query

    def _build_items(self, lines: Sequence[OrderLine]) -> list[OrderItem]:
        total = sum(line.quantity for line in lines)
        if total < settings.min_order_items:
            raise OrderRuleViolation(f"Minimum order is {settings.min_order_items} items")

        product_ids = {line.product_id for line in lines}
        with storage_guard(self._db, "load products"):
            products = {
                product.id: product
                for product in self._db.query(Product).filter(Product.id.in_(product_ids))
            }
        if len(products) != len(product_ids):
            raise OrderRuleViolation("Some products not found")
        unavailable = sorted(p.slug for p in products.values() if not p.is_available)
        if unavailable:
            raise OrderRuleViolation(f"Some products are unavailable: {', '.join(unavailable)}")

        return [
            OrderItem(
                product_id=line.product_id,
                product_name_en=products[line.product_id].name_en,
                product_name_ar=products[line.product_id].name_ar,
                quantity=line.quantity,
                unit_type=line.unit_type,
            )
            for line in lines
        ]
