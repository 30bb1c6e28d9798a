# tests/services/test_order_service.py
"""Tests for the order service rules."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

import pytest
from sqlalchemy.orm import Session

from selective_trading.core.errors import OrderRuleViolation
from selective_trading.models import OrderItem, Product, User
from selective_trading.services.orders import OrderLine, OrderService
from selective_trading.services.stats import admin_stats

MORNING = datetime(2025, 11, 3, 8, 0, tzinfo=UTC)


@pytest.fixture()
def service(db_session: Session) -> OrderService:
    return OrderService(db_session)


def _lines(products: dict[str, Product], laban: int = 2, milk: int = 1) -> list[OrderLine]:
    return [
        OrderLine(products["laban-1l"].id, laban, "carton"),
        OrderLine(products["fresh-milk-2l"].id, milk),
    ]


def test_place_order_assigns_daily_numbers(
    service: OrderService, customer: User, products: dict[str, Product]
) -> None:
    first = service.place_order(customer, _lines(products), now=MORNING)
    second = service.place_order(customer, _lines(products), now=MORNING + timedelta(hours=3))

    assert first.order_number == "ST251103-0001"
    assert second.order_number == "ST251103-0002"
    assert first.total_items == 3
    assert first.customer_name == "Salim"
    assert [item.product_name_en for item in first.items] == ["Laban 1L", "Fresh Milk 2L"]
    assert first.history[0]["action"] == "created"


def test_next_day_restarts_numbering(
    service: OrderService, customer: User, products: dict[str, Product]
) -> None:
    service.place_order(customer, _lines(products), now=MORNING)
    next_day = service.place_order(customer, _lines(products), now=MORNING + timedelta(days=1))
    assert next_day.order_number == "ST251104-0001"


def test_minimum_quantity_enforced(
    service: OrderService, customer: User, products: dict[str, Product]
) -> None:
    with pytest.raises(OrderRuleViolation, match="Minimum order is 2 items"):
        service.place_order(customer, [OrderLine(products["laban-1l"].id, 1)])


def test_unavailable_products_rejected(
    service: OrderService, customer: User, products: dict[str, Product]
) -> None:
    lines = [OrderLine(products["ghee-500g"].id, 3)]
    with pytest.raises(OrderRuleViolation, match="ghee-500g"):
        service.place_order(customer, lines)


def test_unknown_products_rejected(service: OrderService, customer: User) -> None:
    with pytest.raises(OrderRuleViolation, match="not found"):
        service.place_order(customer, [OrderLine(9999, 5)])


def test_rejected_order_consumes_no_number(
    service: OrderService, customer: User, products: dict[str, Product]
) -> None:
    with pytest.raises(OrderRuleViolation):
        service.place_order(customer, [OrderLine(products["laban-1l"].id, 1)], now=MORNING)
    assert service.place_order(customer, _lines(products), now=MORNING).order_number.endswith(
        "-0001"
    )


def test_update_within_window(
    service: OrderService, customer: User, products: dict[str, Product]
) -> None:
    order = service.place_order(customer, _lines(products))
    updated = service.update_order(order, customer, _lines(products, laban=5), "Leave at gate")

    assert updated.total_items == 6
    assert updated.message == "Leave at gate"
    assert [entry["action"] for entry in updated.history] == ["created", "updated"]


def test_update_after_deadline_rejected(
    service: OrderService, customer: User, products: dict[str, Product]
) -> None:
    order = service.place_order(customer, _lines(products), now=MORNING)
    assert order.is_editable(MORNING + timedelta(hours=1))
    assert not order.is_editable(MORNING + timedelta(hours=2, seconds=1))

    with pytest.raises(OrderRuleViolation, match="no longer be edited"):
        service.update_order(order, customer, _lines(products))


def test_received_orders_are_closed(
    service: OrderService, customer: User, admin_user: User, products: dict[str, Product]
) -> None:
    order = service.place_order(customer, _lines(products))
    service.mark_received(order, admin_user)

    assert order.status == "received"
    assert not order.can_edit
    assert order.history[-1]["by_name"] == "Admin"
    with pytest.raises(OrderRuleViolation):
        service.update_order(order, customer, _lines(products))


def test_list_and_search_orders(
    service: OrderService,
    customer: User,
    other_customer: User,
    products: dict[str, Product],
) -> None:
    service.place_order(customer, _lines(products), now=MORNING)
    service.place_order(other_customer, _lines(products), now=MORNING + timedelta(minutes=5))
    service.place_order(customer, _lines(products), now=MORNING + timedelta(days=1))

    mine = service.list_orders(customer_id=customer.id)
    assert [o.order_number for o in mine] == ["ST251104-0001", "ST251103-0001"]
    assert len(service.list_orders(day=date(2025, 11, 3))) == 2

    page, total = service.search_orders(page=1, limit=2)
    assert total == 3
    assert len(page) == 2
    found, total = service.search_orders(search="st251103-0002")
    assert total == 1
    assert found[0].customer_id == other_customer.id
    _, total = service.search_orders(start_date=date(2025, 11, 4), end_date=date(2025, 11, 4))
    assert total == 1


def test_admin_stats_counts_only_selected_day(
    service: OrderService,
    db_session: Session,
    customer: User,
    admin_user: User,
    products: dict[str, Product],
) -> None:
    first = service.place_order(customer, _lines(products, laban=4), now=MORNING)
    service.place_order(customer, _lines(products, milk=3), now=MORNING + timedelta(hours=1))
    service.place_order(customer, _lines(products), now=MORNING + timedelta(days=1))
    service.mark_received(first, admin_user)

    stats = admin_stats(db_session, "custom", date(2025, 11, 3))
    assert stats["total_orders"] == 2
    assert stats["new_orders"] == 1
    assert stats["received_orders"] == 1
    assert stats["total_customers"] == 1
    assert stats["product_stats"] == [
        {"product": "Laban 1L", "quantity": 6},
        {"product": "Fresh Milk 2L", "quantity": 4},
    ]

    assert admin_stats(db_session, "all")["total_orders"] == 3
    assert admin_stats(db_session, "today", now=MORNING + timedelta(days=1))["total_orders"] == 1


def test_admin_stats_requires_day_for_custom(db_session: Session) -> None:
    with pytest.raises(ValueError):
        admin_stats(db_session, "custom")
    with pytest.raises(ValueError):
        admin_stats(db_session, "yesterday")


def test_admin_edit_ignores_window_and_sets_status(
    service: OrderService, customer: User, admin_user: User, products: dict[str, Product]
) -> None:
    order = service.place_order(customer, _lines(products), now=MORNING)
    assert not order.can_edit

    updated = service.update_order(order, admin_user, status="received")
    assert updated.status == "received"
    assert updated.total_items == 3
    assert updated.history[-1]["changes"] == "status new -> received"

    reopened = service.update_order(order, admin_user, _lines(products, laban=4), status="new")
    assert reopened.status == "new"
    assert reopened.total_items == 5


def test_customer_cannot_set_status(
    service: OrderService, customer: User, products: dict[str, Product]
) -> None:
    order = service.place_order(customer, _lines(products))
    with pytest.raises(OrderRuleViolation, match="Only admins"):
        service.update_order(order, customer, status="received")


def test_delete_rules(
    service: OrderService,
    db_session: Session,
    customer: User,
    admin_user: User,
    products: dict[str, Product],
) -> None:
    kept = service.place_order(customer, _lines(products))
    service.mark_received(kept, admin_user)
    with pytest.raises(OrderRuleViolation, match="Cannot delete"):
        service.delete_order(kept, customer)

    fresh = service.place_order(customer, _lines(products))
    fresh_id = fresh.id
    service.delete_order(fresh, customer)
    assert service.get_order(fresh_id) is None
    assert db_session.query(OrderItem).filter(OrderItem.order_id == fresh_id).count() == 0

    service.delete_order(kept, admin_user)
    assert service.list_orders(customer_id=customer.id) == []
