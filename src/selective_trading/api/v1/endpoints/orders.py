"""Customer order endpoints."""

from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, HTTPException, Query, Response, status

from selective_trading.api.v1.dependencies import CurrentUserDep, OrderServiceDep
from selective_trading.core.errors import OrderRuleViolation
from selective_trading.models import Order, User
from selective_trading.schemas.order import (
    OrderCreate,
    OrderItemRequest,
    OrderListResponse,
    OrderResponse,
    OrderUpdate,
)
from selective_trading.services.orders import OrderLine, OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def _lines(items: list[OrderItemRequest]) -> list[OrderLine]:
    return [
        OrderLine(product_id=item.product_id, quantity=item.quantity, unit_type=item.unit_type)
        for item in items
    ]


def _load_visible_order(service: OrderService, order_id: int, user: User) -> Order:
    """Return the order if it exists and the user may see it."""
    order = service.get_order(order_id)
    if order is None or (not user.is_admin and order.customer_id != user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


@router.post("", status_code=status.HTTP_201_CREATED, response_model=OrderResponse)
def create_order(
    payload: OrderCreate,
    user: CurrentUserDep,
    service: OrderServiceDep,
) -> OrderResponse:
    """Place an order; the order number is assigned from today's sequence."""
    try:
        order = service.place_order(user, _lines(payload.items), payload.message)
    except OrderRuleViolation as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    return OrderResponse.model_validate(order)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    user: CurrentUserDep,
    service: OrderServiceDep,
    status_filter: str | None = Query(None, alias="status", pattern="^(new|received|all)$"),
    day: dt.date | None = Query(None, alias="date", description="Business day, YYYY-MM-DD"),
) -> OrderListResponse:
    """List the caller's orders, or every order for admins, newest first."""
    orders = service.list_orders(
        customer_id=None if user.is_admin else user.id,
        status=status_filter,
        day=day,
    )
    return OrderListResponse(orders=[OrderResponse.model_validate(o) for o in orders])


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: int, user: CurrentUserDep, service: OrderServiceDep) -> OrderResponse:
    """Return a single order owned by the caller (any order for admins)."""
    return OrderResponse.model_validate(_load_visible_order(service, order_id, user))


@router.put("/{order_id}", response_model=OrderResponse)
def update_order(
    order_id: int,
    payload: OrderUpdate,
    user: CurrentUserDep,
    service: OrderServiceDep,
) -> OrderResponse:
    """Edit an order.

    Customers may change the items and message of their own order while it is
    still editable. Admins may edit any order, including its status.
    """
    order = _load_visible_order(service, order_id, user)
    if payload.status is not None and not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can change the order status",
        )
    lines = _lines(payload.items) if payload.items is not None else None
    try:
        order = service.update_order(order, user, lines, payload.message, status=payload.status)
    except OrderRuleViolation as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    return OrderResponse.model_validate(order)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(order_id: int, user: CurrentUserDep, service: OrderServiceDep) -> Response:
    """Delete an order: customers their own new orders, admins any order."""
    order = _load_visible_order(service, order_id, user)
    try:
        service.delete_order(order, user)
    except OrderRuleViolation as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    return Response(status_code=status.HTTP_204_NO_CONTENT)
