"""Back-office endpoints for administrators."""

from __future__ import annotations

import datetime as dt
import logging
import math
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError

from selective_trading.api.v1.dependencies import (
    AdminDep,
    OrderServiceDep,
    SequenceIssuerDep,
    SessionDep,
)
from selective_trading.db.guard import storage_guard
from selective_trading.models import Product
from selective_trading.schemas.admin import AdminStatsResponse, SequenceStatus
from selective_trading.schemas.customer import (
    CustomerPage,
    CustomerResponse,
    CustomerStatusUpdate,
)
from selective_trading.schemas.order import OrderPage, OrderResponse
from selective_trading.schemas.product import ProductCreate, ProductResponse, ProductUpdate
from selective_trading.services.customers import (
    get_customer,
    search_customers,
    set_customer_active,
)
from selective_trading.services.sequence import day_key, format_order_number
from selective_trading.services.stats import admin_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/products", status_code=status.HTTP_201_CREATED, response_model=ProductResponse)
async def create_product(
    payload: ProductCreate,
    admin: AdminDep,
    db: SessionDep,
) -> ProductResponse:
    """Add a product to the catalogue."""
    product = Product(**payload.model_dump())
    try:
        with storage_guard(db, "create a product"):
            db.add(product)
            db.commit()
    except IntegrityError as err:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A product with slug {payload.slug!r} already exists",
        ) from err
    db.refresh(product)
    logger.info("Product %s created by admin %s", product.slug, admin.id)
    return ProductResponse.model_validate(product)


@router.patch("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    payload: ProductUpdate,
    admin: AdminDep,
    db: SessionDep,
) -> ProductResponse:
    """Change the names, image, availability or ordering of a product."""
    with storage_guard(db, "load a product"):
        product = db.get(Product, product_id)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(product, field, value)
    with storage_guard(db, "update a product"):
        db.commit()
        db.refresh(product)
    return ProductResponse.model_validate(product)


@router.get("/orders", response_model=OrderPage)
async def search_orders(
    admin: AdminDep,
    service: OrderServiceDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    status_filter: Annotated[
        str | None, Query(alias="status", pattern="^(new|received|all)$")
    ] = None,
    search: Annotated[str | None, Query(max_length=64)] = None,
    start_date: dt.date | None = None,
    end_date: dt.date | None = None,
    customer_id: int | None = None,
) -> OrderPage:
    """Page through all orders with optional filters."""
    orders, total = service.search_orders(
        page=page,
        limit=limit,
        status=status_filter,
        search=search,
        start_date=start_date,
        end_date=end_date,
        customer_id=customer_id,
    )
    return OrderPage(
        orders=[OrderResponse.model_validate(o) for o in orders],
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if total else 0,
    )


@router.post("/orders/{order_id}/receive", response_model=OrderResponse)
async def receive_order(
    order_id: int,
    admin: AdminDep,
    service: OrderServiceDep,
) -> OrderResponse:
    """Mark an order as received, which also closes it for editing."""
    order = service.get_order(order_id)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return OrderResponse.model_validate(service.mark_received(order, admin))


@router.get("/stats", response_model=AdminStatsResponse)
async def get_stats(
    admin: AdminDep,
    db: SessionDep,
    filter_name: Annotated[str, Query(alias="filter")] = "today",
    day: Annotated[dt.date | None, Query(alias="date")] = None,
) -> AdminStatsResponse:
    """Order counts and per-product quantities for today, a chosen day or all time."""
    try:
        stats = admin_stats(db, filter_name, day)
    except ValueError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    return AdminStatsResponse.model_validate(stats)


@router.get("/customers", response_model=CustomerPage)
async def list_customers(
    admin: AdminDep,
    db: SessionDep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    search: Annotated[str | None, Query(max_length=64)] = None,
    status_filter: Annotated[
        str | None, Query(alias="status", pattern="^(active|inactive|all)$")
    ] = None,
) -> CustomerPage:
    """Page through customer accounts, newest first, with their order counts."""
    rows, total = search_customers(db, page=page, limit=limit, search=search, status=status_filter)
    return CustomerPage(
        customers=[
            CustomerResponse.model_validate(customer).model_copy(update={"order_count": count})
            for customer, count in rows
        ],
        total=total,
        page=page,
        limit=limit,
        pages=math.ceil(total / limit) if total else 0,
    )


@router.patch("/customers/{customer_id}", response_model=CustomerResponse)
async def update_customer_status(
    customer_id: int,
    payload: CustomerStatusUpdate,
    admin: AdminDep,
    db: SessionDep,
) -> CustomerResponse:
    """Activate or deactivate a customer account."""
    customer = get_customer(db, customer_id)
    if customer is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    if customer.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Cannot modify admin users"
        )
    customer = set_customer_active(db, customer, payload.is_active)
    logger.info("Admin %s set customer %s active=%s", admin.id, customer.id, payload.is_active)
    return CustomerResponse.model_validate(customer)


@router.get("/order-numbers/today", response_model=SequenceStatus)
async def todays_order_numbers(
    admin: AdminDep,
    issuer: SequenceIssuerDep,
) -> SequenceStatus:
    """Report how many order numbers have been issued for the current business day."""
    key = day_key()
    issued = issuer.current_count(key)
    return SequenceStatus(
        day_key=key,
        issued=issued,
        last_order_number=format_order_number(key, issued) if issued else None,
    )
