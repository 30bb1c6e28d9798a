"""Helpers for customer accounts: self-service profile edits and back-office management."""
from __future__ import annotations

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from selective_trading.db.guard import storage_guard
from selective_trading.models import Order, User
from selective_trading.schemas.customer import ProfileUpdate

__all__ = [
    "get_customer",
    "search_customers",
    "set_customer_active",
    "update_profile",
]

CUSTOMER_STATUS_FILTERS = ("active", "inactive", "all")

logger = logging.getLogger(__name__)


def get_customer(db: Session, customer_id: int) -> User | None:
    """Return a single account by primary key."""
    with storage_guard(db, "load a customer"):
        return db.get(User, customer_id)


def search_customers(
    db: Session,
    *,
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
    status: str | None = None,
) -> tuple[list[tuple[User, int]], int]:
    """Return one page of non-admin accounts with their order counts.

    Args:
        db: Database session.
        page: 1-based page number.
        limit: Page size.
        search: Case-insensitive match on name, company, phone or email.
        status: ``active``, ``inactive`` or ``all``.

    Returns:
        ``(rows, total)`` where each row is ``(customer, order_count)``.
    """
    order_count = (
        select(func.count(Order.id))
        .where(Order.customer_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )
    query = db.query(User, order_count.label("order_count")).filter(User.is_admin.is_(False))
    if status == "active":
        query = query.filter(User.is_active.is_(True))
    elif status == "inactive":
        query = query.filter(User.is_active.is_(False))
    if search:
        needle = f"%{search.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(User.name).like(needle),
                func.lower(User.company_name).like(needle),
                func.lower(User.email).like(needle),
                User.phone.like(needle),
            )
        )

    with storage_guard(db, "search customers"):
        total = query.count()
        rows = (
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
    return [(customer, int(count or 0)) for customer, count in rows], total


def set_customer_active(db: Session, customer: User, is_active: bool) -> User:
    """Enable or disable a customer account.

    Inactive accounts keep their orders but can no longer log in or use an
    existing session.
    """
    customer.is_active = is_active
    with storage_guard(db, "change a customer status"):
        db.commit()
        db.refresh(customer)
    logger.info("Customer %s is now %s", customer.id, "active" if is_active else "inactive")
    return customer


def update_profile(db: Session, user: User, update_data: ProfileUpdate) -> User:
    """Apply the fields present in ``update_data`` to the caller's account.

    Raises:
        IntegrityError: If the new email already belongs to another account.
    """
    for key, value in update_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(user, key, value)
    try:
        with storage_guard(db, "update a profile"):
            db.commit()
    except IntegrityError:
        db.rollback()
        raise
    db.refresh(user)
    logger.info("Profile of customer %s updated", user.id)
    return user
