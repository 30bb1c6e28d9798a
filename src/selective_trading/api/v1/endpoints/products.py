"""Product catalogue endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query

from selective_trading.api.v1.dependencies import OptionalUserDep, SessionDep
from selective_trading.db.guard import storage_guard
from selective_trading.models import Product
from selective_trading.schemas.product import ProductResponse

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=list[ProductResponse])
async def list_products(
    db: SessionDep,
    user: OptionalUserDep,
    include_unavailable: bool = Query(False, description="Admins only: include hidden products"),
) -> list[ProductResponse]:
    """Return the orderable catalogue."""
    query = db.query(Product)
    if not (include_unavailable and user is not None and user.is_admin):
        query = query.filter(Product.is_available.is_(True))
    with storage_guard(db, "list products"):
        products = query.order_by(Product.sort_order, Product.name_en).all()
    return [ProductResponse.model_validate(p) for p in products]
