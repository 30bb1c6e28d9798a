# src/selective_trading/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    admin_router,
    auth_router,
    orders_router,
    products_router,
    profile_router,
)

__all__ = [
    "admin_router",
    "auth_router",
    "orders_router",
    "products_router",
    "profile_router",
]
