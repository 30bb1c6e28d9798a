# src/selective_trading/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .auth import router as auth_router
from .orders import router as orders_router
from .products import router as products_router
from .profile import router as profile_router

__all__ = [
    "admin_router",
    "auth_router",
    "orders_router",
    "products_router",
    "profile_router",
]
