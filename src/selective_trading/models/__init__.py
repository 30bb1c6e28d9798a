# src/selective_trading/models/__init__.py
"""SQLAlchemy models for the Selective Trading application."""

from .order import Order, OrderItem
from .product import Product
from .sequence import DaySequenceCounter
from .user import User
from .verification import VerificationCode, VerificationPurpose

__all__ = [
    "DaySequenceCounter",
    "Order", "OrderItem",
    "Product",
    "User",
    "VerificationCode", "VerificationPurpose",
]
