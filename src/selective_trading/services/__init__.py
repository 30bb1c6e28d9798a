# src/selective_trading/services/__init__.py
"""Business logic services for the Selective Trading application."""

from .customers import get_customer, search_customers, set_customer_active, update_profile
from .notifications import LoggingNotifier, Notifier, SmtpNotifier, get_notifier
from .orders import OrderLine, OrderService
from .sequence import SequenceIssuer, day_key, format_order_number
from .verification import VerificationCodeRegistry, VerificationPayload

__all__ = [
    "LoggingNotifier",
    "Notifier",
    "OrderLine",
    "OrderService",
    "SequenceIssuer",
    "SmtpNotifier",
    "VerificationCodeRegistry",
    "VerificationPayload",
    "day_key",
    "format_order_number",
    "get_customer",
    "get_notifier",
    "search_customers",
    "set_customer_active",
    "update_profile",
]
