"""Pydantic schemas for the Selective Trading API."""

from .admin import AdminStatsResponse, ProductStat, SequenceStatus
from .auth import (
    LoginCheckResponse,
    MessageResponse,
    PhoneRequest,
    SessionResponse,
    SignupRequest,
    UserResponse,
    VerifyRequest,
)
from .customer import CustomerPage, CustomerResponse, CustomerStatusUpdate, ProfileUpdate
from .order import (
    OrderCreate,
    OrderItemRequest,
    OrderListResponse,
    OrderPage,
    OrderResponse,
    OrderUpdate,
)
from .product import ProductCreate, ProductResponse, ProductUpdate

__all__ = [
    "AdminStatsResponse",
    "CustomerPage",
    "CustomerResponse",
    "CustomerStatusUpdate",
    "LoginCheckResponse",
    "MessageResponse",
    "OrderCreate",
    "OrderItemRequest",
    "OrderListResponse",
    "OrderPage",
    "OrderResponse",
    "OrderUpdate",
    "PhoneRequest",
    "ProfileUpdate",
    "ProductCreate",
    "ProductResponse",
    "ProductStat",
    "ProductUpdate",
    "SequenceStatus",
    "SessionResponse",
    "SignupRequest",
    "UserResponse",
    "VerifyRequest",
]
