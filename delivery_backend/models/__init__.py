"""Models package initialization - imports all models for easy access."""

from delivery_backend.models.user import User, UserRole, UserStatus
from delivery_backend.models.order import Order, DeliveryStatus, PaymentStatus

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
    "Order",
    "DeliveryStatus",
    "PaymentStatus",
]
