"""Schemas package initialization."""

from delivery_backend.schemas.common import PaginationInfo, MessageResponse
from delivery_backend.schemas.order import (
    OrderCreate,
    OrderUpdate,
    DriverAssignmentRequest,
    StatusUpdateRequest,
    OrderParty,
    OrderResponse,
    OrderListResponse,
    CustomerContact,
    AvailableOrderResponse,
    AvailableOrdersResponse,
)
from delivery_backend.schemas.user import (
    UserRegister,
    UserLogin,
    UserUpdate,
    PasswordChangeRequest,
    LocationUpdateRequest,
    LocationResponse,
    UserResponse,
    AuthResponse,
    UserListResponse,
    UsersByRoleResponse,
    ProfilePictureResponse,
)

__all__ = [
    "PaginationInfo",
    "MessageResponse",
    # Orders
    "OrderCreate",
    "OrderUpdate",
    "DriverAssignmentRequest",
    "StatusUpdateRequest",
    "OrderParty",
    "OrderResponse",
    "OrderListResponse",
    "CustomerContact",
    "AvailableOrderResponse",
    "AvailableOrdersResponse",
    # Users
    "UserRegister",
    "UserLogin",
    "UserUpdate",
    "PasswordChangeRequest",
    "LocationUpdateRequest",
    "LocationResponse",
    "UserResponse",
    "AuthResponse",
    "UserListResponse",
    "UsersByRoleResponse",
    "ProfilePictureResponse",
]
