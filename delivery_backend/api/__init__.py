"""API routers package initialization."""

from delivery_backend.api.auth import router as auth_router
from delivery_backend.api.users import router as users_router
from delivery_backend.api.orders import router as orders_router

__all__ = [
    "auth_router",
    "users_router",
    "orders_router",
]
