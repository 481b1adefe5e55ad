"""
Role-based authorization policy for orders.

Every function here is a pure decision over an actor and an order
snapshot: it raises ``AuthorizationDenied`` or returns normally. Nothing
in this module reads or writes storage.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
from uuid import UUID

from delivery_backend.core.errors import AuthorizationDenied
from delivery_backend.models.order import DeliveryStatus, PaymentStatus
from delivery_backend.models.user import UserRole
from delivery_backend.services.lifecycle import DRIVER_SETTABLE_STATES


DETAIL_FIELDS = frozenset({
    "pickup_address",
    "pickup_lat",
    "pickup_lng",
    "dropoff_address",
    "dropoff_lat",
    "dropoff_lng",
    "package_description",
    "price",
})
STATUS_FIELDS = frozenset({"delivery_status", "payment_status"})
ASSIGNMENT_FIELDS = frozenset({"driver_id"})

# Fields each role may write through a general order update.
WRITABLE_FIELDS = {
    UserRole.CUSTOMER: DETAIL_FIELDS,
    UserRole.DRIVER: frozenset(),
    UserRole.ADMIN: DETAIL_FIELDS | STATUS_FIELDS | ASSIGNMENT_FIELDS,
}


@dataclass(frozen=True)
class Actor:
    """The authenticated identity performing an operation."""
    id: UUID
    role: UserRole

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(id=user.id, role=user.role)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_driver(self) -> bool:
        return self.role == UserRole.DRIVER

    @property
    def is_customer(self) -> bool:
        return self.role == UserRole.CUSTOMER


def _ensure_owner(actor: Actor, order) -> None:
    if order.customer_id != actor.id:
        raise AuthorizationDenied("Access denied")


def _ensure_assigned_driver(actor: Actor, order) -> None:
    if order.driver_id != actor.id:
        raise AuthorizationDenied("Access denied")


def authorize_create(actor: Actor) -> None:
    if actor.role not in (UserRole.CUSTOMER, UserRole.ADMIN):
        raise AuthorizationDenied("Only customers can create orders")


def authorize_read(actor: Actor, order) -> None:
    if actor.is_customer:
        _ensure_owner(actor, order)
    elif actor.is_driver:
        _ensure_assigned_driver(actor, order)


def authorize_update(actor: Actor, order) -> None:
    """Decide whether the actor may use the general update at all."""
    if actor.is_driver:
        raise AuthorizationDenied(
            "Drivers can only change delivery status through the status endpoint"
        )
    if actor.is_customer:
        _ensure_owner(actor, order)


def filter_changes(
    actor: Actor,
    changes: Dict[str, Any],
    strict: bool = False,
) -> Dict[str, Any]:
    """
    Apply the role's allow-list to a partial update.
    
    Fields outside the allow-list are dropped, or rejected when ``strict``.
    """
    allowed = WRITABLE_FIELDS[actor.role]
    forbidden = sorted(set(changes) - allowed)
    if forbidden and strict:
        raise AuthorizationDenied(
            f"Fields not writable by {actor.role.value}: {', '.join(forbidden)}"
        )
    return {field: value for field, value in changes.items() if field in allowed}


def authorize_status_update(
    actor: Actor,
    order,
    delivery_status: Optional[DeliveryStatus],
    payment_status: Optional[PaymentStatus],
) -> None:
    if actor.is_customer:
        raise AuthorizationDenied("Customers cannot update order status")
    if actor.is_driver:
        _ensure_assigned_driver(actor, order)
        if payment_status is not None:
            raise AuthorizationDenied("Drivers cannot update payment status")
        if delivery_status is not None and delivery_status not in DRIVER_SETTABLE_STATES:
            raise AuthorizationDenied(
                f"Drivers cannot set delivery status to {delivery_status.value}"
            )


def authorize_assignment(actor: Actor) -> None:
    if not actor.is_admin:
        raise AuthorizationDenied("Only admins can assign drivers")


def authorize_cancel(actor: Actor, order) -> None:
    if actor.is_driver:
        raise AuthorizationDenied("Drivers cannot cancel orders")
    if actor.is_customer:
        _ensure_owner(actor, order)


def authorize_available_listing(actor: Actor) -> None:
    if actor.is_customer:
        raise AuthorizationDenied("Only drivers can view available orders")


def listing_scope(
    actor: Actor,
    customer_id: Optional[UUID] = None,
    driver_id: Optional[UUID] = None,
) -> Dict[str, UUID]:
    """
    Return the ownership filters a list query must apply.
    
    Customers see their own orders and drivers their assigned ones; the
    requested customer/driver filters only apply for admins.
    """
    if actor.is_customer:
        return {"customer_id": actor.id}
    if actor.is_driver:
        return {"driver_id": actor.id}
    scope = {}
    if customer_id is not None:
        scope["customer_id"] = customer_id
    if driver_id is not None:
        scope["driver_id"] = driver_id
    return scope
