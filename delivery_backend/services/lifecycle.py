"""
Order lifecycle rules.

Delivery status moves along a single forward path
(pending -> assigned -> picked -> in_transit -> delivered) with a
side exit to cancelled from any non-terminal state. Delivered and
cancelled are terminal.
"""

from delivery_backend.core.errors import InvalidState
from delivery_backend.models.order import DeliveryStatus


FORWARD_PATH = (
    DeliveryStatus.PENDING,
    DeliveryStatus.ASSIGNED,
    DeliveryStatus.PICKED,
    DeliveryStatus.IN_TRANSIT,
    DeliveryStatus.DELIVERED,
)

TERMINAL_STATES = frozenset({DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED})

CANCELLABLE_STATES = frozenset(FORWARD_PATH) - TERMINAL_STATES

# Statuses a driver may write on an order assigned to them.
DRIVER_SETTABLE_STATES = frozenset({
    DeliveryStatus.PICKED,
    DeliveryStatus.IN_TRANSIT,
    DeliveryStatus.DELIVERED,
})

# Past pending, an order must have a driver (cancelled excepted).
STATES_REQUIRING_DRIVER = frozenset(FORWARD_PATH[1:])


def is_terminal(status: DeliveryStatus) -> bool:
    return status in TERMINAL_STATES


def next_state(status: DeliveryStatus):
    """Return the next status on the forward path, or None at its end."""
    if status not in FORWARD_PATH:
        return None
    index = FORWARD_PATH.index(status)
    if index + 1 >= len(FORWARD_PATH):
        return None
    return FORWARD_PATH[index + 1]


def ensure_not_terminal(status: DeliveryStatus) -> None:
    if is_terminal(status):
        raise InvalidState(f"Order is {status.value} and can no longer change status")


def ensure_editable(status: DeliveryStatus) -> None:
    """Order details may only change before assignment."""
    if status != DeliveryStatus.PENDING:
        raise InvalidState("Cannot update order after it has been assigned")


def ensure_assignable(status: DeliveryStatus) -> None:
    if status != DeliveryStatus.PENDING:
        raise InvalidState("Order is not in pending status")


def ensure_cancellable(status: DeliveryStatus) -> None:
    if status not in CANCELLABLE_STATES:
        raise InvalidState("Order cannot be cancelled in current status")


def ensure_driver_transition(
    current: DeliveryStatus,
    target: DeliveryStatus,
    forward_only: bool = False,
) -> None:
    """
    Validate a driver-initiated status change.
    
    By default any driver-settable status may be written in one step as
    long as the order is not terminal. With ``forward_only`` the target
    must be exactly the next status on the forward path.
    """
    ensure_not_terminal(current)
    if forward_only and target != next_state(current):
        raise InvalidState(
            f"Cannot move order from {current.value} to {target.value}"
        )


def ensure_admin_transition(
    current: DeliveryStatus,
    target: DeliveryStatus,
    has_driver: bool,
) -> None:
    """
    Admins may write any status except leaving a terminal one.
    
    ``has_driver`` describes the order after the write: pending orders
    never have a driver, and every status past pending needs one.
    """
    if target == DeliveryStatus.PENDING and has_driver:
        raise InvalidState("A pending order cannot have a driver; unassign it or set assigned")
    if target == current:
        return
    ensure_not_terminal(current)
    if target in STATES_REQUIRING_DRIVER and not has_driver:
        raise InvalidState(f"Status {target.value} requires an assigned driver")
