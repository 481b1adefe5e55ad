"""
Order lifecycle engine.

One coroutine per transition. Each loads the order, asks the policy
whether the actor may act, checks the lifecycle rules, and writes the
change with a conditional UPDATE keyed on the statuses it read. If
another request changed the order in between, the UPDATE matches no
row and the call fails with ``Conflict`` instead of overwriting it.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from delivery_backend.config import get_settings
from delivery_backend.core.errors import Conflict, InvalidState, NotFound, ValidationError
from delivery_backend.models import Order, DeliveryStatus, PaymentStatus, User, UserRole, UserStatus
from delivery_backend.schemas.order import OrderCreate
from delivery_backend.services import lifecycle, policy
from delivery_backend.services.policy import Actor


logger = logging.getLogger(__name__)

# Columns of an order that may be written as NULL.
NULLABLE_FIELDS = frozenset({"driver_id"})


def _order_query():
    return select(Order).options(
        selectinload(Order.customer),
        selectinload(Order.driver),
    )


async def load_order(db: AsyncSession, order_id: UUID) -> Order:
    """Fetch an order with its customer and driver, bypassing stale identity-map state."""
    result = await db.execute(
        _order_query()
        .where(Order.id == order_id)
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise NotFound("Order not found")
    return order


async def get_active_driver(db: AsyncSession, driver_id: UUID) -> User:
    result = await db.execute(
        select(User).where(
            User.id == driver_id,
            User.role == UserRole.DRIVER,
            User.status == UserStatus.ACTIVE,
        )
    )
    driver = result.scalar_one_or_none()
    if driver is None:
        raise NotFound("Active driver not found")
    return driver


async def compare_and_set(
    db: AsyncSession,
    order_id: UUID,
    expected_delivery_status: DeliveryStatus,
    expected_payment_status: PaymentStatus,
    values: Dict[str, Any],
) -> None:
    """
    Write ``values`` only if the order still has the expected statuses.

    Raises:
        Conflict: no row matched, i.e. the order changed since it was read
    """
    stmt = (
        update(Order)
        .where(
            Order.id == order_id,
            Order.delivery_status == expected_delivery_status,
            Order.payment_status == expected_payment_status,
        )
        .values(**values, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    if result.rowcount == 0:
        logger.warning(
            "Conditional update of order %s lost the race (expected %s/%s)",
            order_id, expected_delivery_status.value, expected_payment_status.value,
        )
        raise Conflict("Order was modified by another request; reload and retry")


async def _apply(db: AsyncSession, order: Order, values: Dict[str, Any]) -> Order:
    await compare_and_set(db, order.id, order.delivery_status, order.payment_status, values)
    return await load_order(db, order.id)


def _ensure_expected(order: Order, expected: Optional[DeliveryStatus]) -> None:
    if expected is not None and order.delivery_status != expected:
        raise Conflict(
            f"Order is {order.delivery_status.value}, expected {expected.value}"
        )


# ==================== Reads ====================

async def get_order(db: AsyncSession, actor: Actor, order_id: UUID) -> Order:
    order = await load_order(db, order_id)
    policy.authorize_read(actor, order)
    return order


async def list_orders(
    db: AsyncSession,
    actor: Actor,
    delivery_status: Optional[DeliveryStatus] = None,
    payment_status: Optional[PaymentStatus] = None,
    customer_id: Optional[UUID] = None,
    driver_id: Optional[UUID] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[Order], int]:
    """
    List orders visible to the actor, newest first.

    Returns:
        (orders on the requested page, total matching orders)
    """
    settings = get_settings()
    if page < 1:
        raise ValidationError("Page must be a positive integer")
    if not 1 <= limit <= settings.max_page_size:
        raise ValidationError(f"Limit must be between 1 and {settings.max_page_size}")

    conditions = [
        getattr(Order, field) == value
        for field, value in policy.listing_scope(actor, customer_id, driver_id).items()
    ]
    if delivery_status is not None:
        conditions.append(Order.delivery_status == delivery_status)
    if payment_status is not None:
        conditions.append(Order.payment_status == payment_status)
    if search:
        pattern = f"%{search.strip()}%"
        conditions.append(or_(
            Order.pickup_address.ilike(pattern),
            Order.dropoff_address.ilike(pattern),
            Order.package_description.ilike(pattern),
        ))

    total_result = await db.execute(select(func.count(Order.id)).where(*conditions))
    total_items = total_result.scalar() or 0

    result = await db.execute(
        _order_query()
        .where(*conditions)
        .order_by(Order.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total_items


async def list_available_orders(db: AsyncSession, actor: Actor) -> List[Order]:
    """Unassigned pending orders, oldest first so the longest-waiting is picked up first."""
    policy.authorize_available_listing(actor)
    result = await db.execute(
        _order_query()
        .where(
            Order.delivery_status == DeliveryStatus.PENDING,
            Order.driver_id.is_(None),
        )
        .order_by(Order.created_at.asc())
    )
    return list(result.scalars().all())


# ==================== Transitions ====================

async def create_order(db: AsyncSession, actor: Actor, payload: OrderCreate) -> Order:
    """Create a pending, unpaid, unassigned order owned by the actor."""
    policy.authorize_create(actor)

    order = Order(
        **payload.model_dump(),
        customer_id=actor.id,
        driver_id=None,
        delivery_status=DeliveryStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
    )
    db.add(order)
    await db.flush()

    logger.info("Order %s created by %s %s", order.id, actor.role.value, actor.id)
    return await load_order(db, order.id)


async def update_order(
    db: AsyncSession,
    actor: Actor,
    order_id: UUID,
    changes: Dict[str, Any],
) -> Order:
    """
    Partial update filtered by the actor's writable fields.

    Customers may only edit their own pending orders. Admins may write
    every field, subject to the same rules as the dedicated transitions.
    """
    order = await load_order(db, order_id)
    policy.authorize_update(actor, order)
    if actor.is_customer:
        lifecycle.ensure_editable(order.delivery_status)

    values = policy.filter_changes(
        actor, changes, strict=get_settings().strict_field_filtering
    )
    if not values:
        return order

    nulls = sorted(field for field, value in values.items() if value is None and field not in NULLABLE_FIELDS)
    if nulls:
        raise ValidationError(f"Fields cannot be null: {', '.join(nulls)}")

    if values.keys() & policy.DETAIL_FIELDS:
        lifecycle.ensure_editable(order.delivery_status)

    if actor.is_admin:
        await _check_admin_changes(db, order, values)

    order = await _apply(db, order, values)
    logger.info(
        "Order %s updated by %s %s: %s",
        order.id, actor.role.value, actor.id, ", ".join(sorted(values)),
    )
    return order


async def _check_admin_changes(db: AsyncSession, order: Order, values: Dict[str, Any]) -> None:
    """Validate assignment and status fields of an admin update, in place."""
    driver_id = values.get("driver_id", order.driver_id)

    if "driver_id" in values and values["driver_id"] != order.driver_id:
        lifecycle.ensure_not_terminal(order.delivery_status)
        if driver_id is not None:
            await get_active_driver(db, driver_id)
            # Setting a driver on a pending order is an assignment
            if order.delivery_status == DeliveryStatus.PENDING:
                values.setdefault("delivery_status", DeliveryStatus.ASSIGNED)

    target = values.get("delivery_status")
    if target is not None:
        lifecycle.ensure_admin_transition(
            order.delivery_status, target, has_driver=driver_id is not None
        )
    elif driver_id is None and order.delivery_status in lifecycle.STATES_REQUIRING_DRIVER:
        raise InvalidState(
            f"Cannot remove the driver from a {order.delivery_status.value} order"
        )
    elif driver_id is not None and order.delivery_status == DeliveryStatus.PENDING:
        raise InvalidState("A pending order cannot have a driver; unassign it or set assigned")


async def assign_driver(
    db: AsyncSession,
    actor: Actor,
    order_id: UUID,
    driver_id: UUID,
) -> Order:
    """Assign an active driver to a pending order (admin only)."""
    policy.authorize_assignment(actor)
    order = await load_order(db, order_id)
    lifecycle.ensure_assignable(order.delivery_status)
    driver = await get_active_driver(db, driver_id)

    order = await _apply(db, order, {
        "driver_id": driver.id,
        "delivery_status": DeliveryStatus.ASSIGNED,
    })
    logger.info("Order %s assigned to driver %s by admin %s", order.id, driver.id, actor.id)
    return order


async def update_order_status(
    db: AsyncSession,
    actor: Actor,
    order_id: UUID,
    delivery_status: Optional[DeliveryStatus] = None,
    payment_status: Optional[PaymentStatus] = None,
    expected_delivery_status: Optional[DeliveryStatus] = None,
) -> Order:
    """
    Change delivery and/or payment status.

    Drivers may move their own orders to picked, in_transit or delivered.
    Admins may set any combination of statuses. Nobody may leave a
    terminal delivery status.
    """
    if delivery_status is None and payment_status is None:
        raise ValidationError("Provide delivery_status or payment_status")

    order = await load_order(db, order_id)
    policy.authorize_status_update(actor, order, delivery_status, payment_status)
    _ensure_expected(order, expected_delivery_status)

    values: Dict[str, Any] = {}
    if delivery_status is not None:
        if actor.is_driver:
            lifecycle.ensure_driver_transition(
                order.delivery_status,
                delivery_status,
                forward_only=get_settings().enforce_forward_progression,
            )
        else:
            lifecycle.ensure_admin_transition(
                order.delivery_status,
                delivery_status,
                has_driver=order.driver_id is not None,
            )
        values["delivery_status"] = delivery_status
    if payment_status is not None:
        values["payment_status"] = payment_status

    previous = order.delivery_status
    order = await _apply(db, order, values)
    logger.info(
        "Order %s status %s -> %s (payment %s) by %s %s",
        order.id, previous.value, order.delivery_status.value,
        order.payment_status.value, actor.role.value, actor.id,
    )
    return order


async def cancel_order(db: AsyncSession, actor: Actor, order_id: UUID) -> Order:
    """Cancel a non-terminal order. Cancelling twice is an error, not a no-op."""
    order = await load_order(db, order_id)
    policy.authorize_cancel(actor, order)
    lifecycle.ensure_cancellable(order.delivery_status)

    order = await _apply(db, order, {"delivery_status": DeliveryStatus.CANCELLED})
    logger.info("Order %s cancelled by %s %s", order.id, actor.role.value, actor.id)
    return order
