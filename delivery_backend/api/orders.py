"""
Order endpoints.

Routers only translate HTTP to lifecycle-engine calls; every permission
decision is made by ``services.policy``.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_backend.api.deps import get_actor
from delivery_backend.config import get_settings
from delivery_backend.database import get_db
from delivery_backend.models import DeliveryStatus, PaymentStatus
from delivery_backend.schemas.common import PaginationInfo
from delivery_backend.schemas.order import (
    AvailableOrderResponse,
    AvailableOrdersResponse,
    DriverAssignmentRequest,
    OrderCreate,
    OrderListResponse,
    OrderResponse,
    OrderUpdate,
    StatusUpdateRequest,
)
from delivery_backend.services import order_service
from delivery_backend.services.policy import Actor

router = APIRouter(prefix="/orders", tags=["Orders"])

settings = get_settings()


# Must be declared before /{order_id}
@router.get(
    "/available",
    response_model=AvailableOrdersResponse,
    summary="Available orders",
    description="Pending, unassigned orders, oldest first.",
)
async def list_available_orders_endpoint(
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> AvailableOrdersResponse:
    orders = await order_service.list_available_orders(db, actor)
    return AvailableOrdersResponse(
        items=[AvailableOrderResponse.model_validate(o) for o in orders],
        count=len(orders),
    )


@router.get(
    "",
    response_model=OrderListResponse,
    summary="List orders",
    description="Paginated orders visible to the caller, newest first.",
)
async def list_orders_endpoint(
    page: int = Query(default=1, ge=1, description="Page number"),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page"),
    delivery_status: Optional[DeliveryStatus] = Query(default=None),
    payment_status: Optional[PaymentStatus] = Query(default=None),
    customer_id: Optional[UUID] = Query(default=None, description="Admin only"),
    driver_id: Optional[UUID] = Query(default=None, description="Admin only"),
    search: Optional[str] = Query(default=None, max_length=200, description="Matches addresses and description"),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    orders, total_items = await order_service.list_orders(
        db,
        actor,
        delivery_status=delivery_status,
        payment_status=payment_status,
        customer_id=customer_id,
        driver_id=driver_id,
        search=search,
        page=page,
        limit=limit,
    )
    return OrderListResponse(
        items=[OrderResponse.model_validate(o) for o in orders],
        pagination=PaginationInfo.build(page, limit, total_items),
    )


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order",
)
async def get_order_endpoint(
    order_id: UUID,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await order_service.get_order(db, actor, order_id)
    return OrderResponse.model_validate(order)


@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create order",
    description="Create a pending order owned by the caller.",
)
async def create_order_endpoint(
    payload: OrderCreate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await order_service.create_order(db, actor, payload)
    await db.commit()
    return OrderResponse.model_validate(order)


@router.put(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Update order",
    description="Partial update; writable fields depend on the caller's role.",
)
async def update_order_endpoint(
    order_id: UUID,
    payload: OrderUpdate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await order_service.update_order(
        db, actor, order_id, payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    return OrderResponse.model_validate(order)


@router.delete(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Cancel order",
    description="Orders are never removed; this moves them to cancelled.",
)
async def cancel_order_endpoint(
    order_id: UUID,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await order_service.cancel_order(db, actor, order_id)
    await db.commit()
    return OrderResponse.model_validate(order)


@router.put(
    "/{order_id}/status",
    response_model=OrderResponse,
    summary="Update order status",
    description="Drivers advance their deliveries; admins set delivery and payment status.",
)
async def update_order_status_endpoint(
    order_id: UUID,
    payload: StatusUpdateRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await order_service.update_order_status(
        db,
        actor,
        order_id,
        delivery_status=payload.delivery_status,
        payment_status=payload.payment_status,
        expected_delivery_status=payload.expected_delivery_status,
    )
    await db.commit()
    return OrderResponse.model_validate(order)


@router.put(
    "/{order_id}/assign",
    response_model=OrderResponse,
    summary="Assign driver",
    description="Assign an active driver to a pending order (admin only).",
)
async def assign_driver_endpoint(
    order_id: UUID,
    payload: DriverAssignmentRequest,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await order_service.assign_driver(db, actor, order_id, payload.driver_id)
    await db.commit()
    return OrderResponse.model_validate(order)
