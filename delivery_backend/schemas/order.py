"""
Pydantic schemas for order endpoints.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from delivery_backend.models.order import DeliveryStatus, PaymentStatus
from delivery_backend.schemas.common import PaginationInfo, reject_null


PRICE_MIN = Decimal("0.01")
PRICE_MAX = Decimal("99999.99")
CENTS = Decimal("0.01")


def _quantize_price(value: Optional[Decimal]) -> Optional[Decimal]:
    if value is None:
        return value
    return value.quantize(CENTS)


# ==================== Requests ====================

class OrderCreate(BaseModel):
    """Request for POST /api/orders."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "pickup_address": "12 Harbor Street, Newark",
                "pickup_lat": 40.0,
                "pickup_lng": -74.0,
                "dropoff_address": "88 Elm Avenue, Jersey City",
                "dropoff_lat": 40.1,
                "dropoff_lng": -74.1,
                "package_description": "Two boxes of books",
                "price": "25.00",
            }
        },
    )

    pickup_address: str = Field(..., min_length=5, max_length=500)
    pickup_lat: float = Field(..., ge=-90, le=90)
    pickup_lng: float = Field(..., ge=-180, le=180)
    dropoff_address: str = Field(..., min_length=5, max_length=500)
    dropoff_lat: float = Field(..., ge=-90, le=90)
    dropoff_lng: float = Field(..., ge=-180, le=180)
    package_description: str = Field(..., min_length=5, max_length=1000)
    price: Decimal = Field(..., ge=PRICE_MIN, le=PRICE_MAX)

    normalize_price = field_validator("price")(_quantize_price)


class OrderUpdate(BaseModel):
    """
    Request for PUT /api/orders/{id}.
    
    Every field is optional. Which of them are honoured depends on the
    caller's role.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    pickup_address: Optional[str] = Field(default=None, min_length=5, max_length=500)
    pickup_lat: Optional[float] = Field(default=None, ge=-90, le=90)
    pickup_lng: Optional[float] = Field(default=None, ge=-180, le=180)
    dropoff_address: Optional[str] = Field(default=None, min_length=5, max_length=500)
    dropoff_lat: Optional[float] = Field(default=None, ge=-90, le=90)
    dropoff_lng: Optional[float] = Field(default=None, ge=-180, le=180)
    package_description: Optional[str] = Field(default=None, min_length=5, max_length=1000)
    price: Optional[Decimal] = Field(default=None, ge=PRICE_MIN, le=PRICE_MAX)
    delivery_status: Optional[DeliveryStatus] = None
    payment_status: Optional[PaymentStatus] = None
    driver_id: Optional[UUID] = None

    normalize_price = field_validator("price")(_quantize_price)
    # driver_id is the only nullable column; null unassigns
    no_nulls = field_validator(
        "pickup_address", "pickup_lat", "pickup_lng",
        "dropoff_address", "dropoff_lat", "dropoff_lng",
        "package_description", "price", "delivery_status", "payment_status",
        mode="before",
    )(reject_null)


class DriverAssignmentRequest(BaseModel):
    """Request for PUT /api/orders/{id}/assign."""
    driver_id: UUID


class StatusUpdateRequest(BaseModel):
    """Request for PUT /api/orders/{id}/status."""
    delivery_status: Optional[DeliveryStatus] = None
    payment_status: Optional[PaymentStatus] = None
    expected_delivery_status: Optional[DeliveryStatus] = Field(
        default=None,
        description="Reject with 409 unless the order is currently in this status",
    )


# ==================== Responses ====================

class OrderParty(BaseModel):
    """Customer or driver summary embedded in an order."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    full_name: str
    email: str
    phone: str
    vehicle_number: Optional[str] = None


class OrderResponse(BaseModel):
    """A single order."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    driver_id: Optional[UUID] = None
    pickup_address: str
    pickup_lat: float
    pickup_lng: float
    dropoff_address: str
    dropoff_lat: float
    dropoff_lng: float
    package_description: str
    price: Decimal
    payment_status: PaymentStatus
    delivery_status: DeliveryStatus
    created_at: datetime
    updated_at: datetime
    customer: Optional[OrderParty] = None
    driver: Optional[OrderParty] = None


class OrderListResponse(BaseModel):
    """Response for GET /api/orders."""
    items: List[OrderResponse]
    pagination: PaginationInfo


class CustomerContact(BaseModel):
    """What a driver browsing unassigned orders may see of the customer."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    full_name: str
    phone: str


class AvailableOrderResponse(OrderResponse):
    """An unassigned order as listed to drivers."""
    customer: Optional[CustomerContact] = None


class AvailableOrdersResponse(BaseModel):
    """Response for GET /api/orders/available."""
    items: List[AvailableOrderResponse]
    count: int
