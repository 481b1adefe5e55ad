"""
Order database model.
The central entity of the marketplace: a package moved from pickup to dropoff.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional, TYPE_CHECKING

from sqlalchemy import CheckConstraint, Float, Text, Numeric, DateTime, Enum, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from delivery_backend.database import Base, GUID, enum_values

if TYPE_CHECKING:
    from delivery_backend.models.user import User


class DeliveryStatus(str, enum.Enum):
    """Lifecycle stage of the physical delivery."""
    PENDING = "pending"
    ASSIGNED = "assigned"
    PICKED = "picked"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    """Settlement state of the order price."""
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class Order(Base):
    """
    Order model. Never physically deleted; cancellation is a status.
    """
    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_customer_delivery_status", "customer_id", "delivery_status"),
        Index("ix_orders_driver_delivery_status", "driver_id", "delivery_status"),
        CheckConstraint("pickup_lat BETWEEN -90 AND 90 AND dropoff_lat BETWEEN -90 AND 90", name="ck_orders_latitude"),
        CheckConstraint("pickup_lng BETWEEN -180 AND 180 AND dropoff_lng BETWEEN -180 AND 180", name="ck_orders_longitude"),
        CheckConstraint("price >= 0.01 AND price <= 99999.99", name="ck_orders_price"),
    )
    
    id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        primary_key=True,
        default=uuid.uuid4,
    )
    customer_id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    driver_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        GUID(),
        ForeignKey("users.id"),
        nullable=True,
        index=True,
    )
    
    pickup_address: Mapped[str] = mapped_column(Text, nullable=False)
    pickup_lat: Mapped[float] = mapped_column(Float, nullable=False)
    pickup_lng: Mapped[float] = mapped_column(Float, nullable=False)
    dropoff_address: Mapped[str] = mapped_column(Text, nullable=False)
    dropoff_lat: Mapped[float] = mapped_column(Float, nullable=False)
    dropoff_lng: Mapped[float] = mapped_column(Float, nullable=False)
    package_description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, name="payment_status", values_callable=enum_values),
        default=PaymentStatus.PENDING,
        nullable=False,
        index=True,
    )
    delivery_status: Mapped[DeliveryStatus] = mapped_column(
        Enum(DeliveryStatus, name="delivery_status", values_callable=enum_values),
        default=DeliveryStatus.PENDING,
        nullable=False,
        index=True,
    )
    
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )
    
    # Relationships
    customer: Mapped["User"] = relationship("User", foreign_keys=[customer_id])
    driver: Mapped[Optional["User"]] = relationship("User", foreign_keys=[driver_id])
    
    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, delivery_status={self.delivery_status.value}, "
            f"payment_status={self.payment_status.value})>"
        )
