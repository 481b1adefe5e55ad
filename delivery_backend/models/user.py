"""
User database model.
Holds identity, role, account status and driver-specific details.
"""

import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, String, Text, DateTime, Enum, JSON
from sqlalchemy.orm import Mapped, mapped_column

from delivery_backend.database import Base, GUID, enum_values


class UserRole(str, enum.Enum):
    """Roles an account can hold."""
    ADMIN = "admin"
    DRIVER = "driver"
    CUSTOMER = "customer"


class UserStatus(str, enum.Enum):
    """Account status. Only active accounts may authenticate or act."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    PENDING = "pending"


class User(Base):
    """
    User model shared by admins, drivers and customers.
    Drivers additionally carry vehicle and license numbers.
    """
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role <> 'driver' OR (vehicle_number IS NOT NULL AND license_number IS NOT NULL)",
            name="ck_users_driver_details",
        ),
    )
    
    id: Mapped[uuid.UUID] = mapped_column(
        GUID(),
        primary_key=True,
        default=uuid.uuid4,
    )
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    phone: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", values_callable=enum_values),
        default=UserRole.CUSTOMER,
        nullable=False,
    )
    status: Mapped[UserStatus] = mapped_column(
        Enum(UserStatus, name="user_status", values_callable=enum_values),
        default=UserStatus.ACTIVE,
        nullable=False,
    )
    profile_picture: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    # Driver-specific fields
    vehicle_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    license_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    
    # {"latitude": float, "longitude": float, "updated_at": iso timestamp}
    location: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )
    
    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
    
    @property
    def is_driver(self) -> bool:
        return self.role == UserRole.DRIVER
    
    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"
