"""
Pydantic schemas for authentication, profile and user management endpoints.
"""

import re
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from delivery_backend.models.user import UserRole, UserStatus
from delivery_backend.schemas.common import PaginationInfo, reject_null


EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
PHONE_PATTERN = r"^\+?[1-9]\d{0,15}$"


def _normalize_email(value: Optional[str]) -> Optional[str]:
    return value.lower() if value else value


def _check_password_strength(value: str) -> str:
    if not (re.search(r"[a-z]", value) and re.search(r"[A-Z]", value) and re.search(r"\d", value)):
        raise ValueError(
            "Password must contain at least one lowercase letter, "
            "one uppercase letter, and one number"
        )
    return value


# ==================== Authentication ====================

class UserRegister(BaseModel):
    """Request for POST /api/register."""
    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str = Field(..., min_length=2, max_length=100)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    phone: str = Field(..., pattern=PHONE_PATTERN)
    password: str = Field(..., min_length=6, max_length=100)
    role: UserRole = UserRole.CUSTOMER
    address: Optional[str] = Field(default=None, max_length=500)
    vehicle_number: Optional[str] = Field(default=None, max_length=20)
    license_number: Optional[str] = Field(default=None, max_length=50)

    normalize_email = field_validator("email")(_normalize_email)
    check_password = field_validator("password")(_check_password_strength)

    @model_validator(mode="after")
    def check_driver_fields(self) -> "UserRegister":
        if self.role == UserRole.DRIVER:
            if not self.vehicle_number:
                raise ValueError("Vehicle number is required for drivers")
            if not self.license_number:
                raise ValueError("License number is required for drivers")
        else:
            self.vehicle_number = None
            self.license_number = None
        return self


class UserLogin(BaseModel):
    """Request for POST /api/login."""
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)

    normalize_email = field_validator("email")(_normalize_email)


# ==================== Profile ====================

class UserUpdate(BaseModel):
    """Request for PUT /api/profile and PUT /api/users/{id}."""
    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    address: Optional[str] = Field(default=None, max_length=500)
    vehicle_number: Optional[str] = Field(default=None, max_length=20)
    license_number: Optional[str] = Field(default=None, max_length=50)
    status: Optional[UserStatus] = None

    normalize_email = field_validator("email")(_normalize_email)
    no_nulls = field_validator("full_name", "email", "phone", "status", mode="before")(reject_null)


class PasswordChangeRequest(BaseModel):
    """Request for PUT /api/profile/password."""
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=100)
    confirm_password: str

    check_password = field_validator("new_password")(_check_password_strength)

    @model_validator(mode="after")
    def check_confirmation(self) -> "PasswordChangeRequest":
        if self.confirm_password != self.new_password:
            raise ValueError("Password confirmation does not match new password")
        return self


class LocationUpdateRequest(BaseModel):
    """Request for PUT /api/profile/location."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationResponse(BaseModel):
    latitude: float
    longitude: float
    updated_at: datetime


# ==================== Responses ====================

class UserResponse(BaseModel):
    """Public view of a user. Never includes credential material."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    full_name: str
    email: str
    phone: str
    role: UserRole
    status: UserStatus
    profile_picture: Optional[str] = None
    address: Optional[str] = None
    vehicle_number: Optional[str] = None
    license_number: Optional[str] = None
    location: Optional[dict] = None
    created_at: datetime
    updated_at: datetime


class AuthResponse(BaseModel):
    """Response for register and login."""
    user: UserResponse
    token: str
    token_type: str = "bearer"
    expires_at: datetime


class UserListResponse(BaseModel):
    """Response for GET /api/users."""
    items: List[UserResponse]
    pagination: PaginationInfo


class UsersByRoleResponse(BaseModel):
    """Response for GET /api/users/role/{role}."""
    items: List[UserResponse]
    count: int


class ProfilePictureResponse(BaseModel):
    """Response for POST /api/profile/picture."""
    profile_picture: str
    key: str
    size: int
    content_type: str
