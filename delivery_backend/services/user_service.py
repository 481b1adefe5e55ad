"""
User-facing service layer: registration, login, profile and admin user management.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_backend.config import get_settings
from delivery_backend.core.errors import (
    AuthenticationFailed,
    AuthorizationDenied,
    InvalidState,
    NotFound,
    StorageError,
    ValidationError,
)
from delivery_backend.core.security import hash_password, verify_password, revoke_user_tokens
from delivery_backend.models import Order, User, UserRole, UserStatus
from delivery_backend.schemas.user import UserRegister
from delivery_backend.services.policy import Actor
from delivery_backend.services.storage import ImageStorage


logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: UUID) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


async def get_visible_user(db: AsyncSession, actor: Actor, user_id: UUID) -> User:
    """Users may read themselves; admins may read anyone."""
    if not actor.is_admin and actor.id != user_id:
        raise AuthorizationDenied("Access denied - insufficient permissions")
    return await get_user(db, user_id)


async def _ensure_unique_contact(
    db: AsyncSession,
    email: Optional[str],
    phone: Optional[str],
    exclude_id: Optional[UUID] = None,
) -> None:
    clauses = []
    if email:
        clauses.append(User.email == email)
    if phone:
        clauses.append(User.phone == phone)
    if not clauses:
        return
    query = select(User.id).where(or_(*clauses))
    if exclude_id is not None:
        query = query.where(User.id != exclude_id)
    result = await db.execute(query.limit(1))
    if result.scalar_one_or_none() is not None:
        raise ValidationError("User with this email or phone already exists")


async def register_user(db: AsyncSession, payload: UserRegister) -> User:
    """Create an active account. Admin accounts need explicit opt-in."""
    if payload.role == UserRole.ADMIN and not get_settings().allow_admin_registration:
        raise AuthorizationDenied("Admin accounts cannot be self-registered")

    await _ensure_unique_contact(db, payload.email, payload.phone)

    user = User(
        full_name=payload.full_name,
        email=payload.email,
        phone=payload.phone,
        password_hash=hash_password(payload.password),
        role=payload.role,
        status=UserStatus.ACTIVE,
        address=payload.address,
        vehicle_number=payload.vehicle_number,
        license_number=payload.license_number,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("Registered %s %s", user.role.value, user.id)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    result = await db.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login for %s", email)
        raise AuthenticationFailed("Invalid credentials")
    if not user.is_active:
        logger.warning("Login refused for %s account %s", user.status.value, user.id)
        raise AuthenticationFailed("Account is not active. Please contact support.")
    return user


async def update_user(
    db: AsyncSession,
    actor: Actor,
    user_id: UUID,
    changes: Dict[str, Any],
) -> User:
    """
    Update profile fields of ``user_id``.

    Users may edit themselves; admins may edit anyone and are the only
    ones who may change account status.
    """
    if not actor.is_admin and actor.id != user_id:
        raise AuthorizationDenied("Access denied - insufficient permissions")
    if "status" in changes and not actor.is_admin:
        raise AuthorizationDenied("Only admins can change account status")

    user = await get_user(db, user_id)

    if user.is_driver:
        for field in ("vehicle_number", "license_number"):
            if field in changes and not changes[field]:
                raise ValidationError(f"{field.replace('_', ' ').capitalize()} is required for drivers")
    else:
        changes.pop("vehicle_number", None)
        changes.pop("license_number", None)

    for field in ("full_name", "email", "phone", "status"):
        if field in changes and changes[field] is None:
            raise ValidationError(f"{field} cannot be empty")

    await _ensure_unique_contact(db, changes.get("email"), changes.get("phone"), exclude_id=user.id)

    for field, value in changes.items():
        setattr(user, field, value)
    await db.flush()
    await db.refresh(user)

    if "status" in changes and user.status != UserStatus.ACTIVE:
        revoke_user_tokens(user.id)

    logger.info("User %s updated by %s: %s", user.id, actor.id, ", ".join(sorted(changes)))
    return user


async def change_password(
    db: AsyncSession,
    user: User,
    current_password: str,
    new_password: str,
) -> None:
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")
    user.password_hash = hash_password(new_password)
    await db.flush()
    logger.info("Password changed for user %s", user.id)


async def update_location(
    db: AsyncSession,
    user: User,
    latitude: float,
    longitude: float,
) -> dict:
    location = {
        "latitude": latitude,
        "longitude": longitude,
        "updated_at": datetime.utcnow().isoformat(),
    }
    user.location = location
    await db.flush()
    return location


async def list_users(
    db: AsyncSession,
    role: Optional[UserRole] = None,
    status: Optional[UserStatus] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> Tuple[List[User], int]:
    """Paginated user listing, newest first."""
    conditions = []
    if role is not None:
        conditions.append(User.role == role)
    if status is not None:
        conditions.append(User.status == status)
    if search:
        pattern = f"%{search.strip()}%"
        conditions.append(or_(
            User.full_name.ilike(pattern),
            User.email.ilike(pattern),
            User.phone.ilike(pattern),
        ))

    total_result = await db.execute(select(func.count(User.id)).where(*conditions))
    total_items = total_result.scalar() or 0

    result = await db.execute(
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total_items


async def list_users_by_role(db: AsyncSession, role: UserRole) -> List[User]:
    result = await db.execute(
        select(User).where(User.role == role).order_by(User.created_at.desc())
    )
    return list(result.scalars().all())


async def set_profile_picture(
    db: AsyncSession,
    user: User,
    storage: ImageStorage,
    data: bytes,
    content_type: Optional[str],
    filename: Optional[str],
) -> Tuple[str, str]:
    """
    Upload a new profile picture and drop the previous one.

    Returns:
        (public URL, object key)
    """
    storage.validate(content_type, len(data))

    key = storage.build_key(user.id, filename)
    url = await storage.upload(data, content_type, key)

    old_key = storage.key_from_url(user.profile_picture)
    user.profile_picture = url
    await db.flush()

    if old_key and old_key != key:
        try:
            await storage.delete(old_key)
        except StorageError:
            logger.warning("Could not remove previous picture %s of user %s", old_key, user.id)

    return url, key


async def delete_user(
    db: AsyncSession,
    actor: Actor,
    user_id: UUID,
    storage: ImageStorage,
) -> None:
    """Delete an account and its stored images (admin only)."""
    if not actor.is_admin:
        raise AuthorizationDenied("Only admins can delete users")
    if actor.id == user_id:
        raise InvalidState("Cannot delete your own account")

    user = await get_user(db, user_id)

    # Orders are never deleted, so neither are the users they reference
    order_count = await db.execute(
        select(func.count(Order.id)).where(
            or_(Order.customer_id == user.id, Order.driver_id == user.id)
        )
    )
    if order_count.scalar():
        raise InvalidState("User is referenced by orders and cannot be deleted")

    if user.profile_picture:
        for image in await storage.list_prefix(f"{user.id}/"):
            await storage.delete(image["key"])

    await db.delete(user)
    await db.flush()
    revoke_user_tokens(user.id)
    logger.info("User %s deleted by admin %s", user.id, actor.id)
