"""
Profile and user-management endpoints.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_backend.api.deps import get_actor, get_current_user, get_image_storage, require_role
from delivery_backend.config import get_settings
from delivery_backend.database import get_db
from delivery_backend.models import User, UserRole, UserStatus
from delivery_backend.schemas.common import MessageResponse, PaginationInfo
from delivery_backend.schemas.user import (
    LocationResponse,
    LocationUpdateRequest,
    PasswordChangeRequest,
    ProfilePictureResponse,
    UserListResponse,
    UserResponse,
    UsersByRoleResponse,
    UserUpdate,
)
from delivery_backend.services import user_service
from delivery_backend.services.policy import Actor
from delivery_backend.services.storage import ImageStorage

router = APIRouter(tags=["Users"])

settings = get_settings()

require_admin = require_role(UserRole.ADMIN)


# ==================== Own profile ====================

@router.get("/profile", response_model=UserResponse, summary="Current user profile")
async def get_profile_endpoint(
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.put("/profile", response_model=UserResponse, summary="Update own profile")
async def update_profile_endpoint(
    payload: UserUpdate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await user_service.update_user(
        db, actor, actor.id, payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    return UserResponse.model_validate(user)


@router.post(
    "/profile/picture",
    response_model=ProfilePictureResponse,
    summary="Upload profile picture",
    description="Multipart upload under the field name profile_picture.",
)
async def upload_profile_picture_endpoint(
    profile_picture: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    storage: ImageStorage = Depends(get_image_storage),
    db: AsyncSession = Depends(get_db),
) -> ProfilePictureResponse:
    data = await profile_picture.read()
    url, key = await user_service.set_profile_picture(
        db,
        current_user,
        storage,
        data,
        profile_picture.content_type,
        profile_picture.filename,
    )
    await db.commit()
    return ProfilePictureResponse(
        profile_picture=url,
        key=key,
        size=len(data),
        content_type=profile_picture.content_type,
    )


@router.put("/profile/location", response_model=LocationResponse, summary="Update location")
async def update_location_endpoint(
    payload: LocationUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> LocationResponse:
    location = await user_service.update_location(
        db, current_user, payload.latitude, payload.longitude
    )
    await db.commit()
    return LocationResponse(**location)


@router.put("/profile/password", response_model=MessageResponse, summary="Change password")
async def change_password_endpoint(
    payload: PasswordChangeRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await user_service.change_password(
        db, current_user, payload.current_password, payload.new_password
    )
    await db.commit()
    return MessageResponse(message="Password changed successfully")


# ==================== User management ====================

@router.get(
    "/users",
    response_model=UserListResponse,
    summary="List users",
    dependencies=[Depends(require_admin)],
)
async def list_users_endpoint(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    role: Optional[UserRole] = Query(default=None),
    status: Optional[UserStatus] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=200),
    db: AsyncSession = Depends(get_db),
) -> UserListResponse:
    users, total_items = await user_service.list_users(
        db, role=role, status=status, search=search, page=page, limit=limit
    )
    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        pagination=PaginationInfo.build(page, limit, total_items),
    )


@router.get(
    "/users/role/{role}",
    response_model=UsersByRoleResponse,
    summary="List users by role",
    dependencies=[Depends(require_admin)],
)
async def list_users_by_role_endpoint(
    role: UserRole,
    db: AsyncSession = Depends(get_db),
) -> UsersByRoleResponse:
    users = await user_service.list_users_by_role(db, role)
    return UsersByRoleResponse(
        items=[UserResponse.model_validate(u) for u in users],
        count=len(users),
    )


@router.get("/users/{user_id}", response_model=UserResponse, summary="Get user")
async def get_user_endpoint(
    user_id: UUID,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await user_service.get_visible_user(db, actor, user_id)
    return UserResponse.model_validate(user)


@router.put("/users/{user_id}", response_model=UserResponse, summary="Update user")
async def update_user_endpoint(
    user_id: UUID,
    payload: UserUpdate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await user_service.update_user(
        db, actor, user_id, payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    return UserResponse.model_validate(user)


@router.delete("/users/{user_id}", response_model=MessageResponse, summary="Delete user")
async def delete_user_endpoint(
    user_id: UUID,
    actor: Actor = Depends(get_actor),
    storage: ImageStorage = Depends(get_image_storage),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await user_service.delete_user(db, actor, user_id, storage)
    await db.commit()
    return MessageResponse(message="User deleted successfully")
