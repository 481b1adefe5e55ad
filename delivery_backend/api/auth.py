"""
Authentication endpoints: register, login, logout.
"""

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from delivery_backend.api.deps import get_current_user, security
from delivery_backend.core.security import create_access_token, revoke_token
from delivery_backend.database import get_db
from delivery_backend.models import User
from delivery_backend.schemas.common import MessageResponse
from delivery_backend.schemas.user import AuthResponse, UserLogin, UserRegister, UserResponse
from delivery_backend.services.user_service import authenticate, register_user

router = APIRouter(tags=["Auth"])


def _auth_response(user: User) -> AuthResponse:
    token, expires_at = create_access_token(user.id)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        token=token,
        expires_at=expires_at,
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create a customer or driver account and return an access token.",
)
async def register_endpoint(
    payload: UserRegister,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    user = await register_user(db, payload)
    await db.commit()
    return _auth_response(user)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login",
    description="Exchange email and password for an access token.",
)
async def login_endpoint(
    payload: UserLogin,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    user = await authenticate(db, payload.email, payload.password)
    return _auth_response(user)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout",
    description="Revoke the access token used for this request.",
)
async def logout_endpoint(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    current_user: User = Depends(get_current_user),
) -> MessageResponse:
    revoke_token(credentials.credentials)
    return MessageResponse(message="Logged out")
