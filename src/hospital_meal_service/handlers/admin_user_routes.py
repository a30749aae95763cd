"""Admin account management routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from hospital_meal_service.auth.api_dependencies import require_admin
from hospital_meal_service.auth.token_service import Identity
from hospital_meal_service.handlers.responses import MessageResponse, UserMutationResponse
from hospital_meal_service.handlers.service_dependencies import get_user_service
from hospital_meal_service.models.user_models import (
    User,
    UserCreateRequest,
    UserPage,
    UserStats,
    UserStatusRequest,
    UserUpdateRequest,
)
from hospital_meal_service.services.user_service import UserService

router = APIRouter(prefix="/admin/users", tags=["Admin Users"])

AdminIdentity = Annotated[Identity, Depends(require_admin)]
Users = Annotated[UserService, Depends(get_user_service)]


@router.get("", response_model=UserPage)
async def list_users(
    _admin: AdminIdentity,
    users: Users,
    role: str | None = None,
    search: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1)] = 50,
) -> UserPage:
    """Paged listing with optional role filter and text search."""
    return await users.list_users(role=role, search=search, page=page, limit=limit)


@router.get("/stats", response_model=UserStats)
async def get_user_stats(_admin: AdminIdentity, users: Users) -> UserStats:
    return await users.get_user_stats()


@router.post("", response_model=UserMutationResponse, status_code=201)
async def create_user(body: UserCreateRequest, _admin: AdminIdentity, users: Users) -> UserMutationResponse:
    user = await users.create_user(body)
    return UserMutationResponse(message="User created successfully", user=user)


@router.get("/{user_id}", response_model=User)
async def get_user(user_id: str, _admin: AdminIdentity, users: Users) -> User:
    return await users.get_user(user_id)


@router.put("/{user_id}", response_model=UserMutationResponse)
async def update_user(
    user_id: str, body: UserUpdateRequest, admin: AdminIdentity, users: Users
) -> UserMutationResponse:
    user = await users.update_user(admin, user_id, body)
    return UserMutationResponse(message="User updated successfully", user=user)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: str, admin: AdminIdentity, users: Users) -> MessageResponse:
    """Delete an account. Superadmins and the caller's own account are protected."""
    await users.delete_user(admin, user_id)
    return MessageResponse(message="User deleted successfully")


@router.patch("/{user_id}/status", response_model=UserMutationResponse)
async def set_user_status(
    user_id: str, body: UserStatusRequest, admin: AdminIdentity, users: Users
) -> UserMutationResponse:
    user = await users.set_user_status(admin, user_id, body.is_active)
    state = "activated" if body.is_active else "deactivated"
    return UserMutationResponse(message=f"User {state} successfully", user=user)
