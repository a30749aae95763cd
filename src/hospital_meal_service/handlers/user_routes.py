"""Routes for the caller's own profile."""

from typing import Annotated

from fastapi import APIRouter, Depends

from hospital_meal_service.auth.api_dependencies import get_current_identity
from hospital_meal_service.auth.token_service import Identity
from hospital_meal_service.handlers.responses import MessageResponse, UserMutationResponse
from hospital_meal_service.handlers.service_dependencies import get_auth_service, get_user_service
from hospital_meal_service.models.user_models import (
    PasswordChangeRequest,
    ProfileStats,
    ProfileUpdateRequest,
    User,
)
from hospital_meal_service.services.auth_service import AuthService
from hospital_meal_service.services.user_service import UserService

router = APIRouter(prefix="/user", tags=["Profile"])

CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
Users = Annotated[UserService, Depends(get_user_service)]


@router.get("/profile", response_model=User)
async def get_profile(identity: CurrentIdentity, users: Users) -> User:
    return await users.get_user(identity.user_id)


@router.put("/profile", response_model=UserMutationResponse)
async def update_profile(
    body: ProfileUpdateRequest, identity: CurrentIdentity, users: Users
) -> UserMutationResponse:
    user = await users.update_profile(identity, body)
    return UserMutationResponse(message="Profile updated successfully", user=user)


@router.get("/profile-stats", response_model=ProfileStats)
async def get_profile_stats(identity: CurrentIdentity, users: Users) -> ProfileStats:
    """Order count, favourite items and last order date."""
    return await users.get_profile_stats(identity)


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    body: PasswordChangeRequest,
    identity: CurrentIdentity,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    await auth.change_password(identity, body)
    return MessageResponse(message="Password changed successfully")
