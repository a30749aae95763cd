"""Admin settings routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from hospital_meal_service.auth.api_dependencies import require_admin
from hospital_meal_service.auth.token_service import Identity
from hospital_meal_service.handlers.responses import MessageResponse
from hospital_meal_service.handlers.service_dependencies import get_auth_service, get_settings_service
from hospital_meal_service.models.base import ApiModel
from hospital_meal_service.models.settings_models import (
    NotificationSettings,
    NotificationSettingsUpdate,
    SystemSettings,
    SystemSettingsUpdate,
)
from hospital_meal_service.models.user_models import PasswordChangeRequest
from hospital_meal_service.services.auth_service import AuthService
from hospital_meal_service.services.settings_service import SettingsService

router = APIRouter(prefix="/admin/settings", tags=["Admin Settings"])

AdminIdentity = Annotated[Identity, Depends(require_admin)]
Settings = Annotated[SettingsService, Depends(get_settings_service)]


class SystemSettingsResponse(ApiModel):
    message: str
    settings: SystemSettings


class NotificationSettingsResponse(ApiModel):
    message: str
    settings: NotificationSettings


@router.get("/system", response_model=SystemSettings)
async def get_system_settings(_admin: AdminIdentity, settings: Settings) -> SystemSettings:
    return await settings.get_system_settings()


@router.put("/system", response_model=SystemSettingsResponse)
async def update_system_settings(
    body: SystemSettingsUpdate, admin: AdminIdentity, settings: Settings
) -> SystemSettingsResponse:
    updated = await settings.update_system_settings(admin, body)
    return SystemSettingsResponse(message="System settings updated successfully", settings=updated)


@router.get("/notifications", response_model=NotificationSettings)
async def get_notification_settings(_admin: AdminIdentity, settings: Settings) -> NotificationSettings:
    return await settings.get_notification_settings()


@router.put("/notifications", response_model=NotificationSettingsResponse)
async def update_notification_settings(
    body: NotificationSettingsUpdate, admin: AdminIdentity, settings: Settings
) -> NotificationSettingsResponse:
    updated = await settings.update_notification_settings(admin, body)
    return NotificationSettingsResponse(
        message="Notification settings updated successfully", settings=updated
    )


@router.put("/change-password", response_model=MessageResponse)
async def change_admin_password(
    body: PasswordChangeRequest,
    admin: AdminIdentity,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> MessageResponse:
    await auth.change_password(admin, body)
    return MessageResponse(message="Password changed successfully")
