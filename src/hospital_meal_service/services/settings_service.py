"""Service for the administrative settings documents."""

import logging
from datetime import UTC, datetime

from hospital_meal_service.auth.token_service import Identity
from hospital_meal_service.models.settings_models import (
    NotificationSettings,
    NotificationSettingsUpdate,
    SettingsCategory,
    SettingsRecord,
    SystemSettings,
    SystemSettingsUpdate,
)
from hospital_meal_service.repositories.settings_repository import SettingsRepository

logger = logging.getLogger(__name__)


class SettingsService:
    """Reads and writes the system and notification settings.

    Until an admin saves a document, the defaults the service was constructed
    with (taken from the environment at startup) are returned.
    """

    def __init__(
        self,
        settings_repository: SettingsRepository,
        system_defaults: SystemSettings | None = None,
        notification_defaults: NotificationSettings | None = None,
    ) -> None:
        """Initialize the SettingsService.

        Args:
            settings_repository: Repository for settings documents
            system_defaults: System settings used when none are stored
            notification_defaults: Notification settings used when none are stored
        """
        self.settings_repository = settings_repository
        self.system_defaults = system_defaults or SystemSettings()
        self.notification_defaults = notification_defaults or NotificationSettings()

    async def get_system_settings(self) -> SystemSettings:
        record = self.settings_repository.get_settings(SettingsCategory.SYSTEM)
        if record is None:
            return self.system_defaults
        return SystemSettings.from_dynamodb_map(
            {**self.system_defaults.to_dynamodb_map(), **record.value}
        )

    async def update_system_settings(
        self, identity: Identity, changes: SystemSettingsUpdate
    ) -> SystemSettings:
        """Merge ``changes`` into the stored system settings and persist them.

        Args:
            identity: Admin making the change
            changes: Fields to change

        Returns:
            The settings as now stored
        """
        current = await self.get_system_settings()
        updated = SystemSettings.model_validate(
            {**current.model_dump(), **changes.model_dump(exclude_unset=True, exclude_none=True)}
        )
        self._save(SettingsCategory.SYSTEM, updated.to_dynamodb_map(), identity)
        return updated

    async def get_notification_settings(self) -> NotificationSettings:
        record = self.settings_repository.get_settings(SettingsCategory.NOTIFICATIONS)
        if record is None:
            return self.notification_defaults
        return NotificationSettings.from_dynamodb_map(
            {**self.notification_defaults.to_dynamodb_map(), **record.value}
        )

    async def update_notification_settings(
        self, identity: Identity, changes: NotificationSettingsUpdate
    ) -> NotificationSettings:
        """Merge ``changes`` into the stored notification settings and persist them."""
        current = await self.get_notification_settings()
        updated = NotificationSettings.model_validate(
            {**current.model_dump(), **changes.model_dump(exclude_unset=True, exclude_none=True)}
        )
        self._save(SettingsCategory.NOTIFICATIONS, updated.to_dynamodb_map(), identity)
        return updated

    async def registration_allowed(self) -> bool:
        settings = await self.get_system_settings()
        return settings.allow_registration

    def _save(self, category: SettingsCategory, value: dict, identity: Identity) -> None:
        self.settings_repository.save_settings(
            SettingsRecord(
                category=category,
                value=value,
                updated_by=identity.user_id,
                updated_at=datetime.now(UTC),
            )
        )
        logger.info(f"{category.value} settings updated by {identity.user_id}")
