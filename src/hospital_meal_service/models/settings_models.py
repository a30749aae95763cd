"""Administrative settings documents.

Each settings category is one DynamoDB item keyed by ``category`` whose
``value`` attribute holds the whole document.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from hospital_meal_service.models.base import ApiModel, from_decimal, to_decimal


class SettingsCategory(str, Enum):
    """Settings documents stored by the service."""

    SYSTEM = "system"
    NOTIFICATIONS = "notifications"


class SystemSettings(ApiModel):
    """Service-wide operational settings."""

    app_name: str = "MediMeal"
    hospital_name: str = "General Hospital"
    contact_email: str = "admin@medimeal.com"
    delivery_fee: float = Field(default=2.50, ge=0)
    tax_rate: float = Field(default=8.5, ge=0)
    order_time_limit: int = Field(default=30, ge=0, description="Minutes")
    maintenance_mode: bool = False
    allow_registration: bool = True

    def to_dynamodb_map(self) -> dict[str, Any]:
        data = self.model_dump()
        data["delivery_fee"] = to_decimal(self.delivery_fee)
        data["tax_rate"] = to_decimal(self.tax_rate)
        return data

    @classmethod
    def from_dynamodb_map(cls, data: dict[str, Any]) -> "SystemSettings":
        values = dict(data)
        for key in ("delivery_fee", "tax_rate"):
            if key in values:
                values[key] = from_decimal(values[key])
        if "order_time_limit" in values:
            values["order_time_limit"] = int(values["order_time_limit"])
        return cls(**values)


class NotificationSettings(ApiModel):
    """Admin notification preferences."""

    email_notifications: bool = True
    order_alerts: bool = True
    daily_reports: bool = True
    system_updates: bool = False
    sms_notifications: bool = False

    def to_dynamodb_map(self) -> dict[str, Any]:
        return self.model_dump()

    @classmethod
    def from_dynamodb_map(cls, data: dict[str, Any]) -> "NotificationSettings":
        return cls(**data)


class SettingsRecord(ApiModel):
    """Stored settings document with audit fields."""

    category: SettingsCategory
    value: dict[str, Any]
    updated_by: str
    updated_at: datetime

    def to_dynamodb_item(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "value": self.value,
            "updated_by": self.updated_by,
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "SettingsRecord":
        return cls(
            category=SettingsCategory(item["category"]),
            value=dict(item["value"]),
            updated_by=item["updated_by"],
            updated_at=datetime.fromisoformat(item["updated_at"]),
        )


class SystemSettingsUpdate(ApiModel):
    """Partial update of the system settings. Omitted fields are left unchanged."""

    app_name: str | None = None
    hospital_name: str | None = None
    contact_email: str | None = None
    delivery_fee: float | None = Field(None, ge=0)
    tax_rate: float | None = Field(None, ge=0)
    order_time_limit: int | None = Field(None, ge=0)
    maintenance_mode: bool | None = None
    allow_registration: bool | None = None


class NotificationSettingsUpdate(ApiModel):
    """Partial update of the notification preferences."""

    email_notifications: bool | None = None
    order_alerts: bool | None = None
    daily_reports: bool | None = None
    system_updates: bool | None = None
    sms_notifications: bool | None = None
