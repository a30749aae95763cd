"""User account models.

Role is a single closed enum shared by the user schema and every
authorization check, so ``superadmin`` is a first-class role everywhere.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from hospital_meal_service.models.base import ApiModel


class Role(str, Enum):
    """Enumeration of account roles."""

    PATIENT = "patient"
    STAFF = "staff"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


ADMIN_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.SUPERADMIN})


class OwnerSummary(ApiModel):
    """Reduced user projection attached to orders for display."""

    id: str
    full_name: str
    email: str
    ward_number: str = ""
    bed_number: str = ""
    patient_id: str = ""


class User(ApiModel):
    """Registered account.

    Stored in DynamoDB with ``user_id`` as partition key. The password hash is
    excluded from every serialization so it can never leak into a response; it
    defaults to empty so a serialized user still validates as a response model.
    """

    id: str = Field(..., description="Unique user identifier")
    full_name: str = Field(..., description="Display name")
    email: str = Field(..., description="Login email, unique")
    password_hash: str = Field(default="", exclude=True, description="Hashed credential")
    ward_number: str = Field(default="", description="Hospital ward")
    bed_number: str = Field(default="", description="Bed within the ward")
    patient_id: str = Field(default="", description="Hospital patient identifier, unique when set")
    contact_number: str = Field(default="")
    dietary_restrictions: list[str] = Field(default_factory=list)
    role: Role = Field(default=Role.PATIENT)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(..., description="Account creation timestamp")

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    def owner_summary(self) -> OwnerSummary:
        """Project the fields shown next to an order."""
        return OwnerSummary(
            id=self.id,
            full_name=self.full_name,
            email=self.email,
            ward_number=self.ward_number,
            bed_number=self.bed_number,
            patient_id=self.patient_id,
        )

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "user_id": self.id,
            "full_name": self.full_name,
            "email": self.email,
            "password_hash": self.password_hash,
            "ward_number": self.ward_number,
            "bed_number": self.bed_number,
            "contact_number": self.contact_number,
            "dietary_restrictions": self.dietary_restrictions,
            "role": self.role.value,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
        }

        # Empty strings cannot be GSI keys, so the attribute is omitted instead
        if self.patient_id:
            item["patient_id"] = self.patient_id

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "User":
        """Create User from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            User: Parsed model instance
        """
        return cls(
            id=item["user_id"],
            full_name=item["full_name"],
            email=item["email"],
            password_hash=item["password_hash"],
            ward_number=item.get("ward_number", ""),
            bed_number=item.get("bed_number", ""),
            patient_id=item.get("patient_id", ""),
            contact_number=item.get("contact_number", ""),
            dietary_restrictions=list(item.get("dietary_restrictions", [])),
            role=Role(item.get("role", Role.PATIENT.value)),
            is_active=item.get("is_active", True),
            created_at=datetime.fromisoformat(item["created_at"]),
        )


def _normalize_email(value: str) -> str:
    return value.strip().lower()


class RegisterRequest(ApiModel):
    """Self-service registration payload. Always creates a patient account."""

    full_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    ward_number: str = ""
    bed_number: str = ""
    patient_id: str = ""
    contact_number: str = ""
    dietary_restrictions: list[str] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class LoginRequest(ApiModel):
    """Credentials for token issuance."""

    email: str | None = None
    password: str | None = None


class SuperadminSetupRequest(ApiModel):
    """First-run superadmin bootstrap payload."""

    full_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class UserCreateRequest(ApiModel):
    """Admin-side account creation payload."""

    full_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    role: Role = Role.PATIENT
    ward_number: str = ""
    bed_number: str = ""
    patient_id: str = ""
    contact_number: str = ""
    dietary_restrictions: list[str] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class UserUpdateRequest(ApiModel):
    """Admin-side partial update. Omitted fields are left unchanged."""

    full_name: str | None = None
    email: str | None = None
    role: Role | None = None
    ward_number: str | None = None
    bed_number: str | None = None
    contact_number: str | None = None
    dietary_restrictions: list[str] | None = None
    is_active: bool | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return _normalize_email(v) if v else v


class ProfileUpdateRequest(ApiModel):
    """Fields a user may change on their own profile."""

    full_name: str | None = None
    email: str | None = None
    contact_number: str | None = None
    dietary_restrictions: list[str] | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return _normalize_email(v) if v else v


class UserStatusRequest(ApiModel):
    """Activate or deactivate an account."""

    is_active: bool


class PasswordChangeRequest(ApiModel):
    """Password rotation payload."""

    current_password: str | None = None
    new_password: str | None = None


class UserPage(ApiModel):
    """One page of the admin user listing."""

    users: list[User]
    total_users: int
    total_pages: int
    current_page: int


class RoleCount(ApiModel):
    """Number of accounts holding a role."""

    role: str = Field(..., alias="_id")
    count: int


class UserStats(ApiModel):
    """Admin dashboard account counters."""

    total_users: int
    active_users: int
    new_users_today: int
    users_by_role: list[RoleCount]


class FavoriteItem(ApiModel):
    """Menu item name with the quantity a user ordered."""

    name: str
    count: int


class ProfileStats(ApiModel):
    """Ordering summary shown on a user's profile."""

    total_orders: int
    favorite_items: list[FavoriteItem]
    last_order_date: datetime | None = None
