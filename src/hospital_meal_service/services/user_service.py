"""User profile and account administration."""

import logging
import math
import uuid
from collections import Counter
from datetime import UTC, datetime

from hospital_meal_service.auth.passwords import hash_password
from hospital_meal_service.auth.token_service import Identity
from hospital_meal_service.errors import ForbiddenError, InvalidRequestError, NotFoundError
from hospital_meal_service.models.user_models import (
    FavoriteItem,
    ProfileStats,
    ProfileUpdateRequest,
    Role,
    RoleCount,
    User,
    UserCreateRequest,
    UserPage,
    UserStats,
    UserUpdateRequest,
)
from hospital_meal_service.observability.decorators import traced
from hospital_meal_service.repositories.order_repository import OrderRepository
from hospital_meal_service.repositories.user_repository import UserRepository
from hospital_meal_service.services.auth_service import AuthService

logger = logging.getLogger(__name__)

RECENT_ORDER_WINDOW = 10
FAVORITE_ITEM_COUNT = 3


class UserService:
    """Service behind the profile and admin user routes."""

    def __init__(
        self,
        user_repository: UserRepository,
        order_repository: OrderRepository,
        auth_service: AuthService,
    ) -> None:
        """Initialize the UserService.

        Args:
            user_repository: Repository for users
            order_repository: Repository for orders, used for profile stats
            auth_service: Shares the uniqueness checks used at registration
        """
        self.user_repository = user_repository
        self.order_repository = order_repository
        self.auth_service = auth_service

    async def get_user(self, user_id: str) -> User:
        user = self.user_repository.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(self, identity: Identity, request: ProfileUpdateRequest) -> User:
        """Apply the caller's own profile changes.

        Raises:
            NotFoundError: Caller's account no longer exists
            InvalidRequestError: New email belongs to another account
        """
        user = await self.get_user(identity.user_id)
        changes = request.model_dump(exclude_unset=True, exclude_none=True)

        # Empty name or email means "leave unchanged"
        for key in ("full_name", "email"):
            if not changes.get(key, True):
                changes.pop(key)

        self._ensure_email_free(user, changes.get("email"))
        updated = user.model_copy(update=changes)
        self.user_repository.save_user(updated)
        return updated

    async def get_profile_stats(self, identity: Identity) -> ProfileStats:
        """Order count, top items over the last ten orders and the latest order date."""
        orders = self.order_repository.list_orders_for_user(identity.user_id)

        quantities: Counter[str] = Counter()
        for order in orders[:RECENT_ORDER_WINDOW]:
            for item in order.items:
                quantities[item.name] += item.quantity

        return ProfileStats(
            total_orders=len(orders),
            favorite_items=[
                FavoriteItem(name=name, count=count)
                for name, count in quantities.most_common(FAVORITE_ITEM_COUNT)
            ],
            last_order_date=orders[0].created_at if orders else None,
        )

    async def list_users(
        self,
        role: str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> UserPage:
        """Paged account listing for admins, newest first.

        Args:
            role: Role filter; ``None`` or ``"all"`` lists every role
            search: Case-insensitive substring matched against name, email,
                patient id and ward
            page: 1-based page number
            limit: Page size

        Returns:
            UserPage with the requested slice and totals
        """
        role_filter = None
        if role and role != "all":
            try:
                role_filter = Role(role)
            except ValueError as e:
                raise InvalidRequestError("Invalid role") from e

        users = self.user_repository.list_users(role=role_filter)

        if search:
            needle = search.lower()
            users = [
                u
                for u in users
                if any(needle in field.lower() for field in (u.full_name, u.email, u.patient_id, u.ward_number))
            ]

        page = max(page, 1)
        limit = max(limit, 1)
        return UserPage(
            users=users[(page - 1) * limit : page * limit],
            total_users=len(users),
            total_pages=math.ceil(len(users) / limit),
            current_page=page,
        )

    async def get_user_stats(self, now: datetime | None = None) -> UserStats:
        """Account counters; "today" is the current UTC calendar day."""
        today = (now or datetime.now(UTC)).date()
        users = self.user_repository.list_users()
        by_role = Counter(u.role.value for u in users)

        return UserStats(
            total_users=len(users),
            active_users=sum(1 for u in users if u.is_active),
            new_users_today=sum(1 for u in users if u.created_at.astimezone(UTC).date() == today),
            users_by_role=[RoleCount(role=r, count=c) for r, c in sorted(by_role.items())],
        )

    @traced("admin_create_user")
    async def create_user(self, request: UserCreateRequest) -> User:
        """Create an account with any role.

        Raises:
            DuplicateUserError: Email or patient id already registered
        """
        self.auth_service.ensure_unique(request.email, request.patient_id)

        user = User(
            id=str(uuid.uuid4()),
            full_name=request.full_name,
            email=request.email,
            password_hash=hash_password(request.password),
            ward_number=request.ward_number,
            bed_number=request.bed_number,
            patient_id=request.patient_id,
            contact_number=request.contact_number,
            dietary_restrictions=request.dietary_restrictions,
            role=request.role,
            created_at=datetime.now(UTC),
        )
        self.auth_service.insert(user)

        logger.info(f"Admin created {user.role.value} account {user.id}")
        return user

    @traced("admin_update_user")
    async def update_user(self, identity: Identity, user_id: str, request: UserUpdateRequest) -> User:
        """Apply admin changes to an account.

        Raises:
            NotFoundError: No such user
            InvalidRequestError: New email belongs to another account
            ForbiddenError: Change would deactivate the actor or a superadmin
        """
        user = await self.get_user(user_id)
        changes = request.model_dump(exclude_unset=True, exclude_none=True)

        for key in ("full_name", "email"):
            if not changes.get(key, True):
                changes.pop(key)

        if changes.get("is_active") is False:
            self._guard_deactivation(identity, user)

        self._ensure_email_free(user, changes.get("email"))
        updated = user.model_copy(update=changes)
        self.user_repository.save_user(updated)
        return updated

    @traced("admin_set_user_status")
    async def set_user_status(self, identity: Identity, user_id: str, is_active: bool) -> User:
        """Activate or deactivate an account.

        Raises:
            NotFoundError: No such user
            ForbiddenError: Deactivating the actor or a superadmin
        """
        user = await self.get_user(user_id)
        if not is_active:
            self._guard_deactivation(identity, user)

        updated = user.model_copy(update={"is_active": is_active})
        self.user_repository.save_user(updated)
        logger.info(f"User {user_id} {'activated' if is_active else 'deactivated'} by {identity.user_id}")
        return updated

    @traced("admin_delete_user")
    async def delete_user(self, identity: Identity, user_id: str) -> None:
        """Delete an account. Existing orders keep their owner id.

        Raises:
            NotFoundError: No such user
            ForbiddenError: Deleting the actor or a superadmin
        """
        user = await self.get_user(user_id)

        if user.role == Role.SUPERADMIN:
            raise ForbiddenError("Cannot delete superadmin account")
        if user.id == identity.user_id:
            raise ForbiddenError("Cannot delete your own account")

        if not self.user_repository.delete_user(user_id):
            raise NotFoundError("User not found")
        logger.info(f"User {user_id} deleted by {identity.user_id}")

    def _guard_deactivation(self, identity: Identity, user: User) -> None:
        if user.role == Role.SUPERADMIN:
            raise ForbiddenError("Cannot deactivate superadmin account")
        if user.id == identity.user_id:
            raise ForbiddenError("Cannot deactivate your own account")

    def _ensure_email_free(self, user: User, email: str | None) -> None:
        if not email or email == user.email:
            return
        existing = self.user_repository.get_user_by_email(email)
        if existing is not None and existing.id != user.id:
            raise InvalidRequestError("Email already in use")
