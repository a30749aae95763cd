"""Unit tests for UserService."""

from datetime import UTC, datetime

import pytest

from hospital_meal_service.auth.token_service import Identity, TokenService
from hospital_meal_service.errors import (
    DuplicateUserError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
)
from hospital_meal_service.models.order_models import OrderItem
from hospital_meal_service.models.user_models import (
    ProfileUpdateRequest,
    Role,
    User,
    UserCreateRequest,
    UserUpdateRequest,
)
from hospital_meal_service.repositories.order_repository import OrderRepository
from hospital_meal_service.repositories.settings_repository import SettingsRepository
from hospital_meal_service.repositories.user_repository import UserRepository
from hospital_meal_service.services.auth_service import AuthService
from hospital_meal_service.services.settings_service import SettingsService
from hospital_meal_service.services.user_service import UserService
from tests.conftest import FakeDynamoResource
from tests.factories import make_order, make_user


def identity_for(user: User) -> Identity:
    return Identity(user_id=user.id, role=user.role, email=user.email)


@pytest.mark.unit
class TestUserService:
    """Test suite for UserService."""

    @pytest.fixture
    def user_repo(
        self, fake_dynamodb: FakeDynamoResource, patient: User, admin: User, superadmin: User
    ) -> UserRepository:
        repo = UserRepository(dynamodb_resource=fake_dynamodb, table_name="test-users")
        for user in (patient, admin, superadmin):
            repo.create_user(user)
        return repo

    @pytest.fixture
    def order_repo(self, fake_dynamodb: FakeDynamoResource) -> OrderRepository:
        return OrderRepository(dynamodb_resource=fake_dynamodb, table_name="test-orders")

    @pytest.fixture
    def service(
        self,
        fake_dynamodb: FakeDynamoResource,
        user_repo: UserRepository,
        order_repo: OrderRepository,
        token_service: TokenService,
    ) -> UserService:
        """Create a UserService over in-memory tables."""
        settings_service = SettingsService(
            settings_repository=SettingsRepository(dynamodb_resource=fake_dynamodb, table_name="test-settings")
        )
        auth_service = AuthService(
            user_repository=user_repo, token_service=token_service, settings_service=settings_service
        )
        return UserService(user_repository=user_repo, order_repository=order_repo, auth_service=auth_service)

    @pytest.mark.asyncio
    async def test_get_user_not_found(self, service: UserService) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            await service.get_user("ghost")

        assert exc_info.value.message == "User not found"

    @pytest.mark.asyncio
    async def test_update_profile(self, service: UserService, patient: User) -> None:
        updated = await service.update_profile(
            identity_for(patient),
            ProfileUpdateRequest(full_name="", email="New@Example.com", contact_number="555-0101"),
        )

        assert updated.full_name == patient.full_name
        assert updated.email == "new@example.com"
        assert updated.contact_number == "555-0101"
        assert updated.password_hash == patient.password_hash
        assert (await service.get_user(patient.id)).email == "new@example.com"

    @pytest.mark.asyncio
    async def test_update_profile_email_taken(self, service: UserService, patient: User, admin: User) -> None:
        with pytest.raises(InvalidRequestError) as exc_info:
            await service.update_profile(identity_for(patient), ProfileUpdateRequest(email=admin.email))

        assert exc_info.value.message == "Email already in use"

    @pytest.mark.asyncio
    async def test_profile_stats(self, service: UserService, order_repo: OrderRepository, patient: User) -> None:
        """Test favourites are ranked by quantity over recent orders."""
        soup = OrderItem(menu_item="item_2", name="Soup", category="Lunch", quantity=3, price=3.0)
        porridge = OrderItem(menu_item="item_1", name="Porridge", category="Breakfast", quantity=1, price=4.5)
        order_repo.create_order(
            make_order("a", user_id=patient.id, items=[porridge], created_at=datetime(2024, 3, 1, tzinfo=UTC))
        )
        order_repo.create_order(
            make_order("b", user_id=patient.id, items=[soup, porridge], created_at=datetime(2024, 3, 5, tzinfo=UTC))
        )

        stats = await service.get_profile_stats(identity_for(patient))

        assert stats.total_orders == 2
        assert [(f.name, f.count) for f in stats.favorite_items] == [("Soup", 3), ("Porridge", 2)]
        assert stats.last_order_date == datetime(2024, 3, 5, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_profile_stats_without_orders(self, service: UserService, patient: User) -> None:
        stats = await service.get_profile_stats(identity_for(patient))

        assert stats.total_orders == 0
        assert stats.favorite_items == []
        assert stats.last_order_date is None

    @pytest.mark.asyncio
    async def test_list_users_by_role(self, service: UserService) -> None:
        page = await service.list_users(role="admin")

        assert [u.id for u in page.users] == ["admin_1"]
        assert page.total_users == 1
        assert page.total_pages == 1

    @pytest.mark.asyncio
    async def test_list_users_search_and_paging(self, service: UserService, user_repo: UserRepository) -> None:
        for index in range(3):
            user_repo.create_user(make_user(f"extra_{index}", created_at=datetime(2024, 2, 1 + index, tzinfo=UTC)))

        page = await service.list_users(search="EXTRA", page=2, limit=2)

        assert page.total_users == 3
        assert page.total_pages == 2
        assert page.current_page == 2
        assert [u.id for u in page.users] == ["extra_0"]

    @pytest.mark.asyncio
    async def test_list_users_invalid_role(self, service: UserService) -> None:
        with pytest.raises(InvalidRequestError) as exc_info:
            await service.list_users(role="chef")

        assert exc_info.value.message == "Invalid role"

    @pytest.mark.asyncio
    async def test_user_stats(self, service: UserService, user_repo: UserRepository) -> None:
        user_repo.create_user(make_user("today", created_at=datetime(2024, 3, 14, 1, 0, tzinfo=UTC), is_active=False))

        stats = await service.get_user_stats(now=datetime(2024, 3, 14, 12, 0, tzinfo=UTC))

        assert stats.total_users == 4
        assert stats.active_users == 3
        assert stats.new_users_today == 1
        assert [(r.role, r.count) for r in stats.users_by_role] == [
            ("admin", 1),
            ("patient", 2),
            ("superadmin", 1),
        ]

    @pytest.mark.asyncio
    async def test_create_user_with_role(self, service: UserService) -> None:
        user = await service.create_user(
            UserCreateRequest(full_name="Sam Staff", email="sam@example.com", password="secret123", role=Role.STAFF)
        )

        assert user.role == Role.STAFF
        assert (await service.get_user(user.id)).email == "sam@example.com"

    @pytest.mark.asyncio
    async def test_create_user_duplicate(self, service: UserService, patient: User) -> None:
        with pytest.raises(DuplicateUserError):
            await service.create_user(
                UserCreateRequest(full_name="Copy", email=patient.email, password="secret123")
            )

    @pytest.mark.asyncio
    async def test_update_user_role(self, service: UserService, admin: User, patient: User) -> None:
        updated = await service.update_user(identity_for(admin), patient.id, UserUpdateRequest(role=Role.STAFF))

        assert updated.role == Role.STAFF

    @pytest.mark.asyncio
    async def test_update_user_cannot_deactivate_superadmin(
        self, service: UserService, admin: User, superadmin: User
    ) -> None:
        with pytest.raises(ForbiddenError) as exc_info:
            await service.update_user(identity_for(admin), superadmin.id, UserUpdateRequest(is_active=False))

        assert exc_info.value.message == "Cannot deactivate superadmin account"

    @pytest.mark.asyncio
    async def test_set_status_deactivates(self, service: UserService, admin: User, patient: User) -> None:
        updated = await service.set_user_status(identity_for(admin), patient.id, False)

        assert updated.is_active is False
        assert (await service.get_user(patient.id)).is_active is False

    @pytest.mark.asyncio
    async def test_set_status_cannot_deactivate_self(self, service: UserService, admin: User) -> None:
        with pytest.raises(ForbiddenError) as exc_info:
            await service.set_user_status(identity_for(admin), admin.id, False)

        assert exc_info.value.message == "Cannot deactivate your own account"

    @pytest.mark.asyncio
    async def test_set_status_superadmin_is_protected_even_from_itself(
        self, service: UserService, superadmin: User
    ) -> None:
        with pytest.raises(ForbiddenError) as exc_info:
            await service.set_user_status(identity_for(superadmin), superadmin.id, False)

        assert exc_info.value.message == "Cannot deactivate superadmin account"

    @pytest.mark.asyncio
    async def test_reactivating_self_is_allowed(self, service: UserService, admin: User) -> None:
        updated = await service.set_user_status(identity_for(admin), admin.id, True)

        assert updated.is_active is True

    @pytest.mark.asyncio
    async def test_delete_user_keeps_orders(
        self, service: UserService, order_repo: OrderRepository, admin: User, patient: User
    ) -> None:
        order_repo.create_order(make_order(user_id=patient.id))

        await service.delete_user(identity_for(admin), patient.id)

        with pytest.raises(NotFoundError):
            await service.get_user(patient.id)
        assert order_repo.get_order("order_1") is not None

    @pytest.mark.asyncio
    async def test_delete_self(self, service: UserService, admin: User) -> None:
        with pytest.raises(ForbiddenError) as exc_info:
            await service.delete_user(identity_for(admin), admin.id)

        assert exc_info.value.message == "Cannot delete your own account"

    @pytest.mark.asyncio
    async def test_delete_superadmin(self, service: UserService, admin: User, superadmin: User) -> None:
        with pytest.raises(ForbiddenError) as exc_info:
            await service.delete_user(identity_for(admin), superadmin.id)

        assert exc_info.value.message == "Cannot delete superadmin account"

    @pytest.mark.asyncio
    async def test_delete_missing_user(self, service: UserService, admin: User) -> None:
        with pytest.raises(NotFoundError):
            await service.delete_user(identity_for(admin), "ghost")
