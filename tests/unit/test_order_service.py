"""Unit tests for OrderService, backed by in-memory DynamoDB tables."""

import asyncio
import threading
from datetime import UTC, datetime

import pytest

from hospital_meal_service.auth.token_service import Identity
from hospital_meal_service.errors import (
    ConflictError,
    EmptyOrderError,
    IllegalTransitionError,
    InvalidRequestError,
    InvalidStatusError,
    NotFoundError,
)
from hospital_meal_service.models.menu_models import MenuCategory
from hospital_meal_service.models.order_models import (
    DeliveryDetails,
    OrderCreateRequest,
    OrderItemRequest,
    OrderStatus,
    PaymentMethod,
    PaymentRequest,
    PaymentStatus,
)
from hospital_meal_service.models.user_models import User
from hospital_meal_service.repositories.menu_repository import MenuItemRepository
from hospital_meal_service.repositories.order_repository import OrderRepository
from hospital_meal_service.repositories.user_repository import UserRepository
from hospital_meal_service.services.order_service import OrderService
from tests.conftest import FakeDynamoResource
from tests.factories import make_menu_item, make_order, make_user


def identity_for(user: User) -> Identity:
    return Identity(user_id=user.id, role=user.role, email=user.email)


def order_request(*lines: tuple[str, int], method: PaymentMethod | None = None, total: float | None = None):
    return OrderCreateRequest(
        items=[OrderItemRequest(menu_item=item_id, quantity=quantity) for item_id, quantity in lines],
        total_amount=total,
        delivery_details=DeliveryDetails(ward_number="W3", bed_number="12"),
        payment_details=PaymentRequest(method=method) if method else None,
    )


@pytest.mark.unit
class TestOrderService:
    """Test suite for OrderService."""

    @pytest.fixture
    def order_repo(self, fake_dynamodb: FakeDynamoResource) -> OrderRepository:
        return OrderRepository(dynamodb_resource=fake_dynamodb, table_name="test-orders")

    @pytest.fixture
    def user_repo(self, fake_dynamodb: FakeDynamoResource, patient: User) -> UserRepository:
        repo = UserRepository(dynamodb_resource=fake_dynamodb, table_name="test-users")
        repo.create_user(patient)
        return repo

    @pytest.fixture
    def menu_repo(self, fake_dynamodb: FakeDynamoResource) -> MenuItemRepository:
        repo = MenuItemRepository(dynamodb_resource=fake_dynamodb, table_name="test-menu")
        repo.save_item(make_menu_item("item_1", "Porridge", 4.5))
        repo.save_item(make_menu_item("item_2", "Soup", 3.25, category=MenuCategory.LUNCH))
        repo.save_item(make_menu_item("item_3", "Pie", 6.0, category=MenuCategory.DINNER, is_available=False))
        return repo

    @pytest.fixture
    def service(
        self,
        order_repo: OrderRepository,
        user_repo: UserRepository,
        menu_repo: MenuItemRepository,
    ) -> OrderService:
        """Create an OrderService over in-memory tables."""
        return OrderService(
            order_repository=order_repo,
            user_repository=user_repo,
            menu_repository=menu_repo,
        )

    @pytest.mark.asyncio
    async def test_create_order_prices_from_menu(self, service: OrderService, patient: User) -> None:
        """Test a new order snapshots menu prices and starts pending."""
        view = await service.create_order(identity_for(patient), order_request(("item_1", 2), ("item_2", 1)))

        assert view.status == OrderStatus.PENDING
        assert view.payment_details.status == PaymentStatus.PENDING
        assert view.payment_details.method == PaymentMethod.HOSPITAL_ACCOUNT
        assert view.total_amount == 12.25
        assert [item.name for item in view.items] == ["Porridge", "Soup"]
        assert view.items[1].category == "Lunch"
        assert view.order_number.startswith("ORD-")
        assert view.user is not None
        assert view.user.id == patient.id

        stored = service.order_repository.get_order(view.id)
        assert stored is not None
        assert stored.total_amount == 12.25

    @pytest.mark.asyncio
    async def test_create_order_ignores_client_total(self, service: OrderService, patient: User) -> None:
        view = await service.create_order(identity_for(patient), order_request(("item_1", 1), total=0.5))

        assert view.total_amount == 4.5

    @pytest.mark.asyncio
    async def test_create_order_uses_requested_method(self, service: OrderService, patient: User) -> None:
        view = await service.create_order(
            identity_for(patient), order_request(("item_1", 1), method=PaymentMethod.CARD)
        )

        assert view.payment_details.method == PaymentMethod.CARD

    @pytest.mark.asyncio
    async def test_create_order_without_items(self, service: OrderService, patient: User) -> None:
        with pytest.raises(EmptyOrderError) as exc_info:
            await service.create_order(identity_for(patient), order_request())

        assert exc_info.value.message == "Order must contain at least one item"

    @pytest.mark.asyncio
    async def test_create_order_unknown_item(self, service: OrderService, patient: User) -> None:
        with pytest.raises(InvalidRequestError) as exc_info:
            await service.create_order(identity_for(patient), order_request(("nope", 1)))

        assert exc_info.value.message == "Unknown menu item: nope"

    @pytest.mark.asyncio
    async def test_create_order_unavailable_item(self, service: OrderService, patient: User) -> None:
        with pytest.raises(InvalidRequestError) as exc_info:
            await service.create_order(identity_for(patient), order_request(("item_3", 1)))

        assert exc_info.value.message == "Menu item is not available: Pie"
        assert service.order_repository.list_orders() == []

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, service: OrderService, patient: User) -> None:
        """Test an order walks pending to delivered, with payment completed on acceptance."""
        created = await service.create_order(identity_for(patient), order_request(("item_1", 1)))

        accepted = await service.transition_status(created.id, "accepted")
        assert accepted.status == OrderStatus.ACCEPTED
        assert accepted.payment_details.status == PaymentStatus.COMPLETED
        assert accepted.user is not None

        for status in ("processing", "ready", "delivered"):
            view = await service.transition_status(created.id, status)
            assert view.status.value == status
            assert view.payment_details.status == PaymentStatus.COMPLETED

        with pytest.raises(IllegalTransitionError):
            await service.transition_status(created.id, "cancelled")

    @pytest.mark.asyncio
    async def test_transition_unknown_status(self, service: OrderService) -> None:
        with pytest.raises(InvalidStatusError):
            await service.transition_status("order_1", "shipped")

    @pytest.mark.asyncio
    async def test_transition_missing_order(self, service: OrderService) -> None:
        with pytest.raises(NotFoundError):
            await service.transition_status("missing", "accepted")

    @pytest.mark.asyncio
    async def test_skipping_a_step_is_rejected(
        self, service: OrderService, order_repo: OrderRepository, patient: User
    ) -> None:
        order_repo.create_order(make_order(user_id=patient.id))

        with pytest.raises(IllegalTransitionError) as exc_info:
            await service.transition_status("order_1", "ready")

        assert exc_info.value.message == "Cannot change status from pending to ready"
        stored = order_repo.get_order("order_1")
        assert stored is not None
        assert stored.status == OrderStatus.PENDING

    def test_concurrent_transitions_one_wins(
        self, service: OrderService, order_repo: OrderRepository, patient: User
    ) -> None:
        """Test two admins racing on the same pending order: exactly one write lands."""
        order_repo.create_order(make_order(user_id=patient.id))
        table = order_repo.table
        table.read_barrier = threading.Barrier(2)
        table.barrier_reads = 2

        results: dict[str, object] = {}

        def run(target: str) -> None:
            try:
                results[target] = asyncio.run(service.transition_status("order_1", target))
            except Exception as e:
                results[target] = e

        threads = [threading.Thread(target=run, args=(t,)) for t in ("accepted", "cancelled")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        conflicts = [t for t, r in results.items() if isinstance(r, ConflictError)]
        winners = [t for t, r in results.items() if not isinstance(r, Exception)]
        assert len(conflicts) == 1
        assert len(winners) == 1

        stored = order_repo.get_order("order_1")
        assert stored is not None
        assert stored.status.value == winners[0]
        if winners[0] == "accepted":
            assert stored.payment_status == PaymentStatus.COMPLETED
        else:
            assert stored.payment_status == PaymentStatus.PENDING

    @pytest.mark.asyncio
    async def test_list_orders_for_user(
        self, service: OrderService, order_repo: OrderRepository, patient: User
    ) -> None:
        order_repo.create_order(make_order("old", user_id=patient.id, created_at=datetime(2024, 3, 1, tzinfo=UTC)))
        order_repo.create_order(make_order("new", user_id=patient.id, created_at=datetime(2024, 3, 2, tzinfo=UTC)))
        order_repo.create_order(make_order("other", user_id="someone_else"))

        views = await service.list_orders_for_user(identity_for(patient))

        assert [v.id for v in views] == ["new", "old"]

    @pytest.mark.asyncio
    async def test_get_order_of_another_user_is_not_found(
        self, service: OrderService, order_repo: OrderRepository, patient: User
    ) -> None:
        order_repo.create_order(make_order(user_id="someone_else"))

        with pytest.raises(NotFoundError) as exc_info:
            await service.get_order_for_user(identity_for(patient), "order_1")

        assert exc_info.value.message == "Order not found"

    @pytest.mark.asyncio
    async def test_cancel_pending_order(
        self, service: OrderService, order_repo: OrderRepository, patient: User
    ) -> None:
        order_repo.create_order(make_order(user_id=patient.id))

        view = await service.cancel_order(identity_for(patient), "order_1")

        assert view.status == OrderStatus.CANCELLED
        assert view.payment_details.status == PaymentStatus.PENDING

    @pytest.mark.asyncio
    async def test_cancel_refunds_card_payment(
        self, service: OrderService, order_repo: OrderRepository, patient: User
    ) -> None:
        order_repo.create_order(
            make_order(
                user_id=patient.id,
                status=OrderStatus.ACCEPTED,
                payment_status=PaymentStatus.COMPLETED,
                method=PaymentMethod.CARD,
            )
        )

        view = await service.cancel_order(identity_for(patient), "order_1")

        assert view.status == OrderStatus.CANCELLED
        assert view.payment_details.status == PaymentStatus.REFUNDED
        assert view.payment_details.transaction_id is not None
        assert view.payment_details.transaction_id.startswith("REFUND-")

    @pytest.mark.asyncio
    async def test_cancel_refunds_hospital_account(
        self, service: OrderService, order_repo: OrderRepository, patient: User
    ) -> None:
        order_repo.create_order(
            make_order(user_id=patient.id, status=OrderStatus.ACCEPTED, payment_status=PaymentStatus.COMPLETED)
        )

        view = await service.cancel_order(identity_for(patient), "order_1")

        assert view.payment_details.status == PaymentStatus.REFUNDED
        assert view.payment_details.transaction_id is None

    @pytest.mark.asyncio
    async def test_cancel_leaves_cash_payment(
        self, service: OrderService, order_repo: OrderRepository, patient: User
    ) -> None:
        order_repo.create_order(
            make_order(
                user_id=patient.id,
                status=OrderStatus.ACCEPTED,
                payment_status=PaymentStatus.COMPLETED,
                method=PaymentMethod.CASH,
            )
        )

        view = await service.cancel_order(identity_for(patient), "order_1")

        assert view.status == OrderStatus.CANCELLED
        assert view.payment_details.status == PaymentStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_owner_cannot_cancel_processing_order(
        self, service: OrderService, order_repo: OrderRepository, patient: User
    ) -> None:
        """Test owners can only cancel before preparation starts, unlike admins."""
        order_repo.create_order(make_order(user_id=patient.id, status=OrderStatus.PROCESSING))

        with pytest.raises(InvalidRequestError) as exc_info:
            await service.cancel_order(identity_for(patient), "order_1")

        assert exc_info.value.message == "Order cannot be cancelled. Current status: processing"

    @pytest.mark.asyncio
    async def test_list_all_orders_filters_and_pages(
        self, service: OrderService, order_repo: OrderRepository, patient: User
    ) -> None:
        for day in range(1, 6):
            order_repo.create_order(
                make_order(
                    f"order_{day}",
                    user_id=patient.id,
                    status=OrderStatus.PENDING if day % 2 else OrderStatus.DELIVERED,
                    created_at=datetime(2024, 3, day, tzinfo=UTC),
                )
            )

        everything = await service.list_all_orders(status="all")
        pending = await service.list_all_orders(status="pending")
        second_page = await service.list_all_orders(page=2, limit=2)

        assert [v.id for v in everything] == ["order_5", "order_4", "order_3", "order_2", "order_1"]
        assert [v.id for v in pending] == ["order_5", "order_3", "order_1"]
        assert [v.id for v in second_page] == ["order_3", "order_2"]
        assert all(v.user is not None for v in everything)

    @pytest.mark.asyncio
    async def test_list_all_orders_unknown_status(self, service: OrderService) -> None:
        with pytest.raises(InvalidStatusError):
            await service.list_all_orders(status="lost")

    @pytest.mark.asyncio
    async def test_list_all_orders_with_deleted_owner(
        self, service: OrderService, order_repo: OrderRepository
    ) -> None:
        order_repo.create_order(make_order(user_id="deleted_user"))

        views = await service.list_all_orders()

        assert views[0].user is None

    @pytest.mark.asyncio
    async def test_order_stats(self, service: OrderService, order_repo: OrderRepository, now: datetime) -> None:
        """Test counters; revenue only counts completed payments."""
        yesterday = datetime(2024, 3, 13, 12, 0, tzinfo=UTC)
        order_repo.create_order(make_order("a", status=OrderStatus.PENDING))
        order_repo.create_order(
            make_order("b", status=OrderStatus.ACCEPTED, payment_status=PaymentStatus.COMPLETED)
        )
        order_repo.create_order(
            make_order("c", status=OrderStatus.PROCESSING, payment_status=PaymentStatus.COMPLETED, created_at=yesterday)
        )
        order_repo.create_order(
            make_order("d", status=OrderStatus.CANCELLED, payment_status=PaymentStatus.REFUNDED)
        )

        stats = await service.get_order_stats(now=now)

        assert stats.total_orders == 4
        assert stats.today_orders == 3
        assert stats.pending_orders == 1
        assert stats.processing_orders == 2
        assert stats.today_revenue == 9.0
        assert stats.total_revenue == 18.0
        assert [(c.status, c.count) for c in stats.status_counts] == [
            ("accepted", 1),
            ("cancelled", 1),
            ("pending", 1),
            ("processing", 1),
        ]

    @pytest.mark.asyncio
    async def test_order_stats_empty(self, service: OrderService, now: datetime) -> None:
        stats = await service.get_order_stats(now=now)

        assert stats.total_orders == 0
        assert stats.status_counts == []
        assert stats.total_revenue == 0


@pytest.mark.unit
class TestOrderServiceAcrossUsers:
    """Cross-user scenario: a second patient never sees the first one's orders."""

    @pytest.mark.asyncio
    async def test_other_patient_cannot_cancel(self, fake_dynamodb: FakeDynamoResource, patient: User) -> None:
        users = UserRepository(dynamodb_resource=fake_dynamodb, table_name="test-users")
        menu = MenuItemRepository(dynamodb_resource=fake_dynamodb, table_name="test-menu")
        orders = OrderRepository(dynamodb_resource=fake_dynamodb, table_name="test-orders")
        other = make_user("patient_2")
        users.create_user(patient)
        users.create_user(other)
        menu.save_item(make_menu_item())
        service = OrderService(order_repository=orders, user_repository=users, menu_repository=menu)

        created = await service.create_order(identity_for(patient), order_request(("item_1", 1)))

        with pytest.raises(NotFoundError):
            await service.cancel_order(identity_for(other), created.id)
        assert await service.list_orders_for_user(identity_for(other)) == []
