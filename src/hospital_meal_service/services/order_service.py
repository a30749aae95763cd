"""Order service: placing, listing, cancelling and administering orders."""

import logging
import uuid
from collections import Counter
from datetime import UTC, datetime

from hospital_meal_service.auth.token_service import Identity
from hospital_meal_service.errors import (
    EmptyOrderError,
    InvalidRequestError,
    NotFoundError,
    RepositoryError,
)
from hospital_meal_service.models.order_models import (
    Order,
    OrderCreateRequest,
    OrderItem,
    OrderStats,
    OrderStatus,
    OrderView,
    PaymentDetails,
    PaymentMethod,
    PaymentStatus,
    StatusCount,
    generate_order_number,
)
from hospital_meal_service.models.user_models import OwnerSummary
from hospital_meal_service.observability.decorators import traced
from hospital_meal_service.observability.metrics import record_order_created
from hospital_meal_service.repositories.menu_repository import MenuItemRepository
from hospital_meal_service.repositories.order_repository import OrderRepository
from hospital_meal_service.repositories.user_repository import UserRepository
from hospital_meal_service.services.order_lifecycle import OrderLifecycle, parse_status

logger = logging.getLogger(__name__)

OWNER_CANCELLABLE = frozenset({OrderStatus.PENDING, OrderStatus.ACCEPTED})
REFUNDABLE_METHODS = frozenset({PaymentMethod.CARD, PaymentMethod.HOSPITAL_ACCOUNT})

# Totals within this distance of the client's figure are not reported
TOTAL_TOLERANCE = 0.005


class OrderService:
    """Service coordinating order persistence, pricing and the lifecycle engine.

    Repository calls are synchronous boto3 calls made from async methods, so the
    service can be awaited directly by FastAPI route handlers.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        user_repository: UserRepository,
        menu_repository: MenuItemRepository,
    ) -> None:
        """Initialize the OrderService.

        Args:
            order_repository: Repository for orders
            user_repository: Repository for users, used for owner projections
            menu_repository: Repository for the menu, used for pricing
        """
        self.order_repository = order_repository
        self.user_repository = user_repository
        self.menu_repository = menu_repository
        self.lifecycle = OrderLifecycle(order_repository)

    @traced("create_order")
    async def create_order(self, identity: Identity, request: OrderCreateRequest) -> OrderView:
        """Place a new order for the caller.

        Line items are priced from the stored menu; the client's total is only
        compared against the computed one.

        Args:
            identity: Authenticated caller, who becomes the owner
            request: Order payload

        Returns:
            The persisted order joined with its owner

        Raises:
            EmptyOrderError: No items supplied
            InvalidRequestError: Unknown or unavailable menu item
        """
        if not request.items:
            raise EmptyOrderError()

        items = [self._price_line(line.menu_item, line.quantity, line.special_instructions) for line in request.items]
        total = round(sum(item.line_total for item in items), 2)

        if request.total_amount is not None and abs(request.total_amount - total) > TOTAL_TOLERANCE:
            logger.warning(
                f"Client total {request.total_amount} differs from computed total {total} "
                f"for user {identity.user_id}"
            )

        now = datetime.now(UTC)
        method = request.payment_details.method if request.payment_details else PaymentMethod.HOSPITAL_ACCOUNT
        order = Order(
            id=str(uuid.uuid4()),
            order_number=generate_order_number(now),
            user_id=identity.user_id,
            items=items,
            total_amount=total,
            status=OrderStatus.PENDING,
            delivery_details=request.delivery_details,
            payment_details=PaymentDetails(method=method, status=PaymentStatus.PENDING),
            created_at=now,
            updated_at=now,
        )

        if not self.order_repository.create_order(order):
            raise RepositoryError(f"Order id collision for {order.id}")

        record_order_created(method.value, total)
        logger.info(f"Order {order.order_number} created for user {identity.user_id} ({len(items)} items)")

        return OrderView.from_order(order, self._owner(order.user_id))

    def _price_line(self, menu_item_id: str, quantity: int, special_instructions: str) -> OrderItem:
        menu_item = self.menu_repository.get_item(menu_item_id)
        if menu_item is None:
            raise InvalidRequestError(f"Unknown menu item: {menu_item_id}")
        if not menu_item.is_available:
            raise InvalidRequestError(f"Menu item is not available: {menu_item.name}")

        return OrderItem(
            menu_item=menu_item.id,
            name=menu_item.name,
            category=menu_item.category.value,
            quantity=quantity,
            price=menu_item.price,
            special_instructions=special_instructions,
        )

    async def list_orders_for_user(self, identity: Identity) -> list[OrderView]:
        """Caller's own orders, newest first."""
        orders = self.order_repository.list_orders_for_user(identity.user_id)
        owner = self._owner(identity.user_id)
        return [OrderView.from_order(order, owner) for order in orders]

    async def get_order_for_user(self, identity: Identity, order_id: str) -> OrderView:
        """Fetch one of the caller's orders.

        Orders belonging to someone else are reported as missing.

        Raises:
            NotFoundError: No such order for this caller
        """
        order = self._get_owned(identity, order_id)
        return OrderView.from_order(order, self._owner(order.user_id))

    @traced("cancel_order")
    async def cancel_order(self, identity: Identity, order_id: str) -> OrderView:
        """Owner-initiated cancellation with refund.

        Only pending or accepted orders can be cancelled by their owner. A
        completed card payment is refunded with a generated transaction id, a
        completed hospital-account charge is marked refunded, and cash is left
        as is.

        Args:
            identity: Authenticated caller
            order_id: Order to cancel

        Returns:
            The cancelled order

        Raises:
            NotFoundError: No such order for this caller
            InvalidRequestError: Order is past the point of cancellation
            ConflictError: Order changed concurrently
        """
        order = self._get_owned(identity, order_id)

        if order.status not in OWNER_CANCELLABLE:
            raise InvalidRequestError(f"Order cannot be cancelled. Current status: {order.status.value}")

        payment = order.payment_details
        refund = payment.status == PaymentStatus.COMPLETED and payment.method in REFUNDABLE_METHODS
        transaction_id = None
        if refund and payment.method == PaymentMethod.CARD:
            transaction_id = f"REFUND-{int(datetime.now(UTC).timestamp() * 1000)}"

        cancelled = self.lifecycle.cancel(order, transaction_id=transaction_id, refund=refund)
        logger.info(f"Order {order.id} cancelled by owner {identity.user_id} (refund={refund})")

        return OrderView.from_order(cancelled, self._owner(cancelled.user_id))

    @traced("transition_order_status")
    async def transition_status(self, order_id: str, requested_status: str | None) -> OrderView:
        """Admin status change through the lifecycle engine.

        The caller must already have passed the admin role gate.

        Args:
            order_id: Order to update
            requested_status: Target status string from the request body

        Returns:
            The updated order joined with its owner
        """
        updated = self.lifecycle.transition(order_id, requested_status)
        return OrderView.from_order(updated, self._owner(updated.user_id))

    async def list_all_orders(
        self, status: str | None = None, page: int = 1, limit: int = 50
    ) -> list[OrderView]:
        """All orders, newest first, optionally filtered by status.

        Args:
            status: Status filter; ``None`` or ``"all"`` lists everything
            page: 1-based page number
            limit: Page size

        Returns:
            One page of orders joined with their owners

        Raises:
            InvalidStatusError: Unknown status filter
        """
        status_filter = None if status in (None, "", "all") else parse_status(status)
        orders = self.order_repository.list_orders(status=status_filter)

        page = max(page, 1)
        limit = max(limit, 1)
        page_orders = orders[(page - 1) * limit : page * limit]

        owners: dict[str, OwnerSummary | None] = {}
        views = []
        for order in page_orders:
            if order.user_id not in owners:
                owners[order.user_id] = self._owner(order.user_id)
            views.append(OrderView.from_order(order, owners[order.user_id]))
        return views

    async def get_order_stats(self, now: datetime | None = None) -> OrderStats:
        """Dashboard counters. "Today" is the current UTC calendar day.

        Revenue only counts orders whose payment is completed.
        """
        now = now or datetime.now(UTC)
        today = now.date()
        orders = self.order_repository.list_orders()

        status_counts = Counter(order.status.value for order in orders)
        todays = [order for order in orders if order.created_at.astimezone(UTC).date() == today]

        def revenue(selection: list[Order]) -> float:
            return round(
                sum(o.total_amount for o in selection if o.payment_status == PaymentStatus.COMPLETED), 2
            )

        return OrderStats(
            total_orders=len(orders),
            today_orders=len(todays),
            pending_orders=status_counts[OrderStatus.PENDING.value],
            processing_orders=status_counts[OrderStatus.ACCEPTED.value]
            + status_counts[OrderStatus.PROCESSING.value],
            status_counts=[StatusCount(status=s, count=c) for s, c in sorted(status_counts.items())],
            today_revenue=revenue(todays),
            total_revenue=revenue(orders),
        )

    def _get_owned(self, identity: Identity, order_id: str) -> Order:
        order = self.order_repository.get_order(order_id)
        if order is None or order.user_id != identity.user_id:
            raise NotFoundError("Order not found")
        return order

    def _owner(self, user_id: str) -> OwnerSummary | None:
        user = self.user_repository.get_user(user_id)
        return user.owner_summary() if user else None

