"""Order lifecycle engine.

Owns the order status transition table and the one coupled side effect:
accepting an order whose payment is still pending marks the payment completed.
The status write and the payment flip are a single conditional update, so a
transition is either applied whole against the status that was validated or
rejected as a conflict.
"""

import logging
from datetime import UTC, datetime

from hospital_meal_service.errors import (
    ConflictError,
    IllegalTransitionError,
    InvalidStatusError,
    NotFoundError,
)
from hospital_meal_service.models.order_models import Order, OrderStatus, PaymentStatus
from hospital_meal_service.observability.decorators import traced
from hospital_meal_service.observability.metrics import (
    record_status_transition,
    record_transition_conflict,
)
from hospital_meal_service.repositories.order_repository import OrderRepository

logger = logging.getLogger(__name__)

TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.ACCEPTED, OrderStatus.CANCELLED}),
    OrderStatus.ACCEPTED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def allowed_next(status: OrderStatus) -> frozenset[OrderStatus]:
    """Statuses reachable in one step from ``status``."""
    return TRANSITIONS[status]


def is_terminal(status: OrderStatus) -> bool:
    return not TRANSITIONS[status]


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    """True if ``requested`` is a permitted next status of ``current``."""
    return requested in TRANSITIONS[current]


def parse_status(value: str | None) -> OrderStatus:
    """Convert a client-supplied status string into the enum.

    Raises:
        InvalidStatusError: If the value is not one of the six statuses
    """
    try:
        return OrderStatus(value)
    except ValueError as e:
        raise InvalidStatusError() from e


class OrderLifecycle:
    """Applies validated status transitions to persisted orders."""

    def __init__(self, order_repository: OrderRepository) -> None:
        """Initialize the engine.

        Args:
            order_repository: Repository holding the orders
        """
        self.order_repository = order_repository

    @traced("order_transition", service_name="hospital-meal-svc")
    def transition(self, order_id: str, requested_status: str | None) -> Order:
        """Move an order to ``requested_status``.

        The order is read fresh from the store, the edge is checked against the
        transition table, and the write is conditioned on the stored status
        (and payment status, when it flips) still matching what was read.

        Args:
            order_id: Order to transition
            requested_status: Target status as supplied by the caller

        Returns:
            The updated order

        Raises:
            InvalidStatusError: Target is not a known status
            NotFoundError: No such order
            IllegalTransitionError: Edge not in the transition table
            ConflictError: Order changed between read and write
        """
        target = parse_status(requested_status)

        order = self.order_repository.get_order(order_id)
        if order is None:
            raise NotFoundError("Order not found")

        return self._apply(order, target)

    def cancel(self, order: Order, transaction_id: str | None, refund: bool) -> Order:
        """Cancel an already loaded order, optionally refunding its payment.

        Raises:
            IllegalTransitionError: Order is not in a cancellable state
            ConflictError: Order changed since it was read
        """
        if not can_transition(order.status, OrderStatus.CANCELLED):
            raise IllegalTransitionError(order.status.value, OrderStatus.CANCELLED.value)

        return self._write(
            order,
            OrderStatus.CANCELLED,
            new_payment_status=PaymentStatus.REFUNDED if refund else None,
            transaction_id=transaction_id,
        )

    def _apply(self, order: Order, target: OrderStatus) -> Order:
        if not can_transition(order.status, target):
            raise IllegalTransitionError(order.status.value, target.value)

        new_payment_status = None
        if target == OrderStatus.ACCEPTED and order.payment_status == PaymentStatus.PENDING:
            new_payment_status = PaymentStatus.COMPLETED

        return self._write(order, target, new_payment_status=new_payment_status)

    def _write(
        self,
        order: Order,
        target: OrderStatus,
        new_payment_status: PaymentStatus | None = None,
        transaction_id: str | None = None,
    ) -> Order:
        updated = self.order_repository.update_status(
            order_id=order.id,
            expected_status=order.status,
            new_status=target,
            updated_at=datetime.now(UTC),
            expected_payment_status=order.payment_status if new_payment_status else None,
            new_payment_status=new_payment_status,
            transaction_id=transaction_id,
        )

        if updated is None:
            record_transition_conflict(order.status.value, target.value)
            raise ConflictError("Order was modified concurrently, retry")

        record_status_transition(order.status.value, target.value)
        logger.info(f"Order {order.id} moved from {order.status.value} to {target.value}")
        return updated
