"""Order lifecycle metrics."""

from opentelemetry import metrics

meter = metrics.get_meter("hospital-meal-svc")

orders_created_counter = meter.create_counter(
    name="orders_created_total",
    description="Total number of orders placed, by payment method",
    unit="1",
)

status_transition_counter = meter.create_counter(
    name="order_status_transitions_total",
    description="Total number of applied order status transitions",
    unit="1",
)

transition_conflict_counter = meter.create_counter(
    name="order_transition_conflicts_total",
    description="Status updates rejected because the order changed concurrently",
    unit="1",
)

order_value_histogram = meter.create_histogram(
    name="order_total_amount",
    description="Server-computed order totals",
    unit="1",
)


def record_order_created(payment_method: str, total_amount: float) -> None:
    """Record a newly placed order.

    Args:
        payment_method: Payment method chosen for the order
        total_amount: Computed order total
    """
    orders_created_counter.add(1, {"payment_method": payment_method})
    order_value_histogram.record(total_amount, {"payment_method": payment_method})


def record_status_transition(from_status: str, to_status: str) -> None:
    status_transition_counter.add(1, {"from": from_status, "to": to_status})


def record_transition_conflict(from_status: str, to_status: str) -> None:
    transition_conflict_counter.add(1, {"from": from_status, "to": to_status})
