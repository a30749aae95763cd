"""Reporting aggregator.

Reports are computed in memory over full table scans of orders, users and
menu items, filtered to a reporting window. Revenue figures only count orders
whose payment is completed, except where a report explicitly breaks totals
down by status or payment method.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from hospital_meal_service.errors import InvalidRequestError
from hospital_meal_service.models.analytics_models import (
    CategoryPerformance,
    CustomerReport,
    CustomerSummary,
    DailySales,
    DateRange,
    FullReport,
    HourlyTrend,
    ItemPerformance,
    MenuPerformanceReport,
    OrderAnalyticsReport,
    PaymentMethodBreakdown,
    ReportSummary,
    RoleBreakdown,
    SalesReport,
    SalesSummary,
    StatusBreakdown,
    TopMenuItem,
    WardSummary,
)
from hospital_meal_service.models.order_models import Order, PaymentStatus
from hospital_meal_service.models.user_models import Role
from hospital_meal_service.observability.decorators import traced
from hospital_meal_service.repositories.menu_repository import MenuItemRepository
from hospital_meal_service.repositories.order_repository import OrderRepository
from hospital_meal_service.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

PERIODS: dict[str, timedelta] = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
}

TOP_N = 10


@dataclass(frozen=True)
class ReportWindow:
    """Time range a report covers. ``start`` of None means unbounded."""

    period: str
    start: datetime | None
    end: datetime

    def contains(self, moment: datetime) -> bool:
        moment = _as_utc(moment)
        if self.start is not None and moment < self.start:
            return False
        return moment <= self.end


def _as_utc(moment: datetime) -> datetime:
    return moment.replace(tzinfo=UTC) if moment.tzinfo is None else moment.astimezone(UTC)


def resolve_window(
    period: str,
    start_date: str | None = None,
    end_date: str | None = None,
    now: datetime | None = None,
) -> ReportWindow:
    """Turn query parameters into a reporting window.

    An explicit ``start_date``/``end_date`` pair (ISO 8601) wins over
    ``period``. An unrecognised period leaves the start unbounded.

    Raises:
        InvalidRequestError: Dates cannot be parsed or are out of order
    """
    now = now or datetime.now(UTC)

    if start_date and end_date:
        try:
            start = _as_utc(datetime.fromisoformat(start_date))
            end = _as_utc(datetime.fromisoformat(end_date))
        except ValueError as e:
            raise InvalidRequestError("Invalid date range") from e
        if start > end:
            raise InvalidRequestError("Invalid date range")
        return ReportWindow(period=period, start=start, end=end)

    span = PERIODS.get(period)
    return ReportWindow(period=period, start=now - span if span else None, end=now)


def _mean(total: float, count: int) -> float:
    return round(total / count, 2) if count else 0.0


def _completed(orders: Iterable[Order]) -> list[Order]:
    return [o for o in orders if o.payment_status == PaymentStatus.COMPLETED]


class AnalyticsService:
    """Admin reporting over orders, users and the menu."""

    def __init__(
        self,
        order_repository: OrderRepository,
        user_repository: UserRepository,
        menu_repository: MenuItemRepository,
    ) -> None:
        """Initialize the AnalyticsService.

        Args:
            order_repository: Repository for orders
            user_repository: Repository for users
            menu_repository: Repository for menu items
        """
        self.order_repository = order_repository
        self.user_repository = user_repository
        self.menu_repository = menu_repository

    def _orders_in(self, window: ReportWindow) -> list[Order]:
        return [o for o in self.order_repository.list_orders() if window.contains(o.created_at)]

    @traced("sales_report")
    async def sales(self, window: ReportWindow) -> SalesReport:
        """Daily completed-payment revenue within the window."""
        orders = _completed(self._orders_in(window))

        days: dict[str, list[float]] = defaultdict(list)
        for order in orders:
            days[_as_utc(order.created_at).strftime("%Y-%m-%d")].append(order.total_amount)

        sales_data = [
            DailySales(
                date=day,
                revenue=round(sum(amounts), 2),
                orders=len(amounts),
                avg_order_value=_mean(sum(amounts), len(amounts)),
            )
            for day, amounts in sorted(days.items())
        ]

        total = sum(o.total_amount for o in orders)
        return SalesReport(
            sales_data=sales_data,
            summary=SalesSummary(
                total_revenue=round(total, 2),
                total_orders=len(orders),
                avg_order_value=_mean(total, len(orders)),
            ),
        )

    @traced("menu_performance_report")
    async def menu_performance(self, window: ReportWindow) -> MenuPerformanceReport:
        """Item and category sales volume within the window, all statuses."""
        items: dict[str, dict] = {}
        categories: dict[str, dict] = {}

        for order in self._orders_in(window):
            for line in order.items:
                item = items.setdefault(
                    line.menu_item,
                    {"id": line.menu_item, "name": line.name, "category": line.category,
                     "quantity": 0, "revenue": 0.0, "orders": 0},
                )
                category = categories.setdefault(
                    line.category,
                    {"category": line.category, "quantity": 0, "revenue": 0.0, "orders": 0},
                )
                for bucket in (item, category):
                    bucket["quantity"] += line.quantity
                    bucket["revenue"] += line.line_total
                    bucket["orders"] += 1

        top_items = sorted(items.values(), key=lambda b: b["quantity"], reverse=True)[:TOP_N]
        by_revenue = sorted(categories.values(), key=lambda b: b["revenue"], reverse=True)

        return MenuPerformanceReport(
            top_items=[ItemPerformance(**{**b, "revenue": round(b["revenue"], 2)}) for b in top_items],
            category_performance=[
                CategoryPerformance(**{**b, "revenue": round(b["revenue"], 2)}) for b in by_revenue
            ],
        )

    @traced("customer_report")
    async def customers(self, window: ReportWindow) -> CustomerReport:
        """Top spenders and per-ward volume. Orders of deleted users are skipped."""
        users = {u.id: u for u in self.user_repository.list_users()}

        spend: dict[str, list[float]] = defaultdict(list)
        wards: dict[str, list[float]] = defaultdict(list)
        for order in self._orders_in(window):
            user = users.get(order.user_id)
            if user is None:
                continue
            spend[user.id].append(order.total_amount)
            wards[user.ward_number].append(order.total_amount)

        top_customers = sorted(
            (
                CustomerSummary(
                    id=user_id,
                    name=users[user_id].full_name,
                    email=users[user_id].email,
                    ward=users[user_id].ward_number,
                    bed=users[user_id].bed_number,
                    total_orders=len(amounts),
                    total_spent=round(sum(amounts), 2),
                    avg_order_value=_mean(sum(amounts), len(amounts)),
                )
                for user_id, amounts in spend.items()
            ),
            key=lambda c: c.total_spent,
            reverse=True,
        )[:TOP_N]

        ward_analytics = sorted(
            (WardSummary(ward=ward, orders=len(a), revenue=round(sum(a), 2)) for ward, a in wards.items()),
            key=lambda w: w.orders,
            reverse=True,
        )

        return CustomerReport(top_customers=top_customers, ward_analytics=ward_analytics)

    @traced("order_analytics_report")
    async def orders(self, window: ReportWindow) -> OrderAnalyticsReport:
        """Status, hour-of-day (UTC) and payment method breakdowns."""
        orders = self._orders_in(window)

        statuses: dict[str, int] = defaultdict(int)
        hours: dict[int, list[float]] = defaultdict(list)
        methods: dict[str, list[float]] = defaultdict(list)
        for order in orders:
            statuses[order.status.value] += 1
            hours[_as_utc(order.created_at).hour].append(order.total_amount)
            methods[order.payment_details.method.value].append(order.total_amount)

        return OrderAnalyticsReport(
            status_breakdown=[StatusBreakdown(status=s, count=c) for s, c in sorted(statuses.items())],
            hourly_trends=[
                HourlyTrend(hour=h, orders=len(a), revenue=round(sum(a), 2)) for h, a in sorted(hours.items())
            ],
            payment_methods=[
                PaymentMethodBreakdown(method=m, count=len(a), amount=round(sum(a), 2))
                for m, a in sorted(methods.items())
            ],
        )

    @traced("full_report")
    async def report(self, window: ReportWindow, now: datetime | None = None) -> FullReport:
        """Combined summary report over the window."""
        orders = self._orders_in(window)
        completed = _completed(orders)
        revenue = sum(o.total_amount for o in completed)

        menu_items = await self.menu_performance(window)
        order_stats = await self.orders(window)

        users = self.user_repository.list_users()
        roles: dict[str, int] = defaultdict(int)
        for user in users:
            if window.contains(user.created_at):
                roles[user.role.value] += 1

        logger.info(f"Generated report for period {window.period} over {len(orders)} orders")

        return FullReport(
            report_generated=now or datetime.now(UTC),
            period=window.period,
            date_range=DateRange(start=window.start, end=window.end),
            summary=ReportSummary(
                total_revenue=round(revenue, 2),
                total_orders=len(completed),
                average_order_value=_mean(revenue, len(completed)),
                total_menu_items=len(self.menu_repository.list_items()),
                total_users=sum(1 for u in users if u.role == Role.PATIENT),
            ),
            top_menu_items=[
                TopMenuItem(name=i.name, category=i.category, quantity=i.quantity, revenue=i.revenue)
                for i in menu_items.top_items
            ],
            order_status_breakdown=order_stats.status_breakdown,
            user_role_breakdown=[RoleBreakdown(role=r, count=c) for r, c in sorted(roles.items())],
        )
