"""Response models for the reporting endpoints."""

from datetime import datetime

from hospital_meal_service.models.base import ApiModel


class DailySales(ApiModel):
    date: str
    revenue: float
    orders: int
    avg_order_value: float


class SalesSummary(ApiModel):
    total_revenue: float = 0.0
    total_orders: int = 0
    avg_order_value: float = 0.0


class SalesReport(ApiModel):
    """Completed-payment revenue grouped by UTC day."""

    sales_data: list[DailySales]
    summary: SalesSummary


class ItemPerformance(ApiModel):
    id: str
    name: str
    category: str
    quantity: int
    revenue: float
    orders: int


class CategoryPerformance(ApiModel):
    category: str
    quantity: int
    revenue: float
    orders: int


class MenuPerformanceReport(ApiModel):
    top_items: list[ItemPerformance]
    category_performance: list[CategoryPerformance]


class CustomerSummary(ApiModel):
    id: str
    name: str
    email: str
    ward: str
    bed: str
    total_orders: int
    total_spent: float
    avg_order_value: float


class WardSummary(ApiModel):
    ward: str
    orders: int
    revenue: float


class CustomerReport(ApiModel):
    top_customers: list[CustomerSummary]
    ward_analytics: list[WardSummary]


class StatusBreakdown(ApiModel):
    status: str
    count: int


class HourlyTrend(ApiModel):
    hour: int
    orders: int
    revenue: float


class PaymentMethodBreakdown(ApiModel):
    method: str
    count: int
    amount: float


class OrderAnalyticsReport(ApiModel):
    status_breakdown: list[StatusBreakdown]
    hourly_trends: list[HourlyTrend]
    payment_methods: list[PaymentMethodBreakdown]


class DateRange(ApiModel):
    start: datetime | None = None
    end: datetime


class ReportSummary(ApiModel):
    total_revenue: float
    total_orders: int
    average_order_value: float
    total_menu_items: int
    total_users: int


class TopMenuItem(ApiModel):
    name: str
    category: str
    quantity: int
    revenue: float


class RoleBreakdown(ApiModel):
    role: str
    count: int


class FullReport(ApiModel):
    """Combined report over one reporting window."""

    report_generated: datetime
    period: str
    date_range: DateRange
    summary: ReportSummary
    top_menu_items: list[TopMenuItem]
    order_status_breakdown: list[StatusBreakdown]
    user_role_breakdown: list[RoleBreakdown]
