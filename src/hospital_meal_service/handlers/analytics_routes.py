"""Admin reporting routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from hospital_meal_service.auth.api_dependencies import require_admin
from hospital_meal_service.auth.token_service import Identity
from hospital_meal_service.handlers.service_dependencies import get_analytics_service
from hospital_meal_service.models.analytics_models import (
    CustomerReport,
    FullReport,
    MenuPerformanceReport,
    OrderAnalyticsReport,
    SalesReport,
)
from hospital_meal_service.services.analytics_service import AnalyticsService, resolve_window

router = APIRouter(prefix="/analytics", tags=["Analytics"])

AdminIdentity = Annotated[Identity, Depends(require_admin)]
Analytics = Annotated[AnalyticsService, Depends(get_analytics_service)]


@router.get("/sales", response_model=SalesReport)
async def sales(
    _admin: AdminIdentity,
    analytics: Analytics,
    period: str = "7d",
    start_date: Annotated[str | None, Query(alias="startDate")] = None,
    end_date: Annotated[str | None, Query(alias="endDate")] = None,
) -> SalesReport:
    """Completed-payment revenue by day."""
    return await analytics.sales(resolve_window(period, start_date, end_date))


@router.get("/menu-performance", response_model=MenuPerformanceReport)
async def menu_performance(
    _admin: AdminIdentity, analytics: Analytics, period: str = "30d"
) -> MenuPerformanceReport:
    return await analytics.menu_performance(resolve_window(period))


@router.get("/customers", response_model=CustomerReport)
async def customers(_admin: AdminIdentity, analytics: Analytics, period: str = "30d") -> CustomerReport:
    return await analytics.customers(resolve_window(period))


@router.get("/orders", response_model=OrderAnalyticsReport)
async def orders(_admin: AdminIdentity, analytics: Analytics, period: str = "30d") -> OrderAnalyticsReport:
    return await analytics.orders(resolve_window(period))


@router.get("/report", response_model=FullReport)
async def report(
    _admin: AdminIdentity,
    analytics: Analytics,
    period: str = "30d",
    start_date: Annotated[str | None, Query(alias="startDate")] = None,
    end_date: Annotated[str | None, Query(alias="endDate")] = None,
) -> FullReport:
    """Combined JSON report."""
    return await analytics.report(resolve_window(period, start_date, end_date))
