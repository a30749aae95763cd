"""FastAPI application for the hospital meal ordering API."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from hospital_meal_service.auth.token_service import TokenService
from hospital_meal_service.errors import RepositoryError, ServiceError
from hospital_meal_service.handlers import (
    admin_user_routes,
    analytics_routes,
    auth_routes,
    menu_routes,
    order_routes,
    settings_routes,
    user_routes,
)
from hospital_meal_service.handlers.responses import HealthResponse
from hospital_meal_service.services.analytics_service import AnalyticsService
from hospital_meal_service.services.auth_service import AuthService
from hospital_meal_service.services.menu_service import MenuService
from hospital_meal_service.services.order_service import OrderService
from hospital_meal_service.services.settings_service import SettingsService
from hospital_meal_service.services.user_service import UserService

logger = logging.getLogger(__name__)


def describe_validation_error(exc: RequestValidationError) -> str:
    """Summarise the first schema error as ``field.path: message``."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    message = first.get("msg", "Invalid value")
    return f"{'.'.join(location)}: {message}" if location else message


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if isinstance(exc, RepositoryError):
        logger.error(f"Store failure on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"message": "Server error", "error": exc.message})

    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = describe_validation_error(exc)
    logger.info(f"Rejected {request.method} {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"message": message})


def create_app(
    order_service: OrderService,
    auth_service: AuthService,
    user_service: UserService,
    menu_service: MenuService,
    settings_service: SettingsService,
    analytics_service: AnalyticsService,
    token_service: TokenService,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        order_service: Order placement and lifecycle
        auth_service: Registration, login and passwords
        user_service: Profiles and account administration
        menu_service: Menu catalog
        settings_service: Administrative settings
        analytics_service: Admin reporting
        token_service: Verifies bearer tokens on protected routes

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Hospital Meal Ordering API",
        description="Meal ordering for hospital patients with an admin order lifecycle",
        version="1.0.0",
    )

    # Store services in app state for access in route handlers
    app.state.order_service = order_service
    app.state.auth_service = auth_service
    app.state.user_service = user_service
    app.state.menu_service = menu_service
    app.state.settings_service = settings_service
    app.state.analytics_service = analytics_service
    app.state.token_service = token_service

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint.

        Returns:
            Health status indicating service is running
        """
        return HealthResponse(status="healthy")

    for module in (
        auth_routes,
        order_routes,
        user_routes,
        admin_user_routes,
        menu_routes,
        settings_routes,
        analytics_routes,
    ):
        app.include_router(module.router)

    return app
