"""FastAPI dependencies resolving the services stored on ``app.state``."""

from fastapi import Request

from hospital_meal_service.services.analytics_service import AnalyticsService
from hospital_meal_service.services.auth_service import AuthService
from hospital_meal_service.services.menu_service import MenuService
from hospital_meal_service.services.order_service import OrderService
from hospital_meal_service.services.settings_service import SettingsService
from hospital_meal_service.services.user_service import UserService


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_menu_service(request: Request) -> MenuService:
    return request.app.state.menu_service


def get_settings_service(request: Request) -> SettingsService:
    return request.app.state.settings_service


def get_analytics_service(request: Request) -> AnalyticsService:
    return request.app.state.analytics_service
