"""Environment-driven wiring of repositories and services.

Shared by the uvicorn entry point and the Lambda dependency cache so both
build the application the same way.
"""

import logging
import os
from typing import Any

import boto3
from fastapi import FastAPI

from hospital_meal_service.auth.token_service import DEFAULT_TOKEN_MAX_AGE_SECONDS, TokenService
from hospital_meal_service.handlers.api_handler import create_app
from hospital_meal_service.models.settings_models import SystemSettings
from hospital_meal_service.repositories.menu_repository import MenuItemRepository
from hospital_meal_service.repositories.order_repository import OrderRepository
from hospital_meal_service.repositories.settings_repository import SettingsRepository
from hospital_meal_service.repositories.user_repository import UserRepository
from hospital_meal_service.services.analytics_service import AnalyticsService
from hospital_meal_service.services.auth_service import AuthService
from hospital_meal_service.services.menu_service import MenuService
from hospital_meal_service.services.order_service import OrderService
from hospital_meal_service.services.settings_service import SettingsService
from hospital_meal_service.services.user_service import UserService

logger = logging.getLogger(__name__)


def get_dynamodb_resource() -> Any:
    """Create DynamoDB resource with appropriate configuration.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        # DynamoDB Local accepts any credentials
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        return boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID", "dummy"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY", "dummy"),
        )

    logger.info(f"Using AWS DynamoDB in region {region}")
    return boto3.resource("dynamodb", region_name=region)


def get_table_names() -> dict[str, str]:
    """Table names from the environment, with local defaults."""
    return {
        "users": os.getenv("DYNAMODB_USERS_TABLE", "hospital-meal-users"),
        "menu": os.getenv("DYNAMODB_MENU_TABLE", "hospital-meal-menu"),
        "orders": os.getenv("DYNAMODB_ORDERS_TABLE", "hospital-meal-orders"),
        "settings": os.getenv("DYNAMODB_SETTINGS_TABLE", "hospital-meal-settings"),
    }


def system_settings_from_env() -> SystemSettings:
    """Default system settings, overridable per deployment."""
    defaults = SystemSettings()
    return SystemSettings(
        app_name=os.getenv("APP_NAME", defaults.app_name),
        hospital_name=os.getenv("HOSPITAL_NAME", defaults.hospital_name),
        contact_email=os.getenv("CONTACT_EMAIL", defaults.contact_email),
        delivery_fee=float(os.getenv("DELIVERY_FEE", str(defaults.delivery_fee))),
        tax_rate=float(os.getenv("TAX_RATE", str(defaults.tax_rate))),
        order_time_limit=int(os.getenv("ORDER_TIME_LIMIT", str(defaults.order_time_limit))),
        maintenance_mode=os.getenv("MAINTENANCE_MODE", "false").lower() == "true",
        allow_registration=os.getenv("ALLOW_REGISTRATION", "true").lower() != "false",
    )


def create_token_service() -> TokenService:
    """Create the bearer token service.

    Raises:
        ValueError: If TOKEN_SECRET is not set
    """
    secret = os.getenv("TOKEN_SECRET")
    if not secret:
        raise ValueError("TOKEN_SECRET must be set in environment")

    max_age = int(os.getenv("TOKEN_MAX_AGE_SECONDS", str(DEFAULT_TOKEN_MAX_AGE_SECONDS)))
    return TokenService(secret_key=secret, max_age_seconds=max_age)


def build_app(dynamodb_resource: Any, token_service: TokenService) -> FastAPI:
    """Wire repositories and services onto a FastAPI application.

    Args:
        dynamodb_resource: Boto3 DynamoDB resource
        token_service: Bearer token service

    Returns:
        Configured FastAPI application
    """
    tables = get_table_names()

    user_repository = UserRepository(dynamodb_resource=dynamodb_resource, table_name=tables["users"])
    menu_repository = MenuItemRepository(dynamodb_resource=dynamodb_resource, table_name=tables["menu"])
    order_repository = OrderRepository(dynamodb_resource=dynamodb_resource, table_name=tables["orders"])
    settings_repository = SettingsRepository(
        dynamodb_resource=dynamodb_resource, table_name=tables["settings"]
    )

    logger.info(f"Repositories configured - tables: {', '.join(tables.values())}")

    settings_service = SettingsService(
        settings_repository=settings_repository, system_defaults=system_settings_from_env()
    )
    auth_service = AuthService(
        user_repository=user_repository,
        token_service=token_service,
        settings_service=settings_service,
    )

    return create_app(
        order_service=OrderService(
            order_repository=order_repository,
            user_repository=user_repository,
            menu_repository=menu_repository,
        ),
        auth_service=auth_service,
        user_service=UserService(
            user_repository=user_repository,
            order_repository=order_repository,
            auth_service=auth_service,
        ),
        menu_service=MenuService(menu_repository=menu_repository),
        settings_service=settings_service,
        analytics_service=AnalyticsService(
            order_repository=order_repository,
            user_repository=user_repository,
            menu_repository=menu_repository,
        ),
        token_service=token_service,
    )
