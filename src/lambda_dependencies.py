"""Shared dependency factory for the Lambda handler.

Dependencies are created once per Lambda container and reused across
invocations to keep warm starts cheap.
"""

import logging
import os
from typing import Any

from fastapi import FastAPI

from hospital_meal_service.auth.token_service import TokenService
from hospital_meal_service.bootstrap import build_app, create_token_service
from hospital_meal_service.bootstrap import get_dynamodb_resource as create_dynamodb_resource
from hospital_meal_service.observability import configure_logging, setup_observability

logger = logging.getLogger(__name__)

# Module-level caches for Lambda container reuse
_dynamodb_resource: Any | None = None
_token_service: TokenService | None = None
_fastapi_app: FastAPI | None = None


def get_dynamodb_resource() -> Any:
    """Create or retrieve cached DynamoDB resource.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    global _dynamodb_resource

    if _dynamodb_resource is None:
        _dynamodb_resource = create_dynamodb_resource()

    return _dynamodb_resource


def get_token_service() -> TokenService:
    """Create or retrieve cached token service."""
    global _token_service

    if _token_service is None:
        _token_service = create_token_service()

    return _token_service


def get_fastapi_app() -> FastAPI:
    """Create or retrieve cached FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    global _fastapi_app

    if _fastapi_app is not None:
        return _fastapi_app

    _fastapi_app = build_app(get_dynamodb_resource(), get_token_service())
    setup_observability(_fastapi_app)

    logger.info("FastAPI application initialized")
    return _fastapi_app


def initialize_lambda_environment() -> None:
    """Configure logging. Called once during Lambda cold start."""
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Lambda environment initialized")
