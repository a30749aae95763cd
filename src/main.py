"""Main application entry point for the hospital meal ordering service.

This module provides the FastAPI application factory and configuration
for running the service locally or in production.
"""

import logging
import os

from fastapi import FastAPI

from hospital_meal_service.bootstrap import build_app, create_token_service, get_dynamodb_resource
from hospital_meal_service.observability import configure_logging, setup_observability

logger = logging.getLogger(__name__)


def create_application() -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    This factory function:
    1. Configures logging
    2. Creates the DynamoDB resource
    3. Creates the token service
    4. Wires repositories and services into the FastAPI app
    5. Sets up observability

    Returns:
        Configured FastAPI application instance
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Initializing hospital meal service...")

    app = build_app(get_dynamodb_resource(), create_token_service())
    setup_observability(app)

    logger.info("Hospital meal service initialized successfully")
    return app


# Create the FastAPI application instance (only when not in test mode)
# This prevents the app from being created during test collection
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    # Create a placeholder app for test imports
    app = FastAPI()


if __name__ == "__main__":
    """Run the application with uvicorn when executed directly."""
    import uvicorn

    port = int(os.getenv("PORT", "8001"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")
    logger.info(f"API documentation available at http://{host}:{port}/docs")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
