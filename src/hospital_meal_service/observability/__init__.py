"""OpenTelemetry instrumentation and structured logging for the meal service."""

from hospital_meal_service.observability.config import configure_logging, setup_observability
from hospital_meal_service.observability.decorators import traced

__all__ = ["setup_observability", "configure_logging", "traced"]
