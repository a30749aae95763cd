"""Tracing decorator for service methods."""

import functools
import inspect
from collections.abc import Callable
from typing import Any, TypeVar

from opentelemetry import trace

F = TypeVar("F", bound=Callable[..., Any])


def _record_outcome(span: trace.Span, error: Exception | None) -> None:
    if error is None:
        span.set_attribute("success", True)
        return
    span.set_attribute("success", False)
    span.set_attribute("error.type", type(error).__name__)
    span.set_attribute("error.message", str(error))
    span.record_exception(error)


def traced(span_name: str | None = None, service_name: str = "hospital-meal-svc") -> Callable[[F], F]:
    """Wrap a function (sync or async) in an OpenTelemetry span.

    The span carries the service name, the wrapped function's name when a
    custom span name is given, and error details when the call raises.

    Args:
        span_name: Name for the span (defaults to the function name)
        service_name: Tracer name and ``service.name`` attribute

    Returns:
        Decorated function with tracing

    Example:
        @traced("create_order")
        async def create_order(self, identity, request): ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__
        tracer = trace.get_tracer(service_name)

        def start(span: trace.Span) -> None:
            span.set_attribute("service.name", service_name)
            if span_name:
                span.set_attribute("function.name", func.__name__)

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(name) as span:
                start(span)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _record_outcome(span, e)
                    raise
                _record_outcome(span, None)
                return result

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(name) as span:
                start(span)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _record_outcome(span, e)
                    raise
                _record_outcome(span, None)
                return result

        if inspect.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        return sync_wrapper  # type: ignore

    return decorator
