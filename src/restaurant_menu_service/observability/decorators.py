"""Tracing decorator for service and workflow methods."""

import functools
import inspect
from collections.abc import Callable
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

from restaurant_menu_service.exceptions import NotFoundError, ValidationFailedError, WorkflowError

F = TypeVar("F", bound=Callable[..., Any])

TRACER_NAME = "restaurant_menu_service"

# Caller mistakes, not service faults
CLIENT_ERRORS = (NotFoundError, ValidationFailedError)


def _record_error(span: Span, error: Exception) -> None:
    span.record_exception(error)
    span.set_attribute("error.type", type(error).__name__)

    if isinstance(error, WorkflowError):
        span.set_attribute("workflow.name", error.workflow)
        span.set_attribute("workflow.failed_step", error.failed_step)
        span.set_attribute("workflow.completed_steps", error.completed_steps)
        span.set_attribute("workflow.partial", error.is_partial)
        if error.document_id:
            span.set_attribute("menu.document_id", error.document_id)

    if not isinstance(error, CLIENT_ERRORS):
        span.set_status(Status(StatusCode.ERROR, str(error)))


def traced(span_name: str | None = None) -> Callable[[F], F]:
    """Wrap a function in a span named after the operation.

    Failures are recorded on the span and re-raised. A WorkflowError also
    records which step failed and whether earlier steps had been applied.
    NotFoundError and ValidationFailedError do not mark the span as failed.

    Args:
        span_name: Span name, the function name when omitted

    Example:
        @traced("create_category_workflow")
        async def create_category(self, data: CategoryData) -> WorkflowResult:
            ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__
        tracer = trace.get_tracer(TRACER_NAME)

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with tracer.start_as_current_span(
                    name, record_exception=False, set_status_on_exception=False
                ) as span:
                    span.set_attribute("code.function", func.__qualname__)
                    try:
                        return await func(*args, **kwargs)
                    except Exception as e:
                        _record_error(span, e)
                        raise

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(
                name, record_exception=False, set_status_on_exception=False
            ) as span:
                span.set_attribute("code.function", func.__qualname__)
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    _record_error(span, e)
                    raise

        return sync_wrapper  # type: ignore[return-value]

    return decorator
