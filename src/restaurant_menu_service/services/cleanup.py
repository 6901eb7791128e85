"""Fire-and-log wrapper for cleanup calls that must never block a write."""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from restaurant_menu_service.observability.metrics import record_cleanup_failure

logger = logging.getLogger(__name__)


async def best_effort(description: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> bool:
    """Run a cleanup call, logging and swallowing any failure.

    Used for deleting orphaned images: a leftover blob is acceptable, a
    blocked edit or delete is not.

    Args:
        description: What is being cleaned up, for logs and metrics
        func: Sync or async callable to run
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        bool: True if the call succeeded, False if it failed
    """
    try:
        result = func(*args, **kwargs)
        if inspect.isawaitable(result):
            await result
        return True
    except Exception as e:
        logger.warning(f"Best-effort {description} failed: {e}")
        record_cleanup_failure(description)
        return False
