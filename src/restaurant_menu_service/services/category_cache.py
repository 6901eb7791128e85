"""Single-slot, time-expiring cache for the full category list."""

import threading
import time
from collections.abc import Callable

from restaurant_menu_service.models.menu_models import Category

DEFAULT_TTL_SECONDS = 300.0


def _copy(categories: list[Category]) -> list[Category]:
    return [category.model_copy(deep=True) for category in categories]


class CategoryCache:
    """Holds the last fetched category list (with items) and when it was captured.

    There is exactly one slot: a write replaces it wholesale and an
    invalidation empties it. An entry is served only while its age is below
    the TTL; an expired entry is cleared by the read that notices it.

    Categories are deep-copied on the way in and out so a caller that edits
    a returned category (or its items) cannot change what the next reader sees.

    The slot is guarded by a lock because FastAPI runs sync dependencies in a
    thread pool.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an empty cache.

        Args:
            ttl_seconds: How long an entry stays valid
            clock: Monotonic clock in seconds, injectable for tests
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._categories: list[Category] | None = None
        self._captured_at: float | None = None

    def read(self) -> list[Category] | None:
        """Return the cached list, or None if empty or expired."""
        with self._lock:
            if self._categories is None or self._captured_at is None:
                return None

            if self._clock() - self._captured_at >= self.ttl_seconds:
                self._categories = None
                self._captured_at = None
                return None

            return _copy(self._categories)

    def write(self, categories: list[Category]) -> None:
        """Replace the cached list and stamp it with the current time."""
        with self._lock:
            self._categories = _copy(categories)
            self._captured_at = self._clock()

    def invalidate(self) -> None:
        """Empty the cache. Safe to call when already empty."""
        with self._lock:
            self._categories = None
            self._captured_at = None
