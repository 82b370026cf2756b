"""Single-value cache with an expiry window and an injectable clock."""

from __future__ import annotations

import time
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class TTLCache(Generic[T]):
    """Hold one value for ``ttl_seconds`` after it was stored.

    ``clock`` returns seconds; tests pass a fake to move time deterministically.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must not be negative")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._value: Optional[T] = None
        self._stored_at: Optional[float] = None

    @property
    def is_fresh(self) -> bool:
        if self._stored_at is None:
            return False
        return self._clock() - self._stored_at < self.ttl_seconds

    def get(self) -> Optional[T]:
        return self._value if self.is_fresh else None

    def set(self, value: T) -> None:
        self._value = value
        self._stored_at = self._clock()

    def clear(self) -> None:
        self._value = None
        self._stored_at = None
