# services/crawler/deadline.py
import time
from typing import Callable, Optional


class Deadline:
    """
    A wall-clock budget shared by everything one aggregation run does.

    ``Deadline(None)`` never expires, so callers can always pass one around.
    """

    def __init__(self, seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._expires_at = None if seconds is None else clock() + seconds

    @classmethod
    def never(cls) -> "Deadline":
        return cls(None)

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0.0

    def bound(self, timeout: float) -> float:
        """Clamp ``timeout`` so it never outlives the deadline."""
        remaining = self.remaining()
        return timeout if remaining is None else min(timeout, remaining)
