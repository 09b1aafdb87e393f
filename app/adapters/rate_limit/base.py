"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so we can swap storage backends later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

WindowName = Literal["minute", "hour", "day"]

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS


@dataclass(frozen=True)
class RateLimitConfig:
    """Quota caps for the three trailing windows.

    Each cap is inclusive: a cap of N admits at most N requests in the window.
    The caps are evaluated independently, so no ordering between them is
    required.

    Attributes:
        requests_per_minute: Max requests in the trailing 60 seconds.
        requests_per_hour: Max requests in the trailing 60 minutes.
        requests_per_day: Max requests in the trailing 24 hours.
    """

    requests_per_minute: int = 60
    requests_per_hour: int = 1000
    requests_per_day: int = 5000

    def __post_init__(self) -> None:
        for name in ("requests_per_minute", "requests_per_hour", "requests_per_day"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise ValueError(f"{name} must be >= 1")

    def windows(self) -> tuple[tuple[WindowName, int, int], ...]:
        """Return ``(name, duration_ms, cap)`` in evaluation order."""
        return (
            ("minute", MINUTE_MS, self.requests_per_minute),
            ("hour", HOUR_MS, self.requests_per_hour),
            ("day", DAY_MS, self.requests_per_day),
        )


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of an admission check.

    Attributes:
        allowed: Whether the request is admitted.
        window: Window that rejected the request (None when allowed).
        count: Requests already counted in that window.
        limit: Configured cap of that window.
    """

    allowed: bool
    window: WindowName | None = None
    count: int | None = None
    limit: int | None = None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def consume(self, key: str) -> RateLimitDecision:
        """Check the quota for a key and record the request if admitted.

        Args:
            key: Client identifier (opaque).

        Returns:
            RateLimitDecision describing the outcome.
        """
        raise NotImplementedError

    def check_and_record(self, key: str) -> bool:
        """Boolean form of :meth:`consume`."""
        return self.consume(key).allowed
