"""In-memory sliding-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: each client record carries its own lock, so requests from
  different clients never wait on each other while being evaluated.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from app.adapters.rate_limit.base import (
    DAY_MS,
    AbstractRateLimiter,
    RateLimitConfig,
    RateLimitDecision,
)

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class _ClientRecord:
    timestamps: list[int] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock)


class InMemorySlidingWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter enforcing minute, hour and day quotas per client.

    Every check recomputes the three windows from the client's request
    history, which is pruned to the trailing 24 hours on each access. Only
    admitted requests are recorded.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        *,
        clock: Callable[[], int] = _now_ms,
        sweep_interval_seconds: float | None = None,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            config: Quota caps; defaults to ``RateLimitConfig()``.
            clock: Time source returning UNIX time in milliseconds.
            sweep_interval_seconds: Minimum time between automatic sweeps of
                idle clients. ``None`` disables automatic sweeping.

        Raises:
            ValueError: If sweep_interval_seconds is not positive.
        """
        if sweep_interval_seconds is not None and sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be > 0")

        self._config = config or RateLimitConfig()
        self._clock = clock
        self._sweep_interval_ms = (
            int(sweep_interval_seconds * 1000) if sweep_interval_seconds is not None else None
        )
        self._registry_lock = threading.Lock()
        self._records: dict[str, _ClientRecord] = {}
        self._last_sweep_ms = clock()

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    @property
    def tracked_clients(self) -> int:
        """Number of client records currently held in memory."""
        with self._registry_lock:
            return len(self._records)

    def _get_or_create_record(self, key: str) -> _ClientRecord:
        with self._registry_lock:
            record = self._records.get(key)
            if record is None:
                record = _ClientRecord()
                self._records[key] = record
            return record

    @staticmethod
    def _prune(timestamps: list[int], now: int) -> list[int]:
        return [ts for ts in timestamps if now - ts < DAY_MS]

    def _evaluate(self, timestamps: list[int], now: int) -> RateLimitDecision:
        """Check the pruned history against each window in order."""
        for window, duration_ms, cap in self._config.windows():
            if duration_ms == DAY_MS:
                # Pruning already bounds the history to the day window.
                count = len(timestamps)
            else:
                count = sum(1 for ts in timestamps if now - ts < duration_ms)
            if count >= cap:
                return RateLimitDecision(allowed=False, window=window, count=count, limit=cap)
        return RateLimitDecision(allowed=True)

    def _maybe_sweep(self, now: int) -> None:
        if self._sweep_interval_ms is None:
            return
        if now - self._last_sweep_ms < self._sweep_interval_ms:
            return
        self._last_sweep_ms = now
        self.sweep()

    def consume(self, key: str) -> RateLimitDecision:
        """Check the client's quotas and record the request if admitted.

        The prune, count and append steps for a key run atomically with
        respect to other calls for the same key.

        Args:
            key: Client identifier. Treated as an opaque string; empty and
                placeholder values are ordinary buckets.

        Returns:
            RateLimitDecision with the window that rejected, if any.
        """
        self._maybe_sweep(self._clock())

        while True:
            record = self._get_or_create_record(key)
            with record.lock:
                if self._records.get(key) is not record:
                    # Swept while we were waiting for the lock.
                    continue

                # Read under the lock so appends stay in clock order.
                now = self._clock()
                timestamps = self._prune(record.timestamps, now)
                decision = self._evaluate(timestamps, now)
                if decision.allowed:
                    timestamps.append(now)
                record.timestamps = timestamps
                return decision

    def sweep(self) -> int:
        """Remove clients whose request history has fully expired.

        Records that are being evaluated concurrently are skipped and picked
        up by a later sweep.

        Returns:
            Number of client records removed.
        """
        now = self._clock()
        removed = 0

        with self._registry_lock:
            for key, record in list(self._records.items()):
                if not record.lock.acquire(blocking=False):
                    continue
                try:
                    record.timestamps = self._prune(record.timestamps, now)
                    if not record.timestamps:
                        del self._records[key]
                        removed += 1
                finally:
                    record.lock.release()
            remaining = len(self._records)

        logger.debug(
            "rate_limit.sweep",
            extra={"removed_clients": removed, "tracked_clients": remaining},
        )
        return removed
