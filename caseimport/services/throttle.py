from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Protocol

from ..config.loader import BatchConfig

"""Inter-batch throttling and cancellation.

The orchestrator calls ``throttle.wait()`` between two batches (never after
the last one). Strategies are interchangeable; the fixed delay is the
default policy.
"""

__all__ = [
    "Throttle",
    "NoThrottle",
    "FixedDelayThrottle",
    "TokenBucketThrottle",
    "CancellationToken",
    "throttle_from_config",
]


class Throttle(Protocol):
    def wait(self) -> None: ...


class NoThrottle:
    def wait(self) -> None:
        return None


class FixedDelayThrottle:
    """Sleep a fixed number of seconds between batches."""

    def __init__(self, delay_seconds: float, sleep: Callable[[float], None] = time.sleep) -> None:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def wait(self) -> None:
        if self.delay_seconds > 0:
            self._sleep(self.delay_seconds)


class TokenBucketThrottle:
    """Allow ``rate_per_sec`` batches per second with bursts up to ``capacity``.

    One token is consumed per wait(); when the bucket is empty the caller
    sleeps until the next token accrues.
    """

    def __init__(
        self,
        rate_per_sec: float,
        capacity: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if rate_per_sec <= 0:
            raise ValueError("rate_per_sec must be > 0")
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.rate_per_sec = rate_per_sec
        self.capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = capacity
        self._last = clock()

    def _refill(self) -> None:
        now = self._clock()
        self._tokens = min(self.capacity, self._tokens + (now - self._last) * self.rate_per_sec)
        self._last = now

    def wait(self) -> None:
        self._refill()
        if self._tokens < 1:
            self._sleep((1 - self._tokens) / self.rate_per_sec)
            self._refill()
            # sleep may return early under a fake clock
            self._tokens = max(self._tokens, 1.0)
        self._tokens -= 1


class CancellationToken:
    """Cooperative cancellation checked by the orchestrator between batches."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def throttle_from_config(cfg: BatchConfig) -> Throttle:
    if cfg.throttle == "none":
        return NoThrottle()
    if cfg.throttle == "token_bucket":
        # loader guarantees rate_per_sec for token_bucket
        return TokenBucketThrottle(rate_per_sec=cfg.rate_per_sec or 1.0)
    return FixedDelayThrottle(cfg.delay_seconds)
