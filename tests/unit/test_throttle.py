from __future__ import annotations

import pytest

from caseimport.config.loader import BatchConfig
from caseimport.services.throttle import (
    CancellationToken,
    FixedDelayThrottle,
    NoThrottle,
    TokenBucketThrottle,
    throttle_from_config,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_fixed_delay_sleeps_configured_seconds():
    sleeps: list[float] = []
    FixedDelayThrottle(0.8, sleep=sleeps.append).wait()
    assert sleeps == [0.8]


def test_fixed_zero_delay_does_not_sleep():
    sleeps: list[float] = []
    FixedDelayThrottle(0, sleep=sleeps.append).wait()
    assert sleeps == []


def test_fixed_delay_rejects_negative():
    with pytest.raises(ValueError):
        FixedDelayThrottle(-1)


def test_token_bucket_allows_burst_then_paces():
    clock = FakeClock()
    bucket = TokenBucketThrottle(rate_per_sec=2.0, capacity=1.0, clock=clock, sleep=clock.sleep)
    bucket.wait()
    assert clock.sleeps == []
    bucket.wait()
    assert clock.sleeps == [pytest.approx(0.5)]


def test_token_bucket_refills_over_time():
    clock = FakeClock()
    bucket = TokenBucketThrottle(rate_per_sec=1.0, clock=clock, sleep=clock.sleep)
    bucket.wait()
    clock.now += 5.0
    bucket.wait()
    assert clock.sleeps == []


def test_throttle_from_config():
    assert isinstance(throttle_from_config(BatchConfig(throttle="none")), NoThrottle)
    fixed = throttle_from_config(BatchConfig(delay_ms=250))
    assert isinstance(fixed, FixedDelayThrottle) and fixed.delay_seconds == 0.25
    bucket = throttle_from_config(BatchConfig(throttle="token_bucket", rate_per_sec=3.0))
    assert isinstance(bucket, TokenBucketThrottle) and bucket.rate_per_sec == 3.0


def test_cancellation_token():
    token = CancellationToken()
    assert not token.cancelled
    token.cancel()
    assert token.cancelled
