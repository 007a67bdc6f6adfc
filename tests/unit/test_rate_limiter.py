"""Unit tests for the call-spacing rate limiter."""
import pytest

from src.core.rate_limiter import RateLimiter


@pytest.mark.asyncio
async def test_first_acquire_does_not_wait(fast_limiter, fake_clock):
    limiter = fast_limiter(2.0)
    await limiter.acquire()
    assert fake_clock.sleeps == []


@pytest.mark.asyncio
async def test_waits_remaining_interval(fast_limiter, fake_clock):
    limiter = fast_limiter(2.0)
    await limiter.acquire()
    fake_clock.advance(0.5)
    await limiter.acquire()
    assert fake_clock.sleeps == [pytest.approx(1.5)]


@pytest.mark.asyncio
async def test_no_wait_when_interval_already_elapsed(fast_limiter, fake_clock):
    limiter = fast_limiter(1.0)
    await limiter.acquire()
    fake_clock.advance(3.0)
    await limiter.acquire()
    assert fake_clock.sleeps == []


@pytest.mark.asyncio
async def test_usage_stats(fast_limiter):
    limiter = fast_limiter(1.0)
    for _ in range(3):
        await limiter.acquire()
    usage = limiter.get_usage()
    assert usage["calls"] == 3
    assert usage["waited_seconds"] == 2.0
    assert usage["min_interval"] == 1.0


@pytest.mark.asyncio
async def test_jitter_adds_to_interval(fake_clock):
    limiter = RateLimiter(min_interval=1.0, jitter=0.5, clock=fake_clock, sleep=fake_clock.sleep)
    await limiter.acquire()
    await limiter.acquire()
    assert 1.0 <= fake_clock.sleeps[0] <= 1.5


def test_negative_interval_rejected():
    with pytest.raises(ValueError):
        RateLimiter(min_interval=-1)
