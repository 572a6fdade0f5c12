import json

import pytest

from kokosa.repositories.rate_limiter import RateLimiter


class Clock:
    def __init__(self, now: int = 1_700_000_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture()
def clock():
    return Clock()


@pytest.fixture()
def limiter(store, clock):
    return RateLimiter(store, max_requests=10, window_ms=60000, ttl_seconds=120, clock=clock)


@pytest.mark.asyncio
async def test_tenth_request_allowed_eleventh_denied(limiter, clock):
    results = []
    for _ in range(10):
        results.append(await limiter.check("7"))
        clock.now += 1000

    assert all(r.allowed for r in results)
    assert [r.remaining for r in results] == list(range(9, -1, -1))

    denied = await limiter.check("7")
    assert denied.allowed is False
    assert denied.remaining == 0
    assert denied.reset_in_seconds == 50


@pytest.mark.asyncio
async def test_denied_check_leaves_window_untouched(limiter, store):
    for _ in range(10):
        await limiter.check("7")
    before = await store.get("ratelimit:7")

    await limiter.check("7")
    await limiter.check("7")

    assert await store.get("ratelimit:7") == before
    assert json.loads(before)["count"] == 10


@pytest.mark.asyncio
async def test_new_window_after_window_elapses(limiter, clock):
    for _ in range(11):
        await limiter.check("7")

    clock.now += 60001
    result = await limiter.check("7")

    assert result.allowed is True
    assert result.remaining == 9


@pytest.mark.asyncio
async def test_window_boundary_is_inclusive(limiter, clock):
    for _ in range(10):
        await limiter.check("7")

    clock.now += 60000
    result = await limiter.check("7")

    assert result.allowed is False
    assert result.reset_in_seconds == 0


@pytest.mark.asyncio
async def test_guests_are_limited_independently(limiter):
    for _ in range(10):
        await limiter.check("1")

    assert (await limiter.check("1")).allowed is False
    assert (await limiter.check("2")).allowed is True


def test_ttl_must_outlast_window(store):
    with pytest.raises(ValueError):
        RateLimiter(store, window_ms=60000, ttl_seconds=60)


def test_config_reports_limits(limiter):
    config = limiter.config()
    assert (config.max_requests, config.window_ms) == (10, 60000)
