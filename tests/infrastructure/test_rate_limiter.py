import asyncio
import random
import time
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from typolet.infrastructure.rate_limiter import RateLimiter, RateLimitInfo


# ---- RateLimitInfo ---------------------------------------------------------

def test_rate_limit_info_is_exhausted():
    info = RateLimitInfo()
    info.remaining = 11
    assert not info.is_exhausted

    info.remaining = 10
    assert info.is_exhausted

    info.remaining = 0
    assert info.is_exhausted


def test_rate_limit_info_reset_in_seconds():
    info = RateLimitInfo()
    mock_now = datetime(2025, 10, 2, 12, 0, 0)

    with patch("typolet.infrastructure.rate_limiter.datetime", autospec=True) as mock_datetime:
        mock_datetime.now.return_value = mock_now

        info.reset_time = mock_now + timedelta(seconds=30)
        assert info.reset_in_seconds == 30.0

        info.reset_time = mock_now - timedelta(seconds=30)
        assert info.reset_in_seconds == 0.0

        info.reset_time = None
        assert info.reset_in_seconds == 0.0


def test_ratelimiter_initialization():
    rl = RateLimiter(default_delay=0.5, max_delay=30.0, adaptive=False)
    assert rl.default_delay == 0.5
    assert rl.max_delay == 30.0
    assert not rl.adaptive


# ---- header updates --------------------------------------------------------

@pytest.mark.asyncio
async def test_update_rate_limit_info_sets_values_correctly():
    rl = RateLimiter()
    reset_timestamp = int(time.time()) + 60

    await rl.update_rate_limit_info({
        "x-ratelimit-limit": "5000",
        "x-ratelimit-remaining": "4500",
        "x-ratelimit-used": "500",
        "x-ratelimit-reset": str(reset_timestamp),
    })
    info = rl.rate_limit_info

    assert info.limit == 5000
    assert info.remaining == 4500
    assert info.used == 500
    assert info.reset_time == datetime.fromtimestamp(reset_timestamp)
    assert not info.is_exhausted


@pytest.mark.asyncio
async def test_update_rate_limit_tracks_consecutive_limits():
    rl = RateLimiter()

    await rl.update_rate_limit_info({"x-ratelimit-remaining": "5"})
    await rl.update_rate_limit_info({"x-ratelimit-remaining": "5"})
    assert rl._consecutive_limits == 2

    await rl.update_rate_limit_info({"x-ratelimit-remaining": "100"})
    assert rl._consecutive_limits == 0


@pytest.mark.asyncio
async def test_update_ignores_missing_headers():
    rl = RateLimiter()
    await rl.update_rate_limit_info({})
    assert rl.rate_limit_info.remaining == 5000


# ---- acquire ---------------------------------------------------------------

@pytest.mark.asyncio
@patch("asyncio.sleep", new_callable=AsyncMock)
async def test_acquire_waits_when_rate_limit_exhausted(mock_sleep):
    rl = RateLimiter()
    mock_now = datetime(2025, 10, 2, 12, 0, 0)

    with patch("typolet.infrastructure.rate_limiter.datetime", autospec=True) as mock_datetime:
        mock_datetime.now.return_value = mock_now
        rl.rate_limit_info.remaining = 5
        rl.rate_limit_info.reset_time = mock_now + timedelta(seconds=15)

        await rl.acquire()

    mock_sleep.assert_any_call(15.0)


@pytest.mark.asyncio
@patch("asyncio.sleep", new_callable=AsyncMock)
async def test_acquire_does_not_sleep_without_spacing(mock_sleep):
    rl = RateLimiter(default_delay=0.0)

    await rl.acquire()

    mock_sleep.assert_not_called()


@pytest.mark.asyncio
@patch("asyncio.sleep", new_callable=AsyncMock)
async def test_acquire_spaces_consecutive_requests(mock_sleep):
    rl = RateLimiter(default_delay=1.0, adaptive=False)

    with patch("time.time", return_value=1000.0):
        await rl.acquire()
        await rl.acquire()

    mock_sleep.assert_called_with(1.0)


@pytest.mark.asyncio
async def test_acquire_updates_last_request_time():
    rl = RateLimiter()

    with patch("time.time", return_value=12345.0):
        await rl.acquire()

    assert rl._last_request == 12345.0


@pytest.mark.asyncio
async def test_update_rate_limit_info_is_task_safe():
    rl = RateLimiter()

    async def worker(headers):
        await asyncio.sleep(0.01 * random.random())
        await rl.update_rate_limit_info(headers)

    await asyncio.gather(*(
        worker({"x-ratelimit-limit": str(5000 + i), "x-ratelimit-remaining": str(4000 + i)})
        for i in range(50)
    ))

    i = rl.rate_limit_info.limit - 5000
    assert rl.rate_limit_info.remaining == 4000 + i
