"""
Tests for the RateLimiter class in bnetapi.limiter.
"""

import pytest

from bnetapi.exceptions import ConfigurationError
from bnetapi.limiter import HOUR_WINDOW_SECONDS, SECOND_WINDOW_SECONDS, RateLimiter
from tests.mocks.battlenet import FakeClock


def _limiter(clock: FakeClock, **ceilings: int) -> RateLimiter:
    return RateLimiter(clock=clock, sleep=clock.sleep, **ceilings)


def test_limiter_disabled_by_default(clock: FakeClock) -> None:
    """Zero ceilings never throttle."""
    limiter = _limiter(clock)
    for _ in range(1000):
        limiter.record_dispatch()

    assert limiter.should_throttle_second() is False
    assert limiter.should_throttle_hour() is False


@pytest.mark.parametrize(
    "ceilings",
    [{"max_per_second": -1}, {"max_per_hour": -5}],
)
def test_limiter_rejects_negative_ceilings(clock: FakeClock, ceilings: dict[str, int]) -> None:
    with pytest.raises(ConfigurationError, match="Throttle ceilings"):
        _limiter(clock, **ceilings)


def test_should_throttle_second_at_ceiling(clock: FakeClock) -> None:
    """Exactly ``N`` dispatches fill the window, the next one must wait."""
    limiter = _limiter(clock, max_per_second=3)
    for _ in range(2):
        limiter.record_dispatch()
    assert limiter.should_throttle_second() is False

    limiter.record_dispatch()
    assert limiter.should_throttle_second() is True


def test_second_window_rolls_over(clock: FakeClock) -> None:
    """The counter is hard-reset once the window has elapsed."""
    limiter = _limiter(clock, max_per_second=2)
    limiter.record_dispatch()
    limiter.record_dispatch()
    assert limiter.should_throttle_second() is True

    clock.advance(SECOND_WINDOW_SECONDS)

    assert limiter.should_throttle_second() is False
    assert limiter.count_this_second == 0
    assert limiter.window_start_second == clock.now


def test_hour_window_rolls_over(clock: FakeClock) -> None:
    limiter = _limiter(clock, max_per_hour=1)
    limiter.record_dispatch()
    assert limiter.should_throttle_hour() is True

    clock.advance(HOUR_WINDOW_SECONDS - 1)
    assert limiter.should_throttle_hour() is True

    clock.advance(1)
    assert limiter.should_throttle_hour() is False
    assert limiter.count_this_hour == 0


def test_record_dispatch_counts_both_windows(clock: FakeClock) -> None:
    limiter = _limiter(clock, max_per_second=10, max_per_hour=10)
    limiter.record_dispatch()
    limiter.record_dispatch()

    assert limiter.count_this_second == 2
    assert limiter.count_this_hour == 2


@pytest.mark.asyncio
async def test_acquire_never_sleeps_when_disabled(clock: FakeClock) -> None:
    limiter = _limiter(clock)
    for _ in range(50):
        await limiter.acquire()

    assert clock.sleeps == []
    assert limiter.count_this_second == 50


@pytest.mark.asyncio
async def test_acquire_pauses_a_full_second(clock: FakeClock) -> None:
    """The ``N+1``-th dispatch in a window waits one second, then the counter restarts."""
    limiter = _limiter(clock, max_per_second=2)
    dispatch_times = []
    for _ in range(5):
        await limiter.acquire()
        dispatch_times.append(clock.now)

    assert clock.sleeps == [SECOND_WINDOW_SECONDS, SECOND_WINDOW_SECONDS]
    assert dispatch_times == [1000.0, 1000.0, 1001.0, 1001.0, 1002.0]
    assert limiter.count_this_second == 1


@pytest.mark.asyncio
async def test_acquire_never_exceeds_ceiling_in_any_window(clock: FakeClock) -> None:
    limiter = _limiter(clock, max_per_second=4)
    dispatch_times = []
    for step in range(30):
        await limiter.acquire()
        dispatch_times.append(clock.now)
        if step % 7 == 0:
            clock.advance(0.3)

    for start in dispatch_times:
        in_window = [time for time in dispatch_times if start <= time < start + 1.0]
        assert len(in_window) <= 4


@pytest.mark.asyncio
async def test_acquire_pauses_a_full_hour(clock: FakeClock) -> None:
    limiter = _limiter(clock, max_per_hour=2)
    for _ in range(3):
        await limiter.acquire()

    assert clock.sleeps == [HOUR_WINDOW_SECONDS]
    assert limiter.count_this_hour == 1


@pytest.mark.asyncio
async def test_second_pause_is_honored_before_hour_pause(clock: FakeClock) -> None:
    """When both ceilings trip together the per-second pause comes first."""
    limiter = _limiter(clock, max_per_second=2, max_per_hour=2)
    await limiter.acquire()
    await limiter.acquire()

    await limiter.acquire()

    assert clock.sleeps == [SECOND_WINDOW_SECONDS, HOUR_WINDOW_SECONDS]
    assert limiter.count_this_second == 1
    assert limiter.count_this_hour == 1
