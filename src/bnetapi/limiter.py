"""
Issuance-rate throttle for a single batch.

The limiter counts dispatched requests in a 1-second and a 1-hour window.
Windows are fixed and hard-reset: when a window has elapsed, or after a
throttle pause, its counter drops back to zero. There is no sliding-window
smoothing.

Notes
-----
This throttles the rate at which requests are *issued* by the dispatcher. It
cannot guarantee the rate at which they arrive at the remote server, since
network and queuing delays are outside of its control.
"""

from __future__ import annotations

import asyncio
import time
import typing as t

import structlog

from bnetapi.exceptions import ConfigurationError

log = structlog.get_logger(__name__)

SECOND_WINDOW_SECONDS = 1.0
HOUR_WINDOW_SECONDS = 3600.0


class RateLimiter:
    """
    Decide when the dispatcher must pause before issuing the next request.

    Parameters
    ----------
    max_per_second : int, optional
        Ceiling for the 1-second window, ``0`` disables it.
    max_per_hour : int, optional
        Ceiling for the 1-hour window, ``0`` disables it.
    clock : typing.Callable[[], float], optional
        Monotonic clock in seconds.
    sleep : typing.Callable[[float], typing.Awaitable[None]], optional
        Coroutine used to pause.
    """

    def __init__(
        self,
        *,
        max_per_second: int = 0,
        max_per_hour: int = 0,
        clock: t.Callable[[], float] = time.monotonic,
        sleep: t.Callable[[float], t.Awaitable[t.Any]] = asyncio.sleep,
    ) -> None:
        if max_per_second < 0 or max_per_hour < 0:
            raise ConfigurationError("Throttle ceilings must be >= 0.")
        self.max_per_second = max_per_second
        self.max_per_hour = max_per_hour
        self._clock = clock
        self._sleep = sleep

        now = self._clock()
        self.count_this_second = 0
        self.count_this_hour = 0
        self.window_start_second = now
        self.window_start_hour = now
        self.pauses: list[float] = []

    @property
    def per_second_active(self) -> bool:
        return self.max_per_second > 0

    @property
    def per_hour_active(self) -> bool:
        return self.max_per_hour > 0

    def _roll_windows(self) -> None:
        now = self._clock()
        if now - self.window_start_second >= SECOND_WINDOW_SECONDS:
            self.window_start_second = now
            self.count_this_second = 0
        if now - self.window_start_hour >= HOUR_WINDOW_SECONDS:
            self.window_start_hour = now
            self.count_this_hour = 0

    def should_throttle_second(self) -> bool:
        """
        Check whether the 1-second ceiling has been reached.

        Returns
        -------
        bool
            ``True`` if the caller must pause before the next dispatch.
        """
        self._roll_windows()
        return self.per_second_active and self.count_this_second >= self.max_per_second

    def should_throttle_hour(self) -> bool:
        """
        Check whether the 1-hour ceiling has been reached.

        Returns
        -------
        bool
            ``True`` if the caller must pause before the next dispatch.
        """
        self._roll_windows()
        return self.per_hour_active and self.count_this_hour >= self.max_per_hour

    def record_dispatch(self) -> None:
        """Count one issued request in both windows."""
        self.count_this_second += 1
        self.count_this_hour += 1

    async def _pause(self, *, seconds: float, window: str) -> None:
        log.info(
            event="Throttle ceiling reached, pausing dispatch",
            window=window,
            pause_seconds=seconds,
            count_this_second=self.count_this_second,
            count_this_hour=self.count_this_hour,
        )
        self.pauses.append(seconds)
        await self._sleep(seconds)
        now = self._clock()
        self.window_start_second = now
        self.count_this_second = 0
        if window == "hour":
            self.window_start_hour = now
            self.count_this_hour = 0

    async def acquire(self) -> None:
        """
        Wait until one more request may be issued, then record it.

        The per-second ceiling is honored first. After any pause both
        ceilings are evaluated again before the dispatch is recorded.
        """
        while True:
            if self.should_throttle_second():
                await self._pause(seconds=SECOND_WINDOW_SECONDS, window="second")
                continue
            if self.should_throttle_hour():
                await self._pause(seconds=HOUR_WINDOW_SECONDS, window="hour")
                continue
            break
        self.record_dispatch()
