"""Recurring access token refresh.

RefreshScheduler is a small state machine (IDLE -> ARMED -> FIRING -> ARMED,
CANCELLED from anywhere) driven by a cancellable Ticker. The baseline policy
refreshes at a fixed rate equal to the reported ``expires_in``, without safety
margin, jitter or backoff.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import Protocol

from oidc_desktop.models.errors import OIDCError, TokenRefreshError
from oidc_desktop.models.tokens import TokenResponse

logger = logging.getLogger(__name__)

# Returns the interval until the next tick, or None to keep the current one.
TickCallback = Callable[[], "float | None"]


class Ticker(Protocol):
    """Cancellable recurring timer."""

    def arm(self, delay: float, callback: TickCallback) -> None:
        """Fire ``callback`` after ``delay`` seconds, then every interval.

        Re-arming replaces any previous schedule.
        """
        ...

    def cancel(self) -> None:
        """Stop the schedule. No tick starts after this returns."""
        ...


class ThreadTicker:
    """Ticker running on a daemon thread.

    With ``fixed_rate`` each deadline is the previous *scheduled* time plus
    the interval, so a slow tick does not shift later ones. Otherwise the
    interval is measured from the end of the previous tick.
    """

    def __init__(
        self,
        fixed_rate: bool = True,
        name: str = "RefreshTokenTimer",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.fixed_rate = fixed_rate
        self.name = name
        self._clock = clock
        self._lock = threading.Lock()
        self._stop: threading.Event | None = None
        self._thread: threading.Thread | None = None

    def arm(self, delay: float, callback: TickCallback) -> None:
        stop = threading.Event()
        thread = threading.Thread(
            target=self._run,
            args=(delay, callback, stop),
            name=self.name,
            daemon=True,
        )
        with self._lock:
            if self._stop is not None:
                self._stop.set()
            self._stop = stop
            self._thread = thread
        thread.start()

    def cancel(self) -> None:
        with self._lock:
            if self._stop is not None:
                self._stop.set()
            self._stop = None
            self._thread = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    def _run(self, delay: float, callback: TickCallback, stop: threading.Event) -> None:
        interval = delay
        deadline = self._clock() + delay
        while not stop.wait(max(0.0, deadline - self._clock())):
            next_interval = callback()
            if next_interval is not None:
                interval = next_interval
            anchor = deadline if self.fixed_rate else self._clock()
            deadline = anchor + interval


class SchedulerState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    FIRING = "firing"
    CANCELLED = "cancelled"


class RefreshScheduler:
    """Drives periodic token refresh until cancelled.

    A failed refresh is reported to ``on_error`` and retried on the next tick;
    the scheduler never stops itself.
    """

    def __init__(
        self,
        refresh: Callable[[], TokenResponse],
        ticker: Ticker | None = None,
        on_error: Callable[[OIDCError], None] | None = None,
    ):
        """Initialize the refresh scheduler.

        Args:
            refresh: Performs one refresh and returns the new token response
            ticker: Timer driving the ticks, a ThreadTicker by default
            on_error: Receives refresh failures
        """
        self._refresh = refresh
        self._ticker = ticker or ThreadTicker()
        self._on_error = on_error
        self._lock = threading.Lock()
        self._state = SchedulerState.IDLE
        self._interval: float | None = None

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            return self._state

    @property
    def interval(self) -> float | None:
        """Seconds between ticks, None until armed."""
        with self._lock:
            return self._interval

    def arm(self, expires_in: int) -> bool:
        """Schedule refreshes every ``expires_in`` seconds, starting in ``expires_in``.

        Returns:
            True if armed, False if the scheduler is cancelled or the
            interval is zero
        """
        with self._lock:
            if self._state is SchedulerState.CANCELLED:
                logger.warning("Ignoring arm request on a cancelled refresh scheduler")
                return False

            if expires_in <= 0:
                logger.warning(
                    f"Not scheduling refresh for token with expires_in={expires_in}"
                )
                return False

            self._interval = float(expires_in)
            self._state = SchedulerState.ARMED
            self._ticker.arm(self._interval, self._fire)

        logger.info(f"Token refresh scheduled every {expires_in}s")
        return True

    def cancel(self) -> None:
        """Stop refreshing for good. Safe to call from any state."""
        with self._lock:
            if self._state is SchedulerState.CANCELLED:
                return
            self._state = SchedulerState.CANCELLED
            self._ticker.cancel()
        logger.debug("Refresh scheduler cancelled")

    def _fire(self) -> float | None:
        with self._lock:
            if self._state is not SchedulerState.ARMED:
                return None
            self._state = SchedulerState.FIRING

        next_interval = None
        error: OIDCError | None = None
        try:
            token_response = self._refresh()
        except OIDCError as e:
            logger.warning(f"Token refresh failed, retrying on next tick: {e}")
            error = e
        except Exception as e:
            logger.exception("Unexpected error during token refresh")
            error = TokenRefreshError(f"Unexpected error during token refresh: {e}")
            error.__cause__ = e
        else:
            if token_response.expires_in > 0:
                next_interval = float(token_response.expires_in)
        finally:
            with self._lock:
                if self._state is SchedulerState.FIRING:
                    self._state = SchedulerState.ARMED
                    if next_interval is not None:
                        self._interval = next_interval

        if error is not None:
            self._report(error)
        return next_interval

    def _report(self, error: OIDCError) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception:
            logger.exception("Refresh error handler failed")
