"""Hand-off of session results from worker threads to the UI.

Token exchanges finish on worker threads. Their outcome is delivered through
a SessionObserver; LatestEventSlot is an observer a UI loop can drain from its
own thread.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Protocol

from oidc_desktop.models.errors import OIDCError
from oidc_desktop.models.tokens import SessionTokens

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokensUpdated:
    tokens: SessionTokens
    refreshed: bool = False


@dataclass(frozen=True)
class SessionFailed:
    error: OIDCError
    during_refresh: bool = False


SessionEvent = TokensUpdated | SessionFailed


class SessionObserver(Protocol):
    """Receives session events. Called from worker threads."""

    def on_event(self, event: SessionEvent) -> None: ...


class LoggingObserver:
    """Observer that only logs events. Used when no UI is attached."""

    def on_event(self, event: SessionEvent) -> None:
        if isinstance(event, TokensUpdated):
            logger.info(f"Session tokens updated (refreshed={event.refreshed})")
        else:
            logger.warning(f"Session operation failed: {event.error}")


class LatestEventSlot:
    """Single-slot, thread-safe event queue.

    Only the newest event is kept: publishing into a full slot drops the
    stale event, so a slow UI always renders the current session state.
    """

    def __init__(self):
        self._queue: queue.Queue[SessionEvent] = queue.Queue(maxsize=1)
        self._put_lock = threading.Lock()

    def on_event(self, event: SessionEvent) -> None:
        with self._put_lock:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                pass
            self._queue.put_nowait(event)

    def get(self, timeout: float | None = None) -> SessionEvent | None:
        """Take the pending event, waiting up to ``timeout`` seconds.

        Returns:
            The newest event, or None if nothing arrived in time
        """
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def get_nowait(self) -> SessionEvent | None:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None
