"""Process-wide session state.

Holds the live login attempt and the current token pair behind a single lock.
Token updates replace the whole snapshot at once, so readers never see an
access token paired with a stale refresh token.
"""

from __future__ import annotations

import logging
import threading

from oidc_desktop.models.flow import LoginAttempt
from oidc_desktop.models.tokens import SessionTokens, TokenResponse
from oidc_desktop.services.security import validate_redirect

logger = logging.getLogger(__name__)


class Session:
    """Login attempt and token state shared by the redirect and refresh paths."""

    def __init__(self):
        self._lock = threading.Lock()
        self._login_attempt: LoginAttempt | None = None
        self._tokens: SessionTokens | None = None
        self._generation = 0  # Bumped by replace() and clear()

    @property
    def login_attempt(self) -> LoginAttempt | None:
        with self._lock:
            return self._login_attempt

    def begin_login(self, state: str) -> LoginAttempt:
        """Make ``state`` the only state the next redirect may carry.

        Any previous attempt is discarded, so its state no longer validates.
        """
        attempt = LoginAttempt(expected_state=state)
        with self._lock:
            if self._login_attempt is not None:
                logger.debug("Superseding pending login attempt")
            self._login_attempt = attempt
        return attempt

    def consume_login(self, received_state: str | None) -> LoginAttempt:
        """Validate a callback state and retire the matching attempt.

        A mismatching callback leaves the live attempt untouched.

        Raises:
            StateMismatch: If ``received_state`` does not match the live attempt
        """
        with self._lock:
            attempt = self._login_attempt
            validate_redirect(attempt, received_state)
            self._login_attempt = None
        return attempt

    def replace(self, token_response: TokenResponse) -> SessionTokens:
        """Atomically replace the token pair with ``token_response``.

        Used for fresh logins: any refresh still running against the old
        pair is invalidated. A response without a refresh token keeps the
        current one.
        """
        with self._lock:
            self._generation += 1
            return self._store(token_response)

    def replace_if(
        self, generation: int, token_response: TokenResponse
    ) -> SessionTokens | None:
        """Replace the token pair only if no login or logout happened since
        ``generation`` was read.

        Returns:
            The new tokens, or None if the result was stale and dropped
        """
        with self._lock:
            if generation != self._generation:
                return None
            return self._store(token_response)

    def _store(self, token_response: TokenResponse) -> SessionTokens:
        previous = self._tokens.refresh_token if self._tokens else None
        self._tokens = token_response.to_session_tokens(
            previous_refresh_token=previous
        )
        return self._tokens

    def snapshot(self) -> SessionTokens | None:
        """Return the current token pair, or None before the first login."""
        with self._lock:
            return self._tokens

    def versioned_snapshot(self) -> tuple[SessionTokens | None, int]:
        """Return the current token pair with its generation."""
        with self._lock:
            return self._tokens, self._generation

    @property
    def is_authenticated(self) -> bool:
        return self.snapshot() is not None

    def clear(self) -> None:
        """Forget tokens and any pending login attempt."""
        with self._lock:
            self._generation += 1
            self._tokens = None
            self._login_attempt = None
