"""CSRF state generation and redirect validation.

The state parameter binds a redirect callback to the login attempt that
started it. Anything other than an exact match aborts the login.
"""

from __future__ import annotations

import secrets

from oidc_desktop.models.errors import StateMismatch
from oidc_desktop.models.flow import LoginAttempt

STATE_BYTES = 32


def generate_state() -> str:
    """Generate a cryptographically secure, URL-safe state parameter."""
    return secrets.token_urlsafe(STATE_BYTES)


def validate_redirect(
    attempt: LoginAttempt | None, received_state: str | None
) -> None:
    """Check a callback state against the live login attempt.

    Args:
        attempt: The live login attempt, or None if no login is pending
        received_state: The ``state`` query parameter of the callback

    Raises:
        StateMismatch: If there is no live attempt, the state is absent, or it
            differs from the expected one in any way (case included)
    """
    if attempt is None:
        raise StateMismatch("No login attempt is pending for this redirect")

    if received_state is None:
        raise StateMismatch("Redirect callback missing required state parameter")

    if not secrets.compare_digest(
        attempt.expected_state.encode("utf-8"), received_state.encode("utf-8")
    ):
        raise StateMismatch("State parameter mismatch - possible CSRF attack")
