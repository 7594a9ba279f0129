"""Exception hierarchy for the OIDC desktop client.

Every failure mode of the login and token lifecycle has its own type so
callers (UI, refresh scheduler) can tell a rejected callback from a provider
error or a network outage.
"""

from __future__ import annotations


class OIDCError(Exception):
    """Base exception for all OIDC client errors."""

    pass


class InvalidConfiguration(OIDCError):
    """Raised when client configuration is missing or unusable.

    Also raised when a grant needs a client secret that was never configured.
    """

    pass


class InvalidArgument(OIDCError, ValueError):
    """Raised when a required grant input (code, refresh token) is empty."""

    pass


class UnsupportedGrant(OIDCError):
    """Raised when a recognized but unimplemented grant type is requested."""

    pass


class AuthorizationCallbackError(OIDCError):
    """Raised when the redirect callback cannot be turned into a token request."""

    pass


class StateMismatch(AuthorizationCallbackError):
    """Raised when the callback state does not match the live login attempt.

    A missing state, an absent login attempt and a plain mismatch are all
    treated the same way: the authorization code is dropped.
    """

    pass


class AuthorizationDenied(AuthorizationCallbackError):
    """Raised when the provider redirected back with an error instead of a code."""

    def __init__(self, error: str, description: str | None = None):
        self.error = error
        self.description = description
        message = f"Authorization denied: {error}"
        if description:
            message += f" - {description}"
        super().__init__(message)


class TokenError(OIDCError):
    """Raised when the token endpoint exchange fails."""

    pass


class TransportError(TokenError):
    """Raised when the token endpoint cannot be reached.

    The underlying network exception is chained as ``__cause__``.
    """

    pass


class TokenEndpointError(TokenError):
    """Raised when the token endpoint answers with a non-success status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Token endpoint returned {status_code}: {body}")


class MalformedTokenResponse(TokenError):
    """Raised when a success response lacks required token fields."""

    pass


class TokenRefreshError(TokenError):
    """Raised when a scheduled refresh fails for an unexpected reason.

    The original exception is chained as ``__cause__``.
    """

    pass
