"""Authorization flow models for the OIDC code flow.

Contains the browser-facing authorization request, the parsed redirect
callback and the live login attempt it is checked against.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from oidc_desktop.models.config import ClientConfig
from oidc_desktop.primitives.encoding import encode_query


@dataclass(frozen=True)
class AuthorizationRequest:
    """Authorization request parameters for the code flow."""

    authorization_endpoint: str
    client_id: str
    redirect_uri: str
    state: str
    scope: str

    def build_authorization_url(self) -> str:
        """Build the complete authorization URL."""
        query = encode_query(
            [
                ("client_id", self.client_id),
                ("state", self.state),
                ("redirect_uri", self.redirect_uri),
                ("response_type", "code"),
                ("scope", self.scope),
            ]
        )
        separator = "&" if "?" in self.authorization_endpoint else "?"
        return f"{self.authorization_endpoint}{separator}{query}"


def build_authorization_url(config: ClientConfig, state: str) -> str:
    """Build the authorization URL for ``config`` carrying ``state``.

    The caller owns ``state``: it must be fresh and unpredictable, and it must
    be remembered as the live login attempt before the browser is opened.
    """
    return AuthorizationRequest(
        authorization_endpoint=config.auth_url,
        client_id=config.client_id,
        redirect_uri=config.redirect_uri,
        state=state,
        scope=config.scope,
    ).build_authorization_url()


@dataclass(frozen=True)
class AuthorizationResponse:
    code: str | None = None
    state: str | None = None
    error: str | None = None
    error_description: str | None = None

    @classmethod
    def from_query_params(cls, params: Mapping[str, str]) -> AuthorizationResponse:
        return cls(
            code=params.get("code") or None,
            state=params.get("state"),
            error=params.get("error") or None,
            error_description=params.get("error_description") or None,
        )

    def is_success(self) -> bool:
        return self.error is None and self.code is not None

    def is_error(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class LoginAttempt:
    """The login attempt whose state the next redirect must carry."""

    expected_state: str
