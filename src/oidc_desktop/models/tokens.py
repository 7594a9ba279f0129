"""Grant types, token responses and session token snapshots."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field


class GrantType(str, Enum):
    """OAuth 2.0 grant types known to the client.

    ``IMPLICIT`` is recognized only so it can be rejected explicitly.
    """

    AUTHORIZATION_CODE = "authorization_code"
    REFRESH_TOKEN = "refresh_token"
    CLIENT_CREDENTIALS = "client_credentials"
    IMPLICIT = "implicit"


class TokenResponse(BaseModel):
    """Successful token endpoint response (RFC 6749 Section 5.1).

    ``access_token`` and ``expires_in`` are required; a response without them
    is rejected by the token endpoint client. ``refresh_token`` is usually
    absent for the client credentials grant.
    """

    access_token: str = Field(min_length=1)
    expires_in: int = Field(ge=0)  # Seconds until expiry
    refresh_token: str | None = None

    token_type: str = "Bearer"
    scope: str | None = None
    id_token: str | None = None  # OIDC

    def to_session_tokens(
        self,
        previous_refresh_token: str | None = None,
        obtained_at: float | None = None,
    ) -> SessionTokens:
        """Convert to an immutable session snapshot.

        Args:
            previous_refresh_token: Kept when this response carries no new one
            obtained_at: Unix timestamp of the exchange, defaults to now
        """
        return SessionTokens(
            access_token=self.access_token,
            refresh_token=self.refresh_token or previous_refresh_token,
            expires_in=self.expires_in,
            id_token=self.id_token,
            obtained_at=time.time() if obtained_at is None else obtained_at,
        )


@dataclass(frozen=True)
class SessionTokens:
    """Consistent view of the current access/refresh token pair."""

    access_token: str
    refresh_token: str | None
    expires_in: int
    id_token: str | None = None
    obtained_at: float = 0.0  # Unix timestamp

    @property
    def expires_at(self) -> float:
        return self.obtained_at + self.expires_in

    def is_expired(self, now: float | None = None) -> bool:
        if now is None:
            now = time.time()
        return now >= self.expires_at

    def can_refresh(self) -> bool:
        return bool(self.refresh_token)
