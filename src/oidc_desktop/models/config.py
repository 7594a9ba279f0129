"""Client configuration for the OIDC desktop flow.

Configuration is validated exactly once, when it is created, so every later
call can trust the endpoints and client id to be present.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from oidc_desktop.models.errors import InvalidConfiguration

DEFAULT_SCOPE = "openid profile"
DEFAULT_TIMEOUT = 10.0
ENV_PREFIX = "OIDC_"


class ClientConfig(BaseModel):
    """Immutable OIDC client settings.

    A missing ``client_secret`` means a public client: the client credentials
    grant is unavailable and token requests carry only the client id.
    """

    model_config = ConfigDict(frozen=True)

    token_url: str
    auth_url: str
    client_id: str
    redirect_uri: str
    client_secret: str | None = None

    scope: str = DEFAULT_SCOPE
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)  # Seconds

    @field_validator("token_url", "auth_url", "client_id", "redirect_uri")
    @classmethod
    def require_non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("client_secret")
    @classmethod
    def normalize_secret(cls, v: str | None) -> str | None:
        return v or None

    @property
    def is_confidential(self) -> bool:
        """True when a client secret is configured."""
        return self.client_secret is not None

    @classmethod
    def create(cls, **fields: object) -> ClientConfig:
        """Validate fields and build a config.

        Raises:
            InvalidConfiguration: If a required field is missing or invalid
        """
        try:
            return cls(**fields)
        except ValidationError as e:
            raise InvalidConfiguration(f"Invalid client configuration: {e}") from e

    @classmethod
    def from_env(
        cls,
        env_file: str | os.PathLike[str] | None = None,
        prefix: str = ENV_PREFIX,
    ) -> ClientConfig:
        """Build a config from ``OIDC_*`` environment variables.

        Values from ``env_file`` (or a ``.env`` found by python-dotenv) are
        loaded first without overriding variables already set.

        Raises:
            InvalidConfiguration: If a required variable is missing or invalid
        """
        if env_file is not None:
            load_dotenv(env_file)
        else:
            load_dotenv()

        fields = {}
        for name in cls.model_fields:
            value = os.getenv(f"{prefix}{name.upper()}")
            if value is not None:
                fields[name] = value

        return cls.create(**fields)
