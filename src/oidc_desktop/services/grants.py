"""Token request bodies per grant type.

Maps a grant type and its credential to the form body the token endpoint
expects. All validation happens here, before any network call.
"""

from __future__ import annotations

import logging

from oidc_desktop.models.config import ClientConfig
from oidc_desktop.models.errors import (
    InvalidArgument,
    InvalidConfiguration,
    UnsupportedGrant,
)
from oidc_desktop.models.tokens import GrantType
from oidc_desktop.primitives.encoding import encode_form

logger = logging.getLogger(__name__)

# Grant type -> name of the form field carrying the caller's credential.
CREDENTIAL_FIELDS: dict[GrantType, str | None] = {
    GrantType.AUTHORIZATION_CODE: "code",
    GrantType.REFRESH_TOKEN: "refresh_token",
    GrantType.CLIENT_CREDENTIALS: None,
}


def build_token_request_pairs(
    config: ClientConfig,
    grant_type: GrantType | str,
    credential: str | None = None,
) -> list[tuple[str, str]]:
    """Build ordered form fields for a token request.

    Order: ``grant_type``, the grant's credential field (if any),
    ``redirect_uri``, ``client_id`` and, when configured, ``client_secret``.

    Raises:
        UnsupportedGrant: For the implicit grant or an unknown grant type
        InvalidConfiguration: For client credentials without a client secret
        InvalidArgument: For a code or refresh token grant with no credential
    """
    try:
        grant = GrantType(grant_type)
    except ValueError as e:
        raise UnsupportedGrant(f"Unknown grant type: {grant_type}") from e

    if grant not in CREDENTIAL_FIELDS:
        raise UnsupportedGrant(f"Grant type not supported: {grant.value}")

    pairs = [("grant_type", grant.value)]

    credential_field = CREDENTIAL_FIELDS[grant]
    if credential_field is None:
        if not config.is_confidential:
            raise InvalidConfiguration(
                f"Grant type {grant.value} requires a configured client secret"
            )
    else:
        if not credential:
            raise InvalidArgument(
                f"Grant type {grant.value} requires a non-empty {credential_field}"
            )
        pairs.append((credential_field, credential))

    pairs.append(("redirect_uri", config.redirect_uri))
    pairs.append(("client_id", config.client_id))
    if config.client_secret is not None:
        pairs.append(("client_secret", config.client_secret))

    logger.debug(
        f"Token request: grant_type={grant.value}, client_id={config.client_id}"
    )
    return pairs


def build_token_request_body(
    config: ClientConfig,
    grant_type: GrantType | str,
    credential: str | None = None,
) -> str:
    """Build the form-encoded token request body for ``grant_type``."""
    return encode_form(build_token_request_pairs(config, grant_type, credential))
