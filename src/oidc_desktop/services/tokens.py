"""Token endpoint client.

Performs the blocking form-encoded POST to the token endpoint (RFC 6749
Section 3.2) and turns the JSON answer into a TokenResponse. This is the only
place the client talks to the network; it never retries.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from oidc_desktop.models.config import DEFAULT_TIMEOUT, ClientConfig
from oidc_desktop.models.errors import (
    MalformedTokenResponse,
    TokenEndpointError,
    TransportError,
)
from oidc_desktop.models.tokens import TokenResponse

logger = logging.getLogger(__name__)

FORM_HEADERS = {
    "Content-Type": "application/x-www-form-urlencoded",
    "Accept": "application/json",
}


class TokenEndpointClient:
    """Synchronous token endpoint client with bounded timeouts.

    Calls block for at most ``timeout`` seconds per connect/read phase, so
    they belong on a worker thread, never on a UI thread.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        """Initialize the token endpoint client.

        Args:
            timeout: Connect/read/write timeout in seconds
        """
        self.timeout = timeout
        self._http_client = httpx.Client(timeout=timeout)

    def exchange_token(self, config: ClientConfig, request_body: str) -> TokenResponse:
        """POST ``request_body`` to the token endpoint and parse the answer.

        Args:
            config: Client configuration supplying the token endpoint
            request_body: Form-encoded body, sent verbatim

        Returns:
            TokenResponse: Parsed successful response

        Raises:
            TransportError: If the endpoint could not be reached
            TokenEndpointError: If the endpoint returned a non-success status
            MalformedTokenResponse: If a success response lacks required fields
        """
        logger.debug(f"Requesting tokens from {config.token_url}")

        try:
            response = self._http_client.post(
                config.token_url,
                content=request_body.encode("utf-8"),
                headers=FORM_HEADERS,
            )
        except httpx.HTTPError as e:
            raise TransportError(
                f"HTTP error during token exchange with {config.token_url}: {e}"
            ) from e

        return self._parse_token_response(response)

    def _parse_token_response(self, response: httpx.Response) -> TokenResponse:
        """Parse a token endpoint response.

        Raises:
            TokenEndpointError: For any non-2xx status
            MalformedTokenResponse: For a 2xx body that is not a valid token response
        """
        if not response.is_success:
            logger.warning(
                f"Token endpoint returned {response.status_code}: {response.text}"
            )
            raise TokenEndpointError(response.status_code, response.text)

        try:
            response_data = response.json()
        except ValueError as e:
            raise MalformedTokenResponse(
                f"Token response is not valid JSON: {e}"
            ) from e

        if not isinstance(response_data, dict):
            raise MalformedTokenResponse("Token response is not a JSON object")

        try:
            token_response = TokenResponse.model_validate(response_data)
        except ValidationError as e:
            raise MalformedTokenResponse(f"Invalid token response format: {e}") from e

        logger.info("Token exchange successful")
        return token_response

    def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        self._http_client.close()

    def __enter__(self) -> TokenEndpointClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
