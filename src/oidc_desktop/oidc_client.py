"""OIDC desktop client orchestration.

Ties together the authorization URL, redirect validation, token exchange,
session state and the refresh scheduler into the login flow a desktop UI
drives: initiate a login, hand the URL to a browser, complete the login when
the redirect arrives, and keep the tokens fresh afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from oidc_desktop.models.config import ClientConfig
from oidc_desktop.models.errors import (
    AuthorizationDenied,
    InvalidArgument,
    OIDCError,
)
from oidc_desktop.models.flow import AuthorizationResponse, build_authorization_url
from oidc_desktop.models.tokens import GrantType, SessionTokens, TokenResponse
from oidc_desktop.services.events import (
    LoggingObserver,
    SessionEvent,
    SessionFailed,
    SessionObserver,
    TokensUpdated,
)
from oidc_desktop.services.grants import build_token_request_body
from oidc_desktop.services.scheduler import RefreshScheduler, Ticker
from oidc_desktop.services.security import generate_state
from oidc_desktop.services.session import Session
from oidc_desktop.services.tokens import TokenEndpointClient

logger = logging.getLogger(__name__)


class OIDCClient:
    """Complete OIDC client for a desktop login.

    Every method that talks to the token endpoint blocks; UIs should call
    them from a worker thread or use ``complete_login``, which reports its
    outcome to the observer instead of raising.
    """

    def __init__(
        self,
        config: ClientConfig,
        token_client: TokenEndpointClient | None = None,
        session: Session | None = None,
        observer: SessionObserver | None = None,
        ticker: Ticker | None = None,
        open_browser: Callable[[str], object] | None = None,
    ):
        """Initialize the OIDC client.

        Args:
            config: Validated client configuration
            token_client: Token endpoint client, built from config if omitted
            session: Session state holder
            observer: Receives token updates and failures from worker threads
            ticker: Timer for the refresh scheduler
            open_browser: Called with the authorization URL on login
        """
        self.config = config
        self.session = session or Session()
        self.observer = observer or LoggingObserver()
        self.open_browser = open_browser

        self._token_client = token_client or TokenEndpointClient(
            timeout=config.timeout
        )
        self._ticker = ticker
        self.scheduler = self._create_scheduler()

    @property
    def tokens(self) -> SessionTokens | None:
        """Current token pair, or None before the first login."""
        return self.session.snapshot()

    def initiate_login(self) -> str:
        """Start a new login attempt.

        Generates a fresh state, makes it the only one the next redirect may
        carry, and opens the authorization URL if a browser opener is set.

        Returns:
            The authorization URL for the user to visit
        """
        state = generate_state()
        self.session.begin_login(state)
        auth_url = build_authorization_url(self.config, state)

        logger.info(f"Generated authorization URL for client {self.config.client_id}")

        if self.open_browser is not None:
            self.open_browser(auth_url)
        return auth_url

    def handle_redirect(
        self,
        code: str | None,
        state: str | None,
        error: str | None = None,
        error_description: str | None = None,
    ) -> SessionTokens:
        """Validate a redirect callback and exchange its code for tokens.

        Raises:
            StateMismatch: If the state does not belong to the live attempt;
                the code is discarded
            AuthorizationDenied: If the provider redirected with an error
            InvalidArgument: If the callback carries no code
            TokenError: If the token exchange fails
        """
        auth_response = AuthorizationResponse(
            code=code or None,
            state=state,
            error=error,
            error_description=error_description,
        )

        self.session.consume_login(auth_response.state)

        if auth_response.is_error():
            raise AuthorizationDenied(
                auth_response.error, auth_response.error_description
            )
        if not auth_response.is_success():
            raise InvalidArgument("Redirect callback missing authorization code")

        logger.debug("Exchanging authorization code for tokens")
        body = build_token_request_body(
            self.config, GrantType.AUTHORIZATION_CODE, auth_response.code
        )
        token_response = self._token_client.exchange_token(self.config, body)
        return self.process_token_response(token_response)

    def complete_login(self, params: AuthorizationResponse) -> SessionTokens | None:
        """Finish a login from a redirect callback, reporting to the observer.

        Meant to run on a worker thread: failures are logged and published as
        SessionFailed events instead of being raised.

        Returns:
            The new tokens, or None if the login failed
        """
        try:
            return self.handle_redirect(
                params.code, params.state, params.error, params.error_description
            )
        except OIDCError as e:
            logger.error(f"Login failed: {e}")
            self._notify(SessionFailed(e))
            return None

    def login_with_client_credentials(self) -> SessionTokens:
        """Obtain tokens with the client credentials grant.

        Raises:
            InvalidConfiguration: If no client secret is configured
            TokenError: If the token exchange fails
        """
        body = build_token_request_body(self.config, GrantType.CLIENT_CREDENTIALS)
        token_response = self._token_client.exchange_token(self.config, body)
        return self.process_token_response(token_response)

    def process_token_response(self, token_response: TokenResponse) -> SessionTokens:
        """Store a fresh login's tokens and arm the refresh scheduler."""
        tokens = self.session.replace(token_response)
        self.scheduler.arm(token_response.expires_in)
        self._notify(TokensUpdated(tokens))
        return tokens

    def refresh(self) -> TokenResponse:
        """Exchange the current refresh token for new tokens.

        If a logout or a new login lands while the exchange is in flight,
        the result is dropped and observers are not notified.

        Raises:
            InvalidArgument: If the session holds no refresh token
            TokenError: If the token exchange fails
        """
        current, generation = self.session.versioned_snapshot()
        refresh_token = current.refresh_token if current else None

        body = build_token_request_body(
            self.config, GrantType.REFRESH_TOKEN, refresh_token
        )
        token_response = self._token_client.exchange_token(self.config, body)

        tokens = self.session.replace_if(generation, token_response)
        if tokens is None:
            logger.debug("Discarding refresh result superseded by logout or login")
            return token_response

        logger.info("Successfully refreshed access token")
        self._notify(TokensUpdated(tokens, refreshed=True))
        return token_response

    def logout(self) -> None:
        """Drop local tokens and stop refreshing. No provider call is made.

        A later login arms a new scheduler.
        """
        self.scheduler.cancel()
        self.session.clear()
        self.scheduler = self._create_scheduler()
        logger.info("Logged out")

    def shutdown(self) -> None:
        """Cancel pending refreshes and close the HTTP client."""
        self.scheduler.cancel()
        self._token_client.close()

    def _create_scheduler(self) -> RefreshScheduler:
        return RefreshScheduler(
            refresh=self.refresh,
            ticker=self._ticker,
            on_error=lambda e: self._notify(SessionFailed(e, during_refresh=True)),
        )

    def _notify(self, event: SessionEvent) -> None:
        self.observer.on_event(event)
