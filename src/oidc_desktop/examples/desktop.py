"""
Log in to an OpenID Connect provider from a desktop program.

Opens the provider's login page in your browser, receives the redirect on a
local port and keeps the access token fresh until you press Ctrl+C.

Set OIDC_AUTH_URL, OIDC_TOKEN_URL, OIDC_CLIENT_ID and OIDC_REDIRECT_URI
(e.g. http://localhost:32323/oidc), either in the environment or in a .env
file. OIDC_CLIENT_SECRET is optional.
"""

import logging
import sys
import webbrowser
from urllib.parse import urlparse

from oidc_desktop.models.config import ClientConfig
from oidc_desktop.models.errors import InvalidConfiguration
from oidc_desktop.oidc_client import OIDCClient
from oidc_desktop.services.events import LatestEventSlot, TokensUpdated
from oidc_desktop.transport.redirect_listener import (
    DEFAULT_PORT,
    RedirectListener,
)


def render(event) -> str:
    if isinstance(event, TokensUpdated):
        return (
            f"\nAccess Token: {event.tokens.access_token}"
            f"\n\nRefresh Token: {event.tokens.refresh_token}"
        )
    return f"\nLogin failed: {event.error}"


def main() -> int:
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        config = ClientConfig.from_env()
    except InvalidConfiguration as e:
        print(e, file=sys.stderr)
        return 1

    redirect = urlparse(config.redirect_uri)
    events = LatestEventSlot()
    client = OIDCClient(config, observer=events, open_browser=webbrowser.open)
    listener = RedirectListener(
        client.complete_login,
        host=redirect.hostname or "localhost",
        port=redirect.port or DEFAULT_PORT,
        path=redirect.path or "/oidc",
    )

    listener.start()
    print("Not logged in, yet!")
    client.initiate_login()

    try:
        while True:
            event = events.get(timeout=1.0)
            if event is not None:
                print(render(event))
    except KeyboardInterrupt:
        pass
    finally:
        client.shutdown()
        listener.stop()

    return 0


if __name__ == "__main__":
    sys.exit(main())
