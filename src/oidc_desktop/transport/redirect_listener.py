"""Local HTTP listener for the OIDC redirect callback.

Serves ``GET /oidc`` on a fixed local port. Every callback is answered with
an empty 200 right away; the code exchange runs afterwards in Starlette's
worker thread pool so the browser never waits on the token endpoint.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

import uvicorn
from starlette.applications import Starlette
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route

from oidc_desktop.models.flow import AuthorizationResponse

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 32323
CALLBACK_PATH = "/oidc"

# Receives the parsed callback on a worker thread.
CallbackHandler = Callable[[AuthorizationResponse], object]


class RedirectListener:
    """Always-on redirect listener backed by uvicorn on a daemon thread."""

    def __init__(
        self,
        on_callback: CallbackHandler,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        path: str = CALLBACK_PATH,
    ):
        self.on_callback = on_callback
        self.host = host
        self.port = port
        self.path = path

        self._app = self._create_app()
        self._server: uvicorn.Server | None = None
        self._thread: threading.Thread | None = None

    @property
    def app(self) -> Starlette:
        return self._app

    @property
    def redirect_uri(self) -> str:
        return f"http://{self.host}:{self.port}{self.path}"

    def _create_app(self) -> Starlette:
        routes = [Route(self.path, self._handle_callback, methods=["GET"])]
        return Starlette(routes=routes)

    async def _handle_callback(self, request: Request) -> Response:
        """Answer the browser and schedule the code exchange."""
        auth_response = AuthorizationResponse.from_query_params(request.query_params)
        logger.debug(
            f"Received redirect callback (code={'yes' if auth_response.code else 'no'}, "
            f"error={auth_response.error})"
        )

        return Response(
            status_code=200,
            headers={"Connection": "close"},
            background=BackgroundTask(self.on_callback, auth_response),
        )

    def start(self, wait: float = 5.0) -> None:
        """Start serving in the background.

        Args:
            wait: Seconds to wait for the socket to be bound
        """
        if self._thread is not None and self._thread.is_alive():
            return

        config = uvicorn.Config(
            app=self._app, host=self.host, port=self.port, log_level="warning"
        )
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._server.run, name="RedirectListener", daemon=True
        )
        self._thread.start()

        deadline = time.monotonic() + wait
        while not self._server.started and self._thread.is_alive():
            if time.monotonic() >= deadline:
                break
            time.sleep(0.05)

        logger.info(f"Redirect listener started on {self.redirect_uri}")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the listener and wait for its thread to exit."""
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout)
        self._server = None
        self._thread = None
