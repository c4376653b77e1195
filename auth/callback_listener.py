from __future__ import annotations

import asyncio
import contextlib
import socket
import threading
from typing import Awaitable, Callable

import uvicorn
from starlette.applications import Starlette
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import HTMLResponse, PlainTextResponse, Response
from starlette.routing import Route

from auth.errors import BindError
from manager.constants import CALLBACK_HOST, LOGGER

CallbackHandler = Callable[[dict[str, str]], Awaitable[str]]


class _CallbackServer(uvicorn.Server):
    """uvicorn server that leaves process signal handling to the embedding app."""

    @contextlib.contextmanager
    def capture_signals(self):
        yield


class CallbackListener:
    """One-shot loopback HTTP endpoint for an OAuth redirect.

    The first GET on ``path`` is handed to ``handler``, whose return value is
    sent back as an HTML page. The listener stops itself once that page has
    been written. ``stop()`` may be called from any thread and any number of
    times.
    """

    def __init__(
        self,
        path: str,
        handler: CallbackHandler,
        *,
        host: str = CALLBACK_HOST,
        shutdown_timeout: float = 5,
    ) -> None:
        self.path = path
        self.host = host
        self.port: int | None = None
        self.query_params: dict[str, str] | None = None
        self.app = Starlette(routes=[Route(path, self._handle_request, methods=["GET"])])

        self._handler = handler
        self.shutdown_timeout = shutdown_timeout
        self._socket: socket.socket | None = None
        self._server: _CallbackServer | None = None
        self._serve_task: asyncio.Task | None = None
        self._claimed = False
        self._stopped = False
        self._stop_lock = threading.Lock()

    async def __aenter__(self) -> "CallbackListener":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.stop()
        await self.wait_closed()

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    async def start(self) -> int:
        if self._serve_task is not None:
            raise RuntimeError("Callback listener already started.")

        sock = None
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            sock.bind((self.host, 0))
            sock.listen(16)
        except OSError as error:
            if sock is not None:
                sock.close()
            raise BindError(f"Could not bind OAuth callback listener: {error}") from error

        self._socket = sock
        self.port = sock.getsockname()[1]

        config = uvicorn.Config(
            self.app,
            lifespan="off",
            log_config=None,
            log_level="warning",
            access_log=False,
            timeout_graceful_shutdown=self.shutdown_timeout,
        )
        self._server = _CallbackServer(config)
        self._serve_task = asyncio.create_task(self._server.serve(sockets=[sock]))

        # uvicorn skips its shutdown when should_exit is raised before startup finishes.
        while not self._server.started:
            if self._serve_task.done():
                self._close_socket()
                error = self._serve_task.exception()
                raise BindError(f"OAuth callback listener failed to start: {error}") from error
            await asyncio.sleep(0.01)

        with self._stop_lock:
            if self._stopped:
                self._server.should_exit = True
        LOGGER.info("OAuth callback listener bound to %s:%s%s", self.host, self.port, self.path)
        return self.port

    def stop(self) -> None:
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True
            if self._server is not None and self._server.started:
                self._server.should_exit = True
        LOGGER.info("OAuth callback listener stopping")

    async def wait_closed(self) -> None:
        if self._serve_task is None:
            return
        try:
            # shield: a caller giving up on the wait must not abort the shutdown.
            await asyncio.shield(self._serve_task)
        finally:
            if self._serve_task.done():
                self._close_socket()

    async def await_callback(self) -> dict[str, str] | None:
        """Wait for the listener to close; return the callback query, if any."""
        if self._serve_task is None:
            raise RuntimeError("Callback listener not started.")
        await self.wait_closed()
        return self.query_params if self._claimed else None

    async def _handle_request(self, request: Request) -> Response:
        if self._claimed or self._stopped:
            return PlainTextResponse("Not Found", status_code=404)
        self._claimed = True
        self.query_params = dict(request.query_params)

        try:
            page = await self._handler(self.query_params)
        except Exception:
            self.stop()
            raise

        return HTMLResponse(page, background=BackgroundTask(self.stop))

    def _close_socket(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None
