from __future__ import annotations

import asyncio
import html
import threading
from typing import Callable

import httpx

from auth.callback_listener import CallbackListener
from auth.errors import (
    AuthorizationError,
    BindError,
    CancelledByCaller,
    ListenerClosedError,
    MissingRefreshTokenError,
    ProviderError,
    ScopeError,
)
from auth.gcp_oauth2 import GcpOAuth2Client, generate_code_challenge, generate_code_verifier
from auth.models import AuthorizationOutcome, AuthorizationRequest, Denied, Failed, Success
from manager.constants import GCP_SCOPES, LOGGER, REDIRECT_PATH
from manager.env import http_timeout_seconds, oauth_client_id

OpenExternal = Callable[[str], object]


def response_html(message: str) -> str:
    return (
        "<html><script>window.close()</script><body>"
        f"{html.escape(message)}. You can close this window.</body></html>"
    )


def missing_scopes(granted: list[str], required: list[str] | tuple[str, ...]) -> list[str]:
    granted_set = set(granted)
    return [scope for scope in required if scope not in granted_set]


async def check_granted_scopes(
    client: GcpOAuth2Client,
    access_token: str,
    required_scopes: list[str] | tuple[str, ...] = GCP_SCOPES,
) -> tuple[list[str], list[str]]:
    """Return ``(granted, missing)`` scopes for ``access_token``.

    Google lets the user untick individual scopes on the consent screen, so a
    successful code exchange can still produce a token that lacks some of the
    requested scopes.
    """
    token_info = await client.get_token_info(access_token)
    return token_info.scopes, missing_scopes(token_info.scopes, required_scopes)


async def verify_granted_scopes(
    client: GcpOAuth2Client,
    access_token: str,
    required_scopes: list[str] | tuple[str, ...] = GCP_SCOPES,
) -> bool:
    _, missing = await check_granted_scopes(client, access_token, required_scopes)
    return not missing


def _page_message(outcome: AuthorizationOutcome | None) -> str:
    if isinstance(outcome, Success):
        return "Authentication successful"
    if isinstance(outcome, Denied):
        return "Authentication cancelled"
    if isinstance(outcome, Failed):
        if isinstance(outcome.reason, CancelledByCaller):
            return "Authentication cancelled"
        if isinstance(outcome.reason, ScopeError):
            return "Authentication failed with missing scope(s)"
    return "Authentication failed"


def _unexpected_failure(error: Exception) -> AuthorizationError:
    failure = AuthorizationError(f"Authentication failed with error: {error}")
    failure.__cause__ = error
    return failure


class OutcomeLatch:
    """Settles a future with the first outcome it receives; later ones are ignored."""

    def __init__(self, future: asyncio.Future, loop: asyncio.AbstractEventLoop) -> None:
        self._future = future
        self._loop = loop
        self._lock = threading.Lock()
        self._outcome: AuthorizationOutcome | None = None

    @property
    def outcome(self) -> AuthorizationOutcome | None:
        return self._outcome

    def settle(self, outcome: AuthorizationOutcome) -> bool:
        with self._lock:
            if self._outcome is not None:
                return False
            self._outcome = outcome

        try:
            running_loop = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None
        if running_loop is self._loop:
            self._deliver(outcome)
        else:
            self._loop.call_soon_threadsafe(self._deliver, outcome)
        return True

    def _deliver(self, outcome: AuthorizationOutcome) -> None:
        if self._future.done():
            return
        if isinstance(outcome, Success):
            self._future.set_result(outcome.refresh_token)
        else:
            self._future.set_exception(outcome.error())


class OAuthSession:
    """Handle for one browser-based GCP authorization attempt.

    ``result`` resolves to the refresh token or rejects with an
    ``AuthorizationError`` subclass. Exactly one outcome is ever recorded:
    whichever of the browser callback and ``cancel()`` settles first wins.
    ``cancel()`` always raises the cancelled flag, even when it loses that race.
    """

    def __init__(
        self,
        *,
        client_id: str,
        scopes: tuple[str, ...],
        redirect_path: str = REDIRECT_PATH,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        loop = asyncio.get_running_loop()
        self.result: asyncio.Future[str] = loop.create_future()
        self.request: AuthorizationRequest | None = None

        self._client_id = client_id
        self._scopes = scopes
        self._redirect_path = redirect_path
        self._http_client = http_client
        self._client: GcpOAuth2Client | None = None
        self._timeout = http_timeout_seconds()
        self._code_verifier = generate_code_verifier()
        self._latch = OutcomeLatch(self.result, loop)
        # A callback makes two provider requests; its page must outlive both on shutdown.
        self._listener = CallbackListener(
            redirect_path, self._handle_callback, shutdown_timeout=2 * self._timeout + 5
        )
        self._watch_task: asyncio.Task | None = None
        self._cancelled = False

    @property
    def outcome(self) -> AuthorizationOutcome | None:
        return self._latch.outcome

    def is_cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        LOGGER.info("Session cancelled")
        self._cancelled = True
        self._listener.stop()
        self._latch.settle(Failed(CancelledByCaller()))

    async def wait_closed(self) -> None:
        if self._watch_task is not None:
            await asyncio.shield(self._watch_task)

    async def start(self, open_external: OpenExternal) -> None:
        try:
            port = await self._listener.start()
        except BindError as error:
            LOGGER.error("%s", error)
            self._latch.settle(Failed(error))
            return

        self.request = AuthorizationRequest(
            client_id=self._client_id,
            scopes=self._scopes,
            redirect_path=self._redirect_path,
            port=port,
        )
        self._client = GcpOAuth2Client(
            self.request.client_id,
            self.request.redirect_uri,
            http_client=self._http_client,
            timeout=self._timeout,
        )
        authorization_url = self._client.build_authorization_url(
            self.request.scopes,
            access_type="offline",
            code_challenge=generate_code_challenge(self._code_verifier),
        )
        self._watch_task = asyncio.create_task(self._watch_listener())

        try:
            open_external(authorization_url)
        except Exception as error:
            LOGGER.exception("Could not open the browser for GCP authorization")
            self._listener.stop()
            self._latch.settle(Failed(_unexpected_failure(error)))

    async def _watch_listener(self) -> None:
        try:
            await self._listener.await_callback()
        except Exception as error:
            LOGGER.exception("OAuth callback listener failed")
            self._latch.settle(Failed(_unexpected_failure(error)))
        finally:
            self._listener.stop()

        # cancel() raises the flag before it stops the listener.
        reason = CancelledByCaller() if self._cancelled else ListenerClosedError()
        if self._latch.settle(Failed(reason)):
            LOGGER.warning("OAuth callback listener closed before any callback arrived")

    async def _handle_callback(self, params: dict[str, str]) -> str:
        try:
            outcome = await self._resolve_callback(params)
        except Exception as error:
            LOGGER.exception("Authentication failed while handling the OAuth callback")
            outcome = Failed(_unexpected_failure(error))

        if not self._latch.settle(outcome):
            LOGGER.info("OAuth callback arrived after the session was already settled")
        return response_html(_page_message(self._latch.outcome))

    async def _resolve_callback(self, params: dict[str, str]) -> AuthorizationOutcome:
        error = params.get("error")
        if error == "access_denied":
            self._cancelled = True
            LOGGER.info("User declined GCP authorization")
            return Denied()
        if error:
            LOGGER.warning("GCP authorization returned error: %s", error)
            return Failed(ProviderError(error))

        code = params.get("code")
        if not code:
            return Failed(
                ProviderError(
                    "missing_code",
                    "Authentication failed: the callback carried no authorization code",
                )
            )

        tokens = await self._client.exchange_code(code, code_verifier=self._code_verifier)
        if not tokens.ok:
            LOGGER.warning("GCP token exchange failed with HTTP status %s", tokens.status_code)
            return Failed(ProviderError(tokens.status_code))

        granted, missing = await check_granted_scopes(
            self._client, tokens.access_token, self._scopes
        )
        if missing:
            LOGGER.error(
                "Authentication failed with missing scope(s). Granted: %s", tokens.granted_scopes
            )
            return Failed(ScopeError(granted, missing))

        if not tokens.refresh_token:
            LOGGER.error("GCP token exchange returned no refresh token")
            return Failed(MissingRefreshTokenError())

        LOGGER.info("GCP authorization complete")
        return Success(tokens.refresh_token)


async def run_oauth(
    open_external: OpenExternal,
    *,
    client_id: str | None = None,
    scopes: list[str] | tuple[str, ...] | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> OAuthSession:
    """Start a GCP authorization session and open its consent page.

    A listener that cannot bind yields a session whose ``result`` already
    rejects with ``BindError``; the browser is not opened in that case.
    """
    session = OAuthSession(
        client_id=client_id or oauth_client_id(),
        scopes=tuple(scopes or GCP_SCOPES),
        http_client=http_client,
    )
    await session.start(open_external)
    return session
