import asyncio

import httpx
import pytest

import app
from auth.errors import CancelledByCaller, MissingRefreshTokenError, UserDenied
from tests.oauth_helpers import callback_url, local_client


@pytest.mark.asyncio
async def test_connect_gcp_account_reports_denial() -> None:
    responses = []

    async def deny(url: str) -> None:
        async with local_client() as client:
            responses.append(await client.get(callback_url(url, error="access_denied")))

    tasks = []

    def open_external(url: str) -> None:
        tasks.append(asyncio.get_running_loop().create_task(deny(url)))

    with pytest.raises(UserDenied):
        await asyncio.wait_for(app.connect_gcp_account(open_external), 10)

    await asyncio.gather(*tasks)
    assert "Authentication cancelled" in responses[0].text


@pytest.mark.asyncio
async def test_connect_gcp_account_cancelled_by_caller() -> None:
    opened = []
    task = asyncio.create_task(app.connect_gcp_account(opened.append))
    while not opened:
        await asyncio.sleep(0.01)

    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    async with local_client() as client:
        with pytest.raises(httpx.ConnectError):
            await client.get(callback_url(opened[0], code="late"))


def _patch_connect(monkeypatch, outcome) -> None:
    async def fake_connect() -> str:
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    monkeypatch.setattr(app, "connect_gcp_account", fake_connect)
    monkeypatch.setattr(app, "load_env", lambda: None)


def test_main_prints_refresh_token(monkeypatch, capsys) -> None:
    _patch_connect(monkeypatch, "refresh-1")

    app.main()

    assert capsys.readouterr().out.strip() == "refresh-1"


@pytest.mark.parametrize(
    "error, message",
    [
        (UserDenied(), "Authentication cancelled."),
        (CancelledByCaller(), "Authentication cancelled."),
        (MissingRefreshTokenError(), "Missing refresh token"),
    ],
)
def test_main_exits_on_failure(monkeypatch, capsys, error, message) -> None:
    _patch_connect(monkeypatch, error)

    with pytest.raises(SystemExit) as exc_info:
        app.main()

    assert exc_info.value.code == 1
    assert message in capsys.readouterr().err


def test_main_handles_keyboard_interrupt(monkeypatch, capsys) -> None:
    _patch_connect(monkeypatch, KeyboardInterrupt())

    with pytest.raises(SystemExit) as exc_info:
        app.main()

    assert exc_info.value.code == 130
    assert "Authentication cancelled." in capsys.readouterr().err
