import pytest

from tests.oauth_helpers import BrowserRecorder


@pytest.fixture
def browser() -> BrowserRecorder:
    return BrowserRecorder()


@pytest.fixture(autouse=True)
def _clean_oauth_env(monkeypatch) -> None:
    for key in ("GCP_OAUTH_CLIENT_ID", "GCP_OAUTH_HTTP_TIMEOUT", "SERVER_MANAGER_DEBUG"):
        monkeypatch.delenv(key, raising=False)
