from auth.urls import build_redirect_uri, is_loopback_redirect_uri, port_from_redirect_uri

PATH = "/gcp/oauth/callback"


def test_build_redirect_uri() -> None:
    assert build_redirect_uri(53682, PATH) == "http://localhost:53682/gcp/oauth/callback"


def test_loopback_redirect_uri_accepted() -> None:
    assert is_loopback_redirect_uri("http://localhost:53682/gcp/oauth/callback", PATH) is True


def test_redirect_uri_requires_exact_shape() -> None:
    assert is_loopback_redirect_uri("https://localhost:53682/gcp/oauth/callback", PATH) is False
    assert is_loopback_redirect_uri("http://127.0.0.1:53682/gcp/oauth/callback", PATH) is False
    assert is_loopback_redirect_uri("http://localhost/gcp/oauth/callback", PATH) is False
    assert is_loopback_redirect_uri("http://localhost:53682/gcp/oauth/callback/", PATH) is False
    assert is_loopback_redirect_uri("http://localhost:53682/gcp/oauth/callback?x=1", PATH) is False


def test_port_from_redirect_uri() -> None:
    assert port_from_redirect_uri("http://localhost:53682/gcp/oauth/callback") == 53682
    assert port_from_redirect_uri("http://localhost/gcp/oauth/callback") is None
