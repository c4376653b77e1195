from __future__ import annotations

import urllib.parse


def build_redirect_uri(port: int, path: str) -> str:
    return f"http://localhost:{port}{path}"


def is_loopback_redirect_uri(uri: str, path: str) -> bool:
    parsed = urllib.parse.urlparse(uri)
    if parsed.scheme != "http":
        return False
    if parsed.hostname != "localhost":
        return False
    if not parsed.port:
        return False
    if parsed.query or parsed.fragment:
        return False
    return parsed.path == path


def port_from_redirect_uri(uri: str) -> int | None:
    return urllib.parse.urlparse(uri).port
