from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from .constants import DEFAULT_HTTP_TIMEOUT_SECONDS, GCP_CLIENT_ID, LOGGER


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_env_int(key: str, default: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be an integer value.")
    if value <= 0:
        raise RuntimeError(f"{key} must be a positive integer.")
    return value


def load_env() -> None:
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if not env_path.exists():
        return
    load_dotenv(env_path, override=False)


def oauth_client_id() -> str:
    """Client id registered with Google; overridable for development builds."""
    return os.getenv("GCP_OAUTH_CLIENT_ID", "").strip() or GCP_CLIENT_ID


def http_timeout_seconds() -> int:
    return _get_env_int("GCP_OAUTH_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT_SECONDS)


def setup_logging() -> bool:
    debug_enabled = is_truthy(os.getenv("SERVER_MANAGER_DEBUG", "0"))
    if debug_enabled:
        logging.basicConfig(level=logging.INFO)
        LOGGER.setLevel(logging.INFO)
    return debug_enabled
