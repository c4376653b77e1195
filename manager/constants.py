from __future__ import annotations

import logging

LOGGER = logging.getLogger("server_manager.gcp_oauth")
APP_VERSION = "0.1.0"

GCP_CLIENT_ID = "946220775492-osi1dm2rhhpo4upm6qqfv9fiivv1qu6c.apps.googleusercontent.com"
GCP_SCOPES = (
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/cloud-platform",
)
# Must match the redirect URI registered for the client above.
REDIRECT_PATH = "/gcp/oauth/callback"
CALLBACK_HOST = "127.0.0.1"

DEFAULT_HTTP_TIMEOUT_SECONDS = 30
