from __future__ import annotations

import base64
import hashlib
import secrets
import urllib.parse
from dataclasses import dataclass, field

import httpx

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_TOKEN_INFO_URL = "https://oauth2.googleapis.com/tokeninfo"


@dataclass
class TokenResponse:
    status_code: int
    access_token: str = field(default="", repr=False)
    refresh_token: str | None = field(default=None, repr=False)
    expires_in: int | None = None
    scope: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code // 100 == 2

    @property
    def granted_scopes(self) -> list[str]:
        return self.scope.split()

    @classmethod
    def from_response(cls, response: httpx.Response) -> "TokenResponse":
        if response.status_code // 100 != 2:
            return cls(status_code=response.status_code)

        payload = response.json()
        if not isinstance(payload, dict):
            raise RuntimeError("Token response must be a JSON object.")

        access_token = payload.get("access_token")
        refresh_token = payload.get("refresh_token")
        expires_in = payload.get("expires_in")
        scope = payload.get("scope", "")

        if not isinstance(access_token, str) or not access_token:
            raise RuntimeError("Token response missing access_token.")
        if refresh_token is not None and not isinstance(refresh_token, str):
            raise RuntimeError("Token response refresh_token must be a string.")
        if expires_in is not None and not isinstance(expires_in, int):
            raise RuntimeError("Token response expires_in must be an integer.")
        if not isinstance(scope, str):
            raise RuntimeError("Token response scope must be a string.")

        return cls(
            status_code=response.status_code,
            access_token=access_token,
            refresh_token=refresh_token or None,
            expires_in=expires_in,
            scope=scope,
        )


@dataclass
class TokenInfo:
    scopes: list[str]

    @classmethod
    def from_payload(cls, payload: dict) -> "TokenInfo":
        scope = payload.get("scope", "")
        if not isinstance(scope, str):
            raise RuntimeError("Token info scope must be a string.")
        return cls(scopes=scope.split())


def generate_code_verifier() -> str:
    # 48 random bytes encode to 64 URL-safe characters, inside the 43..128 PKCE range.
    return secrets.token_urlsafe(48)


def generate_code_challenge(verifier: str) -> str:
    """S256 challenge: unpadded base64url of the SHA-256 of the verifier."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


class GcpOAuth2Client:
    """Public (secretless) Google OAuth2 client for installed applications."""

    def __init__(
        self,
        client_id: str,
        redirect_uri: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30,
    ) -> None:
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self._http_client = http_client
        self._timeout = timeout

    def build_authorization_url(
        self,
        scopes: list[str] | tuple[str, ...],
        *,
        access_type: str = "offline",
        code_challenge: str | None = None,
    ) -> str:
        query = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "access_type": access_type,
            "scope": " ".join(scopes),
        }
        if code_challenge:
            query["code_challenge"] = code_challenge
            query["code_challenge_method"] = "S256"
        return f"{GOOGLE_AUTHORIZE_URL}?{urllib.parse.urlencode(query)}"

    async def exchange_code(
        self,
        code: str,
        *,
        code_verifier: str | None = None,
    ) -> TokenResponse:
        payload = {
            "grant_type": "authorization_code",
            "client_id": self.client_id,
            "code": code,
            "redirect_uri": self.redirect_uri,
        }
        if code_verifier:
            payload["code_verifier"] = code_verifier

        response = await self._request("POST", GOOGLE_TOKEN_URL, data=payload)
        return TokenResponse.from_response(response)

    async def get_token_info(self, access_token: str) -> TokenInfo:
        response = await self._request(
            "POST",
            GOOGLE_TOKEN_INFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if response.status_code // 100 != 2:
            raise RuntimeError(
                f"Token info request failed with status {response.status_code}: {response.text}"
            )
        return TokenInfo.from_payload(response.json())

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        own_client = self._http_client is None
        http_client = self._http_client or httpx.AsyncClient(timeout=self._timeout)

        try:
            return await http_client.request(method, url, **kwargs)
        finally:
            if own_client:
                await http_client.aclose()
