from __future__ import annotations

from dataclasses import dataclass, field

from auth.errors import AuthorizationError, UserDenied
from auth.urls import build_redirect_uri


@dataclass(frozen=True)
class AuthorizationRequest:
    client_id: str
    scopes: tuple[str, ...]
    redirect_path: str
    port: int

    @property
    def redirect_uri(self) -> str:
        return build_redirect_uri(self.port, self.redirect_path)


@dataclass(frozen=True)
class Success:
    refresh_token: str = field(repr=False)


@dataclass(frozen=True)
class Denied:
    def error(self) -> AuthorizationError:
        return UserDenied()


@dataclass(frozen=True)
class Failed:
    reason: AuthorizationError

    def error(self) -> AuthorizationError:
        return self.reason


AuthorizationOutcome = Success | Denied | Failed
