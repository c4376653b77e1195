from __future__ import annotations


class AuthorizationError(RuntimeError):
    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class BindError(AuthorizationError):
    def __init__(self, message: str = "Could not start the OAuth callback listener") -> None:
        super().__init__(message)


class UserDenied(AuthorizationError):
    def __init__(self, message: str = "Authentication cancelled") -> None:
        super().__init__(message)


class ProviderError(AuthorizationError):
    """The identity provider answered with an error parameter or a non-2xx status."""

    def __init__(self, code: str | int, message: str | None = None) -> None:
        if message is None:
            if isinstance(code, int):
                message = f"Authentication failed with HTTP status code: {code}"
            else:
                message = f"Authentication failed with error: {code}"
        super().__init__(message)
        self.code = code


class ScopeError(AuthorizationError):
    """The user consented to only part of the requested scopes."""

    def __init__(
        self,
        granted_scopes: list[str],
        missing_scopes: list[str] | None = None,
    ) -> None:
        super().__init__("Authentication failed with missing scope(s)")
        self.granted_scopes = list(granted_scopes)
        self.missing_scopes = list(missing_scopes or [])


class MissingRefreshTokenError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(
            "Authentication failed: Missing refresh token. Revoke the app's access "
            "in your Google account settings and try again."
        )


class CancelledByCaller(AuthorizationError):
    def __init__(self, message: str = "Authentication cancelled") -> None:
        super().__init__(message)


class ListenerClosedError(AuthorizationError):
    """The callback listener shut down before any callback and without ``cancel()``."""

    def __init__(
        self, message: str = "Authentication failed: the OAuth callback listener closed early"
    ) -> None:
        super().__init__(message)
