"""Custom exception hierarchy for pynukibridge."""

from __future__ import annotations


class NukiBridgeError(Exception):
    """Base exception for all pynukibridge errors."""


class BridgeConfigError(NukiBridgeError):
    """Invalid or missing configuration (e.g. empty bridge address)."""


class BridgeTransportError(NukiBridgeError):
    """HTTP-level failure (network, timeout, non-200)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class BridgeParseError(NukiBridgeError):
    """Bridge response body could not be decoded into lock records."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class BridgeEmptyResponseError(BridgeParseError):
    """Bridge answered 200 but without any content.

    Usually means the address points at something that is not a bridge,
    or the token was accepted by a proxy that swallowed the body.
    """


class StoreWriteError(NukiBridgeError):
    """The state store rejected a declaration or a value write."""

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)
