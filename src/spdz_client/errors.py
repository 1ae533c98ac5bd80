"""Error types raised by the proxy client."""

from typing import Optional


class ProxyError(Exception):
    """Base class for all proxy client errors."""


class ValidationError(ProxyError, ValueError):
    """Malformed caller input; raised before any proxy is contacted."""


class TransportError(ProxyError):
    """A request to one proxy failed."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class NotConnectedError(TransportError):
    """No active session exists for the targeted proxy."""


class NoContentError(ProxyError):
    """The proxy has no data available yet; ask again later."""

    def __init__(self, message: str = "No content available from SPDZ proxy", url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class CryptoError(ProxyError):
    """Decrypting a proxy payload failed."""
