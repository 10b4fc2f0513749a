"""Exception types raised by rqrs."""

from __future__ import annotations


class RqrsError(Exception):
    """Base class for every error raised by rqrs."""


class InvalidUrl(RqrsError, ValueError):
    """Base URL is not a valid absolute URL."""

    def __init__(self, url: str, reason: str = "") -> None:
        self.url = url
        msg = f"invalid base url: {url!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class InvalidHeader(RqrsError, ValueError):
    """Header name or value fails syntactic validation."""


class InvalidMethod(RqrsError, ValueError):
    """Unknown HTTP method."""


class TransportError(RqrsError):
    """Network-level failure reported by httpx.

    The original ``httpx.RequestError`` is kept as ``__cause__``.
    """

    def __init__(self, method: str, url: str, reason: str) -> None:
        self.method = method
        self.url = url
        super().__init__(f"{method} {url} failed: {reason}")


class DecodeError(RqrsError):
    """Response body could not be decoded into the requested type."""

    def __init__(self, message: str, *, status: int | None = None, body: bytes = b"") -> None:
        self.status = status
        self.body = body
        super().__init__(message)
