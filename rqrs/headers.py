"""Header entries with public/secret tagging."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from rqrs.errors import InvalidHeader

# Rendered in place of a secret value anywhere a request is displayed or logged
MASK = "***"

# RFC 7230 token
_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
# Visible ASCII, obs-text, SP and HTAB
_VALUE_RE = re.compile(r"^[\t\x20-\x7e\x80-\xff]*$")


def _to_str(raw: str | bytes, what: str) -> str:
    if isinstance(raw, bytes):
        return raw.decode("latin-1")
    if isinstance(raw, str):
        return raw
    raise InvalidHeader(f"header {what} must be str or bytes, got {type(raw).__name__}")


def validate_header_name(name: str | bytes) -> str:
    """Return ``name`` as str if it is a legal header token."""
    text = _to_str(name, "name")
    if not _TOKEN_RE.match(text):
        raise InvalidHeader(f"invalid header name: {text!r}")
    return text


def validate_header_value(value: str | bytes) -> str:
    """Return ``value`` as str if it holds no control characters."""
    text = _to_str(value, "value")
    if not _VALUE_RE.match(text):
        raise InvalidHeader("invalid header value: control characters are not allowed")
    return text


@dataclass(frozen=True)
class HeaderEntry(ABC):
    """A validated header; subclasses decide how the value is displayed."""

    name: str
    value: str

    @property
    def wire_value(self) -> str:
        """Value sent over the network."""
        return self.value

    @property
    @abstractmethod
    def display_value(self) -> str:
        """Value shown in logs and tables."""


@dataclass(frozen=True, repr=False)
class PublicHeader(HeaderEntry):
    @property
    def display_value(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"PublicHeader({self.name!r}, {self.value!r})"


@dataclass(frozen=True, repr=False)
class SecretHeader(HeaderEntry):
    @property
    def display_value(self) -> str:
        return MASK

    def __repr__(self) -> str:
        return f"SecretHeader({self.name!r}, {MASK!r})"


def public_header(name: str | bytes, value: str | bytes) -> PublicHeader:
    return PublicHeader(validate_header_name(name), validate_header_value(value))


def secret_header(name: str | bytes, value: str | bytes) -> SecretHeader:
    return SecretHeader(validate_header_name(name), validate_header_value(value))


def render_headers(headers: tuple[HeaderEntry, ...] | list[HeaderEntry]) -> str:
    """Render headers for log output, masking secrets."""
    return ", ".join(f"{h.name}: {h.display_value}" for h in headers)
