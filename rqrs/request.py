"""Chainable request builder.

Usage::

    rs = await (
        RequestBuilder.from_static("https://reqres.in")
        .uri("/api/users")
        .method("GET")
        .add_secret_header(b"x-api-key", "reqres-free-v1")
        .add_header(b"Content-Type", "application/json")
        .add_params([("page", "2")])
        .apply()
    )
    print(rs.data["page"])

Every configuration call returns a new builder; the receiver is never mutated.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar
from urllib.parse import parse_qsl, urlencode

import httpx

from rqrs.dispatch import Dispatcher
from rqrs.errors import InvalidMethod, InvalidUrl
from rqrs.headers import HeaderEntry, public_header, render_headers, secret_header

if TYPE_CHECKING:
    from rqrs.response import Response

logger = logging.getLogger(__name__)

V = TypeVar("V")

JSON_CONTENT_TYPE = "application/json"

MAX_PORT = 65535

# WHATWG forbidden host code points, plus the percent sign left by encoding
_HOST_FORBIDDEN_RE = re.compile(r"[\s#%/:<>?@\[\\\]^|\"]")


class HttpMethod(str, Enum):
    """Standard HTTP verbs."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"
    CONNECT = "CONNECT"

    @classmethod
    def parse(cls, value: str | HttpMethod) -> HttpMethod:
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise InvalidMethod(f"unsupported http method: {value!r}")


def _has_forbidden_char(text: str) -> bool:
    return any(c.isspace() or ord(c) < 0x20 or ord(c) == 0x7F for c in text)


def parse_base_url(raw: str | httpx.URL) -> httpx.URL:
    """Parse an absolute URL, raising InvalidUrl on failure."""
    if isinstance(raw, httpx.URL):
        url = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if _has_forbidden_char(text):
            raise InvalidUrl(raw, "whitespace or control character")
        try:
            url = httpx.URL(text)
        except (httpx.InvalidURL, TypeError) as e:
            raise InvalidUrl(raw, str(e)) from e
    else:
        raise InvalidUrl(repr(raw), f"expected str, got {type(raw).__name__}")
    if not url.scheme:
        raise InvalidUrl(str(raw), "missing scheme")
    if not url.host:
        raise InvalidUrl(str(raw), "missing host")
    # IPv6 literals are checked by httpx and carry colons
    if ":" not in url.host and _HOST_FORBIDDEN_RE.search(url.host):
        raise InvalidUrl(str(raw), f"forbidden character in host {url.host!r}")
    if url.port is not None and not 0 <= url.port <= MAX_PORT:
        raise InvalidUrl(str(raw), f"port {url.port} out of range")
    return url


def split_path(path: str) -> tuple[str, tuple[tuple[str, str], ...]]:
    """Split ``/a/b?x=1#frag`` into the path and its query pairs; the fragment is dropped."""
    path = path.split("#", 1)[0]
    path, _, query = path.partition("?")
    return path, tuple(parse_qsl(query, keep_blank_values=True))


def join_path(base: httpx.URL, path: str) -> httpx.URL:
    """Append ``path`` to the path of ``base``."""
    if not path:
        return base
    prefix = base.path.rstrip("/")
    return base.copy_with(path=prefix + "/" + path.lstrip("/"))


def append_query(url: httpx.URL, params: tuple[tuple[str, str], ...]) -> httpx.URL:
    """Append encoded pairs to the query string, keeping order and duplicates."""
    encoded = urlencode(params)
    if url.query:
        encoded = url.query.decode("ascii") + "&" + encoded
    return url.copy_with(query=encoded.encode("ascii"))


def _jsonable(payload: Any) -> Any:
    # pydantic models go out under their field aliases
    if hasattr(payload, "model_dump"):
        return payload.model_dump(mode="json", by_alias=True)
    return payload


@dataclass(frozen=True)
class PreparedRequest:
    """A finalized, ready-to-send request."""

    method: HttpMethod
    url: httpx.URL
    headers: tuple[HeaderEntry, ...]
    params: tuple[tuple[str, str], ...]
    payload: Any = None
    content: bytes | None = None

    def to_httpx(self, user_agent: str | None = None) -> httpx.Request:
        """Build the httpx request with secret values unmasked."""
        raw_headers = [(h.name.encode("ascii"), h.wire_value.encode("latin-1")) for h in self.headers]
        if user_agent and not any(h.name.lower() == "user-agent" for h in self.headers):
            raw_headers.append((b"User-Agent", user_agent.encode("ascii")))
        if self.content is not None:
            return httpx.Request(self.method.value, self.url, headers=raw_headers, content=self.content)
        if self.payload is None:
            return httpx.Request(self.method.value, self.url, headers=raw_headers)
        return httpx.Request(self.method.value, self.url, headers=raw_headers, json=_jsonable(self.payload))

    def describe(self) -> str:
        """One-line rendering for logs; secret headers are masked."""
        return f"{self.method.value} {self.url} [{render_headers(self.headers)}]"


@dataclass(frozen=True)
class RequestBuilder:
    base_url: httpx.URL
    path: str = ""
    http_method: HttpMethod = HttpMethod.GET
    headers: tuple[HeaderEntry, ...] = ()
    params: tuple[tuple[str, str], ...] = ()
    payload: Any = None
    content: bytes | None = None

    @classmethod
    def from_static(cls, base_url: str | httpx.URL) -> RequestBuilder:
        """Start a builder from an absolute base URL."""
        return cls(base_url=parse_base_url(base_url))

    def uri(self, path: str) -> RequestBuilder:
        """Replace the path appended to the base URL.

        A query string in ``path`` is sent ahead of the pairs given to ``add_params``.
        """
        return replace(self, path=path)

    def method(self, method: str | HttpMethod) -> RequestBuilder:
        return replace(self, http_method=HttpMethod.parse(method))

    def add_header(self, name: str | bytes, value: str | bytes) -> RequestBuilder:
        entry = public_header(name, value)
        return replace(self, headers=(*self.headers, entry))

    def add_secret_header(self, name: str | bytes, value: str | bytes) -> RequestBuilder:
        """Add a header whose value is masked wherever the request is displayed."""
        entry = secret_header(name, value)
        return replace(self, headers=(*self.headers, entry))

    def add_params(self, pairs: Iterable[tuple[str, str]]) -> RequestBuilder:
        added = tuple((str(k), str(v)) for k, v in pairs)
        return replace(self, params=self.params + added)

    def with_json(self) -> RequestBuilder:
        """Mark the body as JSON."""
        return self.add_header(b"Content-Type", JSON_CONTENT_TYPE)

    def load_payload(self, payload: Any) -> RequestBuilder:
        """Attach a JSON-serialisable body (dict, list or pydantic model)."""
        return replace(self, payload=payload, content=None)

    def load_content(self, content: bytes) -> RequestBuilder:
        """Attach a raw body, sent as is. Replaces any JSON payload."""
        return replace(self, payload=None, content=bytes(content))

    def apply_if(self, value: V | None, fun: Callable[[RequestBuilder, V], RequestBuilder]) -> RequestBuilder:
        """Return ``fun(self, value)`` when ``value`` is set, else ``self``."""
        if value is not None:
            return fun(self, value)
        return self

    def build(self) -> PreparedRequest:
        path, params = split_path(self.path)
        params += self.params
        try:
            url = join_path(self.base_url, path)
            if params:
                url = append_query(url, params)
        except httpx.InvalidURL as e:
            raise InvalidUrl(f"{self.base_url}{self.path}", str(e)) from e
        return PreparedRequest(
            method=self.http_method,
            url=url,
            headers=self.headers,
            params=params,
            payload=self.payload,
            content=self.content,
        )

    async def apply(
        self,
        response_type: Any = Any,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Response[Any]:
        """Send the request and decode the body into ``response_type``.

        Raises TransportError when the round trip fails and DecodeError when the
        body does not match ``response_type``.
        """
        request = self.build()
        logger.debug("apply: %s", request.describe())
        return await Dispatcher(client=client, transport=transport).send(request, response_type)


Rq = RequestBuilder
