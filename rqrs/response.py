"""Decoded HTTP response."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError
from pydantic_core import to_jsonable_python

from rqrs.errors import DecodeError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Truncation for body excerpts in error messages
MAX_BODY_EXCERPT = 200


def decode_body(body: bytes, response_type: Any = Any, *, status: int | None = None) -> Any:
    """Deserialize a JSON body into ``response_type``."""
    try:
        return TypeAdapter(response_type).validate_json(body)
    except ValidationError as e:
        excerpt = body[:MAX_BODY_EXCERPT].decode("utf-8", errors="replace")
        logger.error("decode failed (status=%s): %s", status, excerpt)
        raise DecodeError(
            f"cannot decode response body as {getattr(response_type, '__name__', response_type)}: {e}",
            status=status,
            body=body,
        ) from e


@dataclass(frozen=True)
class Response(Generic[T]):
    status: int
    headers: httpx.Headers
    data: T

    @classmethod
    def from_httpx(cls, r: httpx.Response, response_type: Any = Any) -> Response[Any]:
        data = decode_body(r.content, response_type, status=r.status_code)
        return cls(status=r.status_code, headers=r.headers, data=data)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def to_jsonable(self) -> Any:
        """``data`` as plain JSON types, for pretty printing."""
        return to_jsonable_python(self.data, by_alias=True)
