"""Shared bits of the Yandex Cloud ML adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rqrs.request import RequestBuilder

# Foundation models host: completion, image generation and operations
URL = "https://llm.api.cloud.yandex.net"


def bearer(rq: RequestBuilder, jwt: str) -> RequestBuilder:
    """Add the IAM token as a secret ``authorization`` header."""
    return rq.add_secret_header(b"authorization", f"Bearer {jwt.strip()}")
