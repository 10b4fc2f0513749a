"""Single-shot request dispatch over httpx."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from rqrs import __version__
from rqrs.errors import TransportError
from rqrs.response import Response

if TYPE_CHECKING:
    from rqrs.request import PreparedRequest

logger = logging.getLogger(__name__)

APP_USER_AGENT = f"rqrs/{__version__}"


class Dispatcher:
    """Performs exactly one round trip per ``send`` call.

    A caller-owned ``client`` is used as is and left open. Otherwise a
    short-lived ``httpx.AsyncClient`` is opened for the call, optionally on
    top of ``transport``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = client
        self._transport = transport

    async def _send(self, request: httpx.Request) -> httpx.Response:
        if self._client is not None:
            return await self._client.send(request)
        async with httpx.AsyncClient(transport=self._transport) as client:
            return await client.send(request)

    async def send(self, request: PreparedRequest, response_type: Any = Any) -> Response[Any]:
        """Send ``request`` and decode the body into ``response_type``."""
        method = request.method.value
        logger.debug("%s", request.describe())
        try:
            r = await self._send(request.to_httpx(user_agent=APP_USER_AGENT))
        except httpx.RequestError as e:
            logger.error("%s %s connection failed: %s", method, request.url, e)
            raise TransportError(method, str(request.url), str(e) or type(e).__name__) from e
        logger.debug("%s %s → %d (%d bytes)", method, request.url, r.status_code, len(r.content))
        return Response.from_httpx(r, response_type)
