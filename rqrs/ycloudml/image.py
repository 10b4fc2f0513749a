"""YandexART image generation.

Generation is asynchronous: ``run`` returns an operation, and ``image`` polls
``/operations/{id}`` until it is done, then writes the decoded picture.

Usage::

    rs = await (
        ImageGeneration.new(folder_id)
        .text("a grandfather learning Rust while drinking strong coffee")
        .aspect_ratio(16, 9)
        .seed(0)
        .run(jwt)
    )
    await ImageGeneration.image(rs, "/tmp/coffee.jpg", jwt)
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from rqrs.errors import DecodeError, TransportError
from rqrs.request import RequestBuilder
from rqrs.ycloudml._auth import URL, bearer

if TYPE_CHECKING:
    from rqrs.response import Response

logger = logging.getLogger(__name__)

URI = "/foundationModels/v1/imageGenerationAsync"
OPERATIONS_URI = "/operations"

POLL_ATTEMPTS = 10
POLL_INTERVAL = 20.0

DEFAULT_WEIGHT = 100


def _default_options() -> dict[str, Any]:
    return {
        "seed": "1863",
        "aspectRatio": {"widthRatio": "16", "heightRatio": "9"},
    }


class ImageMessage(BaseModel):
    text: str
    weight: int = DEFAULT_WEIGHT


class GeneratedImage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    type: str = Field(default="", alias="@type")
    image: str
    model_version: str = Field(default="", alias="modelVersion")


class Operation(BaseModel):
    """Long-running operation returned by the generation call and the poll."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    description: str = ""
    done: bool = False
    created_at: str | None = Field(default=None, alias="createdAt")
    created_by: str | None = Field(default=None, alias="createdBy")
    modified_at: str | None = Field(default=None, alias="modifiedAt")
    metadata: Any = None
    response: GeneratedImage | None = None
    error: dict[str, Any] | None = None


class ImageGeneration(BaseModel):
    """Image generation payload. Chainable methods return updated copies."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model_uri: str = Field(alias="modelUri")
    generation_options: dict[str, Any] = Field(default_factory=_default_options, alias="generationOptions")
    messages: list[ImageMessage] = []

    @classmethod
    def new(cls, folder_id: str) -> ImageGeneration:
        return cls(model_uri=f"art://{folder_id.strip()}/yandex-art/latest")

    def _with_option(self, key: str, value: Any) -> ImageGeneration:
        return self.model_copy(update={"generation_options": {**self.generation_options, key: value}})

    def text(self, text: str, weight: int = DEFAULT_WEIGHT) -> ImageGeneration:
        """Add a prompt message."""
        message = ImageMessage(text=text, weight=weight)
        return self.model_copy(update={"messages": [*self.messages, message]})

    def seed(self, seed: int) -> ImageGeneration:
        return self._with_option("seed", seed)

    def aspect_ratio(self, width_ratio: int, height_ratio: int) -> ImageGeneration:
        return self._with_option("aspectRatio", {"widthRatio": width_ratio, "heightRatio": height_ratio})

    def request(self, jwt: str, base_url: str = URL) -> RequestBuilder:
        rq = RequestBuilder.from_static(base_url).uri(URI).method("POST")
        return bearer(rq, jwt).with_json().load_payload(self)

    async def run(
        self,
        jwt: str,
        *,
        base_url: str = URL,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Response[Operation]:
        """Start generation and return the pending operation."""
        logger.info("image: %d prompt(s) to %s", len(self.messages), self.model_uri)
        return await self.request(jwt, base_url).apply(Operation, client=client, transport=transport)

    @staticmethod
    async def image(
        rs: Response[Operation] | Operation,
        path: str | Path,
        jwt: str,
        **kwargs: Any,
    ) -> Path:
        """Wait for the operation and write the image to ``path``.

        Keyword arguments are passed to ``wait_image``.
        """
        data = await wait_image(rs, jwt, **kwargs)
        path = Path(path)
        path.write_bytes(data)
        logger.info("image: wrote %d bytes to %s", len(data), path)
        return path


def operation_request(operation_id: str, jwt: str, base_url: str = URL) -> RequestBuilder:
    rq = RequestBuilder.from_static(base_url).uri(f"{OPERATIONS_URI}/{operation_id}")
    return bearer(rq, jwt)


def decode_image(operation: Operation) -> bytes:
    """Decode the base64 image of a finished operation."""
    if operation.response is None:
        raise DecodeError(f"operation {operation.id} finished without an image: {operation.error}")
    try:
        return base64.b64decode(operation.response.image, validate=True)
    except binascii.Error as e:
        raise DecodeError(f"operation {operation.id}: image is not valid base64: {e}") from e


async def wait_image(
    rs: Response[Operation] | Operation,
    jwt: str,
    *,
    base_url: str = URL,
    attempts: int = POLL_ATTEMPTS,
    interval: float = POLL_INTERVAL,
    client: httpx.AsyncClient | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bytes:
    """Poll the operation until it is done and return the image bytes.

    Raises DecodeError when the finished operation carries no image and
    TransportError when it is still running after ``attempts`` polls.
    """
    operation = rs if isinstance(rs, Operation) else rs.data
    rq = operation_request(operation.id, jwt, base_url)

    for attempt in range(1, attempts + 1):
        if operation.done:
            return decode_image(operation)
        logger.debug("image: waiting for operation %s (%d/%d)", operation.id, attempt, attempts)
        await asyncio.sleep(interval)
        operation = (await rq.apply(Operation, client=client, transport=transport)).data

    if operation.done:
        return decode_image(operation)
    raise TransportError("GET", str(rq.build().url), f"operation not done after {attempts} attempts")
