"""Tests for rqrs.ycloudml.image."""

from __future__ import annotations

import base64
import json
from pathlib import Path

import httpx
import pytest
import respx

from rqrs import MASK, DecodeError, SecretHeader, TransportError
from rqrs.ycloudml import URL
from rqrs.ycloudml.image import URI, ImageGeneration, Operation, decode_image, wait_image

JWT = "t1.secret-iam-token"
OP_ID = "fbveu1sntj7qkmhsmpl2"
JPEG = b"\xff\xd8\xff\xe0fake-jpeg"
IMAGE_TYPE = "type.googleapis.com/yandex.cloud.ai.foundation_models.v1.image_generation.ImageGenerationResponse"


def _operation(done: bool = False, image: bytes | None = None, **extra) -> dict:
    body = {
        "id": OP_ID,
        "description": "",
        "createdAt": "2025-01-01T00:00:00Z",
        "createdBy": "ajeuser",
        "modifiedAt": "2025-01-01T00:00:00Z",
        "done": done,
        "metadata": None,
        **extra,
    }
    if image is not None:
        body["response"] = {
            "@type": IMAGE_TYPE,
            "image": base64.b64encode(image).decode(),
            "modelVersion": "",
        }
    return body


class TestImagePayload:
    def test_new(self):
        body = ImageGeneration.new(" b1gfolder ").model_dump(by_alias=True)
        assert body["modelUri"] == "art://b1gfolder/yandex-art/latest"
        assert body["generationOptions"] == {"seed": "1863", "aspectRatio": {"widthRatio": "16", "heightRatio": "9"}}
        assert body["messages"] == []

    def test_chained_options(self):
        base = ImageGeneration.new("f")
        model = base.text("a cup of coffee").aspect_ratio(1, 1).seed(0)
        assert base.messages == []
        body = model.model_dump(by_alias=True)
        assert body["messages"] == [{"text": "a cup of coffee", "weight": 100}]
        assert body["generationOptions"] == {"seed": 0, "aspectRatio": {"widthRatio": 1, "heightRatio": 1}}

    def test_request(self):
        req = ImageGeneration.new("f").text("cat").request(JWT).build()
        assert str(req.url) == URL + URI
        assert req.method.value == "POST"
        auth = next(h for h in req.headers if h.name == "authorization")
        assert isinstance(auth, SecretHeader)
        assert auth.wire_value == f"Bearer {JWT}"
        assert f"authorization: {MASK}" in req.describe()
        assert JWT not in req.describe()


class TestImageRun:
    @pytest.mark.asyncio
    async def test_run_returns_operation(self, llm_api: respx.MockRouter):
        route = llm_api.post(URI).respond(json=_operation())
        rs = await ImageGeneration.new("f").text("cat").seed(7).run(JWT)
        assert rs.data.id == OP_ID
        assert rs.data.done is False
        assert rs.data.created_by == "ajeuser"

        sent = route.calls[0].request
        assert sent.headers["authorization"] == f"Bearer {JWT}"
        body = json.loads(sent.content)
        assert body["modelUri"] == "art://f/yandex-art/latest"
        assert body["generationOptions"]["seed"] == 7

    @pytest.mark.asyncio
    async def test_polls_until_done_and_writes_file(self, llm_api: respx.MockRouter, tmp_path: Path):
        llm_api.post(URI).respond(json=_operation())
        poll = llm_api.get(f"/operations/{OP_ID}")
        poll.side_effect = [
            httpx.Response(200, json=_operation()),
            httpx.Response(200, json=_operation(done=True, image=JPEG)),
        ]

        rs = await ImageGeneration.new("f").text("cat").run(JWT)
        path = await ImageGeneration.image(rs, tmp_path / "cat.jpg", JWT, interval=0)

        assert path.read_bytes() == JPEG
        assert poll.call_count == 2
        assert poll.calls[0].request.headers["authorization"] == f"Bearer {JWT}"

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self, llm_api: respx.MockRouter):
        poll = llm_api.get(f"/operations/{OP_ID}").respond(json=_operation())
        with pytest.raises(TransportError, match="not done after 3 attempts"):
            await wait_image(Operation(id=OP_ID), JWT, attempts=3, interval=0)
        assert poll.call_count == 3

    @pytest.mark.asyncio
    async def test_finished_without_image(self, llm_api: respx.MockRouter):
        llm_api.get(f"/operations/{OP_ID}").respond(
            json=_operation(done=True, error={"code": 3, "message": "prompt rejected"})
        )
        with pytest.raises(DecodeError, match="prompt rejected"):
            await wait_image(Operation(id=OP_ID), JWT, interval=0)


class TestDecodeImage:
    def test_done_operation(self):
        op = Operation.model_validate(_operation(done=True, image=JPEG))
        assert decode_image(op) == JPEG

    def test_invalid_base64(self):
        op = Operation.model_validate({"id": OP_ID, "done": True, "response": {"image": "not base64!"}})
        with pytest.raises(DecodeError, match="base64"):
            decode_image(op)
