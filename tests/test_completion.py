"""Tests for rqrs.ycloudml.completion."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from rqrs import MASK, DecodeError, SecretHeader
from rqrs.ycloudml import URL
from rqrs.ycloudml.completion import FINAL_STATUS, URI, Completion

JWT = "t1.secret-iam-token"
SESSION = "5a1b2c3d-0000-4000-8000-000000000000"


def _result(*alternatives: tuple[str, str]) -> dict:
    return {
        "result": {
            "alternatives": [
                {"message": {"role": "assistant", "text": text}, "status": status} for text, status in alternatives
            ],
            "usage": {"inputTextTokens": "10", "completionTokens": "5", "totalTokens": "15"},
            "modelVersion": "23.10.2024",
        }
    }


class TestCompletionPayload:
    def test_new(self):
        model = Completion.new("b1gfolder")
        body = model.model_dump(by_alias=True)
        assert body["modelUri"] == "gpt://b1gfolder/yandexgpt"
        assert body["completionOptions"]["maxTokens"] == "2000"
        assert body["completionOptions"]["reasoningOptions"] == {"mode": "DISABLED"}
        assert body["messages"] == []

    def test_messages_are_chained_copies(self):
        base = Completion.new("f")
        model = base.system("You are financial bot").user("who are you?")
        assert base.messages == []
        assert [(m.role, m.text) for m in model.messages] == [
            ("system", "You are financial bot"),
            ("user", "who are you?"),
        ]

    def test_options(self):
        model = Completion.new("f").max_tokens(500).temperature(0.3)
        assert model.completion_options["maxTokens"] == 500
        assert model.completion_options["temperature"] == 0.3
        assert Completion.new("f").completion_options["temperature"] == 0

    def test_save_and_load_messages(self):
        history = Completion.new("f").user("hi").assistant("hello").save_messages()
        assert history == [{"role": "user", "text": "hi"}, {"role": "assistant", "text": "hello"}]
        restored = Completion.new("f").system("sys").load_messages(history)
        assert [m.role for m in restored.messages] == ["system", "user", "assistant"]

    def test_load_invalid_messages(self):
        with pytest.raises(DecodeError):
            Completion.new("f").load_messages([{"role": "user"}])


class TestCompletionRequest:
    def test_headers(self):
        req = Completion.new("f").user("hi").request(f"  {JWT}\n", SESSION).build()
        assert str(req.url) == URL + URI
        assert req.method.value == "POST"
        names = [h.name for h in req.headers]
        assert names == ["x-data-logging-enabled", "X-Session-ID", "authorization", "Content-Type"]
        auth = req.headers[2]
        assert isinstance(auth, SecretHeader)
        assert auth.wire_value == f"Bearer {JWT}"
        assert JWT not in req.describe()
        assert f"authorization: {MASK}" in req.describe()


class TestCompletionRun:
    @pytest.mark.asyncio
    async def test_run_and_continue(self, llm_api: respx.MockRouter):
        route = llm_api.post(URI).respond(json=_result(("I am a bot", FINAL_STATUS)))
        model = Completion.new("f").system("You are financial bot").user("who are you?")

        rs = await model.run(JWT, SESSION)
        assert rs.status == 200
        assert rs.data.result.model_version == "23.10.2024"
        answer = Completion.assistant_text_first(rs)
        assert answer == "I am a bot"

        sent = route.calls[0].request
        assert sent.headers["authorization"] == f"Bearer {JWT}"
        assert sent.headers["x-session-id"] == SESSION
        body = json.loads(sent.content)
        assert body["modelUri"] == "gpt://f/yandexgpt"
        assert [m["role"] for m in body["messages"]] == ["system", "user"]

        model = model.assistant(answer).user("What can you do?")
        await model.run(JWT, SESSION)
        body = json.loads(route.calls[1].request.content)
        assert [m["role"] for m in body["messages"]] == ["system", "user", "assistant", "user"]

    @pytest.mark.asyncio
    async def test_picks_first_final_alternative(self, llm_api: respx.MockRouter):
        llm_api.post(URI).respond(
            json=_result(("partial", "ALTERNATIVE_STATUS_PARTIAL"), ("done", FINAL_STATUS), ("later", FINAL_STATUS))
        )
        rs = await Completion.new("f").user("q").run(JWT, SESSION)
        assert Completion.assistant_text_first(rs) == "done"

    @pytest.mark.asyncio
    async def test_no_final_alternative(self, llm_api: respx.MockRouter):
        llm_api.post(URI).respond(json=_result(("partial", "ALTERNATIVE_STATUS_PARTIAL")))
        rs = await Completion.new("f").user("q").run(JWT, SESSION)
        with pytest.raises(DecodeError, match="no final alternative"):
            Completion.assistant_text_first(rs)

    @pytest.mark.asyncio
    async def test_error_body_is_decode_error(self, llm_api: respx.MockRouter):
        llm_api.post(URI).respond(status_code=401, json={"error": {"httpCode": 401, "message": "Unauthorized"}})
        with pytest.raises(DecodeError) as exc:
            await Completion.new("f").user("q").run(JWT, SESSION)
        assert exc.value.status == 401

    @pytest.mark.asyncio
    async def test_injected_transport(self):
        transport = httpx.MockTransport(lambda _req: httpx.Response(200, json=_result(("ok", FINAL_STATUS))))
        rs = await Completion.new("f").user("q").run(JWT, SESSION, transport=transport)
        assert Completion.assistant_text_first(rs) == "ok"
