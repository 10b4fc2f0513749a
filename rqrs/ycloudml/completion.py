"""YandexGPT text completion.

Usage::

    model = Completion.new(folder_id).system("You are financial bot").user("who are you?")
    rs = await model.run(jwt, session_id)
    answer = Completion.assistant_text_first(rs)
    model = model.assistant(answer).user("What can you do?")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from rqrs.errors import DecodeError
from rqrs.request import RequestBuilder
from rqrs.ycloudml._auth import URL, bearer

if TYPE_CHECKING:
    from rqrs.response import Response

logger = logging.getLogger(__name__)

URI = "/foundationModels/v1/completion"

FINAL_STATUS = "ALTERNATIVE_STATUS_FINAL"


def _default_options() -> dict[str, Any]:
    return {
        "stream": False,
        "temperature": 0,
        "maxTokens": "2000",
        "reasoningOptions": {"mode": "DISABLED"},
    }


class Message(BaseModel):
    role: str
    text: str


class Alternative(BaseModel):
    message: Message
    status: str


class CompletionResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    alternatives: list[Alternative]
    model_version: str = Field(alias="modelVersion")
    usage: dict[str, Any] = {}

    def first_final_text(self) -> str:
        """Text of the first alternative with the final status."""
        for alt in self.alternatives:
            if alt.status == FINAL_STATUS:
                return alt.message.text
        raise DecodeError("no final alternative found")


class CompletionEnvelope(BaseModel):
    result: CompletionResult


class Completion(BaseModel):
    """Completion request payload. Chainable methods return updated copies."""

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model_uri: str = Field(alias="modelUri")
    completion_options: dict[str, Any] = Field(default_factory=_default_options, alias="completionOptions")
    messages: list[Message] = []

    @classmethod
    def new(cls, folder_id: str) -> Completion:
        return cls(model_uri=f"gpt://{folder_id}/yandexgpt")

    def _with_message(self, role: str, text: str) -> Completion:
        return self.model_copy(update={"messages": [*self.messages, Message(role=role, text=text)]})

    def _with_option(self, key: str, value: Any) -> Completion:
        return self.model_copy(update={"completion_options": {**self.completion_options, key: value}})

    def system(self, text: str) -> Completion:
        return self._with_message("system", text)

    def user(self, text: str) -> Completion:
        return self._with_message("user", text)

    def assistant(self, text: str) -> Completion:
        return self._with_message("assistant", text)

    def max_tokens(self, max_tokens: int) -> Completion:
        return self._with_option("maxTokens", max_tokens)

    def temperature(self, temperature: float) -> Completion:
        return self._with_option("temperature", temperature)

    def save_messages(self) -> list[dict[str, Any]]:
        """Conversation history as plain JSON data."""
        return [m.model_dump() for m in self.messages]

    def load_messages(self, messages: list[dict[str, Any]]) -> Completion:
        """Append previously saved messages."""
        try:
            loaded = TypeAdapter(list[Message]).validate_python(messages)
        except ValidationError as e:
            raise DecodeError(f"invalid message history: {e}") from e
        return self.model_copy(update={"messages": [*self.messages, *loaded]})

    def request(self, jwt: str, session_id: str, base_url: str = URL) -> RequestBuilder:
        """Builder for the completion call; the bearer token is a secret header."""
        rq = (
            RequestBuilder.from_static(base_url)
            .uri(URI)
            .method("POST")
            .add_header(b"x-data-logging-enabled", "false")
            .add_header(b"X-Session-ID", session_id)
        )
        return bearer(rq, jwt).with_json().load_payload(self)

    async def run(
        self,
        jwt: str,
        session_id: str,
        *,
        base_url: str = URL,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Response[CompletionEnvelope]:
        logger.info("completion: %d message(s) to %s", len(self.messages), self.model_uri)
        return await self.request(jwt, session_id, base_url).apply(
            CompletionEnvelope, client=client, transport=transport
        )

    @staticmethod
    def assistant_text_first(rs: Response[CompletionEnvelope]) -> str:
        return rs.data.result.first_final_text()
