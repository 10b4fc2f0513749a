"""SpeechKit short audio recognition.

Usage::

    rs = await SpeechRecognition.new(folder_id, "ru-RU").file("/tmp/speech.ogg").run(jwt)
    print(rs.data.result)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel

from rqrs.request import RequestBuilder
from rqrs.ycloudml._auth import bearer

if TYPE_CHECKING:
    from rqrs.response import Response

logger = logging.getLogger(__name__)

URL = "https://stt.api.cloud.yandex.net"
URI = "/speech/v1/stt:recognize"

DEFAULT_LANG = "ru-RU"


class Recognition(BaseModel):
    result: str


@dataclass(frozen=True)
class SpeechRecognition:
    folder_id: str
    lang: str = DEFAULT_LANG
    path: Path | None = None

    @classmethod
    def new(cls, folder_id: str, lang: str = DEFAULT_LANG) -> SpeechRecognition:
        return cls(folder_id=folder_id.strip(), lang=lang)

    def file(self, path: str | Path) -> SpeechRecognition:
        """Audio file to recognise; it is read when the request is built."""
        return replace(self, path=Path(path))

    def request(self, jwt: str, base_url: str = URL) -> RequestBuilder:
        """Builder posting the raw audio with ``folderId`` and ``lang`` query params."""
        if self.path is None:
            raise ValueError("no audio file set, call file() first")
        rq = (
            RequestBuilder.from_static(base_url)
            .uri(URI)
            .method("POST")
            .add_params([("folderId", self.folder_id), ("lang", self.lang)])
        )
        return bearer(rq, jwt).load_content(self.path.read_bytes())

    async def run(
        self,
        jwt: str,
        *,
        base_url: str = URL,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Response[Recognition]:
        logger.info("speech: recognising %s (%s)", self.path, self.lang)
        return await self.request(jwt, base_url).apply(Recognition, client=client, transport=transport)
