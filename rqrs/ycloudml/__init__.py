"""Yandex Cloud ML adapters built on RequestBuilder."""

from __future__ import annotations

from rqrs.ycloudml._auth import URL, bearer
from rqrs.ycloudml.completion import Completion, CompletionEnvelope
from rqrs.ycloudml.image import ImageGeneration, Operation, wait_image
from rqrs.ycloudml.speechkit import Recognition, SpeechRecognition

__all__ = [
    "URL",
    "Completion",
    "CompletionEnvelope",
    "ImageGeneration",
    "Operation",
    "Recognition",
    "SpeechRecognition",
    "bearer",
    "wait_image",
]
