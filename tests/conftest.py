"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
import respx

from rqrs import RequestBuilder
from rqrs.config import ENV_DEBUG, ENV_URL
from rqrs.ycloudml import URL as LLM_URL

BASE_URL = "https://reqres.in"
API_KEY = "reqres-free-v1"

USERS_PAGE = {"page": 2, "data": []}


@pytest.fixture()
def mock_api() -> Iterator[respx.MockRouter]:
    """Activate respx mock for the reqres base URL."""
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as rsps:
        yield rsps


@pytest.fixture()
def llm_api() -> Iterator[respx.MockRouter]:
    """Activate respx mock for the foundation models host."""
    with respx.mock(base_url=LLM_URL, assert_all_called=False) as rsps:
        yield rsps


@pytest.fixture()
def users_rq() -> RequestBuilder:
    """Builder for GET /api/users?page=2 with one public and one secret header."""
    return (
        RequestBuilder.from_static(BASE_URL)
        .uri("/api/users")
        .method("GET")
        .add_secret_header(b"x-api-key", API_KEY)
        .add_header(b"Content-Type", "application/json")
        .add_params([("page", "2")])
    )


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Drop rqrs env vars and return a config path inside tmp_path."""
    # setenv first so teardown also removes values written by load_dotenv
    for name in (ENV_URL, ENV_DEBUG):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return tmp_path / "config.toml"
