"""Configuration and defaults for rqrs."""

from __future__ import annotations

import json
import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
from dotenv import load_dotenv

from rqrs.request import RequestBuilder, parse_base_url

logger = logging.getLogger(__name__)

# ============================================================================
# XDG Base Directory Configuration
# ============================================================================

# Config: ~/.config/rqrs/config.toml
CONFIG_DIR = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "rqrs"
CONFIG_FILE = CONFIG_DIR / "config.toml"

DEFAULT_URL = "http://localhost:3000"

ENV_URL = "RQRS_URL"
ENV_DEBUG = "RQRS_DEBUG"

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


# ============================================================================
# Config Functions
# ============================================================================


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration from TOML config file."""
    config_file = path or CONFIG_FILE
    if config_file.exists():
        with config_file.open("rb") as f:
            return tomllib.load(f)
    return {}


def save_config(config: dict[str, Any], path: Path | None = None) -> None:
    """Save configuration to TOML config file."""
    config_file = path or CONFIG_FILE
    config_file.parent.mkdir(parents=True, exist_ok=True)

    lines: list[str] = []
    for key, value in config.items():
        if isinstance(value, dict):
            lines.append(f"[{key}]")
            for k, v in value.items():
                lines.append(f"{k} = {_toml_value(v)}")
            lines.append("")
        else:
            lines.append(f"{key} = {_toml_value(value)}")

    config_file.write_text("\n".join(lines) + "\n")


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        # JSON string escapes are valid TOML basic-string escapes
        return json.dumps(value)
    return str(value)


def parse_bool(raw: str | bool | None, default: bool = False) -> bool:
    """Parse an env/config flag; unknown strings fall back to ``default``."""
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning("ignoring unparseable flag value: %r", raw)
    return default


# ============================================================================
# Bot
# ============================================================================


@dataclass
class Bot:
    """Default target for requests: a validated base URL plus a debug flag."""

    url: httpx.URL
    debug: bool = False

    @classmethod
    def new(cls, url: str | httpx.URL) -> Bot:
        return cls(url=parse_base_url(url))

    def request(self) -> RequestBuilder:
        """Start a builder rooted at this bot's URL."""
        return RequestBuilder.from_static(self.url)


def _default_section(config_path: Path | None) -> dict[str, Any]:
    section = load_config(config_path).get("default", {})
    return section if isinstance(section, dict) else {}


def _resolve_debug(section: dict[str, Any]) -> bool:
    return parse_bool(os.environ.get(ENV_DEBUG), default=parse_bool(section.get("debug")))


def debug_from_env(config_path: Path | None = None, env_file: Path | None = None) -> bool:
    """Resolve only the debug flag, without validating any base URL."""
    load_dotenv(env_file)
    return _resolve_debug(_default_section(config_path))


def from_env_handler(config_path: Path | None = None, env_file: Path | None = None) -> Bot:
    """Create a Bot from ``.env``, the environment and the config file.

    Resolution order: environment, ``[default]`` section of the TOML config,
    built-in default.
    """
    load_dotenv(env_file)
    section = _default_section(config_path)

    url = os.environ.get(ENV_URL) or section.get("url") or DEFAULT_URL
    debug = _resolve_debug(section)

    bot = Bot.new(url)
    bot.debug = debug
    logger.debug("bot ready: %s (debug=%s)", bot.url, bot.debug)
    return bot
