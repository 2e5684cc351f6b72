"""Runtime settings for docsbuddy, read from the environment and ``.env``."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

DEFAULT_MODEL = "gpt-4o-mini"
DICTIONARY_API_URL = "https://api.dictionaryapi.dev/api/v2/entries/en/"
WIKIPEDIA_API_URL = "https://en.wikipedia.org/api/rest_v1/page/summary/"
USER_AGENT = "DocsBuddy-Lookup/1.0"

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

logger = logging.getLogger(__name__)

# Environment variable -> Settings field.
_ENV_FIELDS = {
    "OPENAI_API_KEY": "openai_api_key",
    "DOCSBUDDY_MODEL": "model",
    "DOCSBUDDY_DICTIONARY_TIMEOUT": "dictionary_timeout",
    "DOCSBUDDY_WIKIPEDIA_TIMEOUT": "wikipedia_timeout",
    "DOCSBUDDY_DICTIONARY_URL": "dictionary_url",
    "DOCSBUDDY_WIKIPEDIA_URL": "wikipedia_url",
    "DOCSBUDDY_LLM_RETRIES": "llm_retries",
    "DOCSBUDDY_LOG_LEVEL": "log_level",
}


class Settings(BaseModel):
    """Effective configuration for one process."""

    openai_api_key: str = ""
    model: str = DEFAULT_MODEL
    dictionary_timeout: float = 5.0
    wikipedia_timeout: float = 3.0
    dictionary_url: str = DICTIONARY_API_URL
    wikipedia_url: str = WIKIPEDIA_API_URL
    user_agent: str = USER_AGENT
    llm_retries: int = Field(default=0, ge=0)
    log_level: str = "INFO"
    env_file: Path | None = None

    @field_validator("dictionary_timeout", "wikipedia_timeout")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("timeouts must be non-negative")
        return value

    @field_validator("openai_api_key")
    @classmethod
    def _strip_key(cls, value: str) -> str:
        return value.strip()

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper() or "INFO"
        if level not in LOG_LEVELS:
            raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}")
        return level


def _env_pair(line: str) -> tuple[str, str] | None:
    """Split one ``KEY=VALUE`` line; comments and malformed lines give None."""
    line = line.strip()
    if line.startswith("#"):
        return None
    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key:
        return None
    return key, value.strip().strip("\"'")


def find_dotenv(start_dir: Path) -> Path | None:
    """Nearest ``.env`` in *start_dir* or one of its parents."""
    start = start_dir.resolve()
    return next((d / ".env" for d in (start, *start.parents) if (d / ".env").is_file()), None)


def load_dotenv(start_dir: Path) -> Path | None:
    """Copy the nearest ``.env`` into ``os.environ`` and return its path.

    Variables already in the environment win. An unreadable file is
    skipped; None means nothing was loaded.
    """
    path = find_dotenv(start_dir)
    if path is None:
        return None
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return None
    for pair in filter(None, map(_env_pair, lines)):
        os.environ.setdefault(*pair)
    return path


def load_settings(environ: Mapping[str, str] | None = None, **overrides: Any) -> Settings:
    """Build Settings from *environ* (defaults to ``os.environ``).

    Keyword *overrides* that are not None take precedence over the
    environment and go through the same validation.

    Raises ``pydantic.ValidationError`` on malformed values.
    """
    env = os.environ if environ is None else environ
    values = {
        field: env[name]
        for name, field in _ENV_FIELDS.items()
        if env.get(name, "").strip()
    }
    values.update({key: value for key, value in overrides.items() if value is not None})
    return Settings(**values)
