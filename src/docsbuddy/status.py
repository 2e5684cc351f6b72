"""AI capability probe."""

from __future__ import annotations

import os
from collections.abc import Mapping

from .models import AIStatus

AI_KEY_ENV = "OPENAI_API_KEY"


def status_for_key(api_key: str | None) -> AIStatus:
    has_openai = bool((api_key or "").strip())
    return AIStatus(
        has_openai=has_openai,
        has_any_ai=has_openai,
        status="online" if has_openai else "offline",
    )


def probe(environ: Mapping[str, str] | None = None) -> AIStatus:
    """Report whether an AI credential is configured.

    Pure function of the environment mapping; callers compute it once at
    startup and hand the result to whatever needs it.
    """
    env = os.environ if environ is None else environ
    return status_for_key(env.get(AI_KEY_ENV))
