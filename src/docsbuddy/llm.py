"""LLM client -- async wrapper around the OpenAI chat-completions API."""

from __future__ import annotations

import asyncio
import json
import logging
import random
import urllib.error
import urllib.request
from dataclasses import dataclass, field

from .config import DEFAULT_MODEL, Settings

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"

# Provider error codes the HTTP layer maps to dedicated status codes.
INVALID_API_KEY = "invalid_api_key"
INSUFFICIENT_QUOTA = "insufficient_quota"


class LLMError(RuntimeError):
    """A failed completion call.

    ``code`` is the provider's error code (``invalid_api_key``,
    ``insufficient_quota``, ``rate_limit_exceeded``...) when one was
    returned; ``status`` is the HTTP status, or None for transport errors.
    """

    def __init__(self, message: str, *, code: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.status = status

    @property
    def retryable(self) -> bool:
        if self.code == INSUFFICIENT_QUOTA or self.code == INVALID_API_KEY:
            return False
        if self.status is None:
            return True
        return self.status == 429 or self.status >= 500


def _parse_error(status: int, body: str) -> LLMError:
    """Turn an OpenAI error body into an LLMError."""
    code = None
    message = body.strip() or f"HTTP {status}"
    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        err = payload["error"]
        code = err.get("code") or err.get("type")
        message = str(err.get("message") or message)
    return LLMError(f"OpenAI API error ({status}): {message}", code=code, status=status)


@dataclass
class LLMClient:
    """Minimal async-friendly OpenAI client using stdlib only."""

    api_key: str
    model: str = DEFAULT_MODEL
    max_tokens: int = 1000
    temperature: float = 0.7
    base_url: str = OPENAI_BASE_URL
    request_timeout: float = 60.0
    max_retries: int = 0
    base_backoff_seconds: float = 0.5
    max_concurrency: int = 6
    _sem: asyncio.Semaphore = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._sem = asyncio.Semaphore(max(1, self.max_concurrency))

    def _json_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    # ------------------------------------------------------------------
    # Core call methods
    # ------------------------------------------------------------------

    def _call_sync(
        self,
        messages: list[dict[str, str]],
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Blocking call. Meant to be run via asyncio.to_thread."""
        body = json.dumps({
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens if max_tokens is not None else self.max_tokens,
            "temperature": temperature if temperature is not None else self.temperature,
            "stream": False,
        }).encode("utf-8")
        req = urllib.request.Request(
            f"{self.base_url}/chat/completions",
            data=body,
            headers=self._json_headers(),
            method="POST",
        )
        try:
            with urllib.request.urlopen(req, timeout=self.request_timeout) as resp:
                data = json.loads(resp.read().decode("utf-8"))
        except urllib.error.HTTPError as exc:
            error_body = exc.read().decode("utf-8", errors="replace")
            raise _parse_error(exc.code, error_body) from exc
        except (urllib.error.URLError, TimeoutError, OSError) as exc:
            raise LLMError(f"OpenAI request failed: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise LLMError("OpenAI returned a non-JSON response") from exc

        try:
            return str(data["choices"][0]["message"]["content"] or "")
        except (KeyError, IndexError, TypeError) as exc:
            raise LLMError("OpenAI response had no completion choices") from exc

    async def chat(
        self,
        messages: list[dict[str, str]],
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Send a chat completion request asynchronously."""
        async with self._sem:
            attempt = 0
            while True:
                try:
                    return await asyncio.to_thread(
                        self._call_sync, messages,
                        max_tokens=max_tokens, temperature=temperature,
                    )
                except LLMError as exc:
                    if not exc.retryable or attempt >= self.max_retries:
                        raise
                    wait_s = self.base_backoff_seconds * (2 ** attempt) + random.uniform(0, 0.05)
                    logger.warning("OpenAI call failed (%s); retrying in %.2fs", exc, wait_s)
                    await asyncio.sleep(wait_s)
                    attempt += 1

    async def ask(
        self,
        prompt: str,
        *,
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Convenience: single user prompt with optional system message."""
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return await self.chat(messages, max_tokens=max_tokens, temperature=temperature)


def build_llm_client(settings: Settings) -> LLMClient | None:
    """Build an LLM client from settings, or None when no key is configured."""
    if not settings.openai_api_key:
        return None
    return LLMClient(
        api_key=settings.openai_api_key,
        model=settings.model,
        max_retries=settings.llm_retries,
    )
