"""Network-backed lookup sources: public dictionary and Wikipedia summaries.

Each source issues a single GET, bounded by a timeout, and reports any
failure (timeout, non-2xx, malformed payload) as ``None`` so the caller can
move on to the next source.
"""

from __future__ import annotations

import asyncio
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from ..config import DICTIONARY_API_URL, USER_AGENT, WIKIPEDIA_API_URL
from ..models import NO_EXAMPLE, NOT_AVAILABLE, LookupRecord, Resource, WikipediaSummary

logger = logging.getLogger(__name__)

MAX_SYNONYMS = 5


class SourceUnavailable(Exception):
    """A source produced no usable data for this request."""


def quote_term(term: str) -> str:
    """Percent-encode *term* for use as a single URL path or query component.

    Lone surrogates are encoded byte-wise rather than rejected.
    """
    return urllib.parse.quote(term.encode("utf-8", "surrogatepass"), safe="!~*'()")


class JSONSource:
    """One GET endpoint of the form ``<base_url><term>`` returning JSON."""

    name = "source"

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float,
        user_agent: str = USER_AGENT,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.user_agent = user_agent

    def url_for(self, term: str) -> str:
        return f"{self.base_url}{quote_term(term)}"

    def _get_sync(self, url: str) -> Any:
        """Blocking GET. Meant to be run via asyncio.to_thread."""
        req = urllib.request.Request(
            url,
            headers={"Accept": "application/json", "User-Agent": self.user_agent},
            method="GET",
        )
        try:
            with urllib.request.urlopen(req, timeout=max(self.timeout, 0.1)) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            raise SourceUnavailable(f"{self.name} returned {exc.code}: {exc.reason}") from exc
        except (urllib.error.URLError, TimeoutError, OSError) as exc:
            raise SourceUnavailable(f"{self.name} request failed: {exc}") from exc
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise SourceUnavailable(f"{self.name} returned malformed JSON") from exc

    async def get_json(self, term: str, timeout: float | None = None) -> Any:
        """Fetch the JSON document for *term*, giving up after *timeout* seconds.

        On timeout the worker thread is abandoned; its result is discarded.
        """
        budget = self.timeout if timeout is None else timeout
        url = self.url_for(term)
        try:
            return await asyncio.wait_for(asyncio.to_thread(self._get_sync, url), budget)
        except asyncio.TimeoutError as exc:
            raise SourceUnavailable(f"{self.name} timed out after {budget:g}s") from exc


# ---------------------------------------------------------------------------
# Dictionary
# ---------------------------------------------------------------------------

def dictionary_resources(term: str) -> list[Resource]:
    quoted = quote_term(term)
    return [
        Resource(title="Merriam-Webster", url=f"https://www.merriam-webster.com/dictionary/{quoted}"),
        Resource(
            title="Oxford Dictionary",
            url=f"https://www.oxfordlearnersdictionaries.com/definition/english/{quoted}",
        ),
    ]


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _pronunciation(entry: dict) -> str:
    if entry.get("phonetic"):
        return str(entry["phonetic"])
    for phonetic in _as_list(entry.get("phonetics")):
        if isinstance(phonetic, dict) and phonetic.get("text"):
            return str(phonetic["text"])
    return NOT_AVAILABLE


def parse_dictionary_payload(term: str, data: Any) -> LookupRecord | None:
    """Map the first entry's first meaning into a LookupRecord.

    Returns None when the payload has no usable entry.
    """
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return None
    entry = data[0]
    meanings = _as_list(entry.get("meanings"))
    meaning = meanings[0] if meanings and isinstance(meanings[0], dict) else {}
    defs = [d for d in _as_list(meaning.get("definitions")) if isinstance(d, dict)]

    definitions = [str(d["definition"]) for d in defs if d.get("definition")]
    first = defs[0] if defs else {}
    synonyms = _as_list(meaning.get("synonyms")) or _as_list(first.get("synonyms"))

    return LookupRecord(
        term=term,
        word=str(entry.get("word") or term),
        pronunciation=_pronunciation(entry),
        part_of_speech=str(meaning.get("partOfSpeech") or NOT_AVAILABLE),
        definitions=definitions or ["No definition available"],
        example_usage=str(first.get("example") or NO_EXAMPLE),
        synonyms=[str(s) for s in synonyms[:MAX_SYNONYMS]],
        resources=dictionary_resources(term),
    )


class DictionaryAPI(JSONSource):
    """Public dictionary API (``GET /entries/en/{term}``)."""

    name = "Dictionary API"

    def __init__(
        self,
        base_url: str = DICTIONARY_API_URL,
        *,
        timeout: float = 5.0,
        user_agent: str = USER_AGENT,
    ) -> None:
        super().__init__(base_url, timeout=timeout, user_agent=user_agent)

    async def fetch(self, term: str, timeout: float | None = None) -> LookupRecord | None:
        try:
            data = await self.get_json(term, timeout)
        except SourceUnavailable as exc:
            logger.info("Dictionary lookup for %r skipped: %s", term, exc)
            return None
        record = parse_dictionary_payload(term, data)
        if record is None:
            logger.info("Dictionary lookup for %r returned no entries", term)
        return record


# ---------------------------------------------------------------------------
# Wikipedia
# ---------------------------------------------------------------------------

def parse_wikipedia_payload(term: str, data: Any) -> WikipediaSummary | None:
    if not isinstance(data, dict) or not data.get("extract"):
        return None
    urls = data.get("content_urls")
    desktop = urls.get("desktop") if isinstance(urls, dict) else None
    desktop = desktop if isinstance(desktop, dict) else {}
    return WikipediaSummary(
        title=str(data.get("title") or term),
        extract=str(data["extract"]),
        url=str(desktop.get("page") or f"https://en.wikipedia.org/wiki/{quote_term(term)}"),
    )


class WikipediaAPI(JSONSource):
    """Wikipedia REST summary endpoint (``GET /page/summary/{term}``)."""

    name = "Wikipedia API"

    def __init__(
        self,
        base_url: str = WIKIPEDIA_API_URL,
        *,
        timeout: float = 3.0,
        user_agent: str = USER_AGENT,
    ) -> None:
        super().__init__(base_url, timeout=timeout, user_agent=user_agent)

    async def fetch(self, term: str, timeout: float | None = None) -> WikipediaSummary | None:
        try:
            data = await self.get_json(term, timeout)
        except SourceUnavailable as exc:
            logger.info("Wikipedia lookup for %r skipped: %s", term, exc)
            return None
        return parse_wikipedia_payload(term, data)
