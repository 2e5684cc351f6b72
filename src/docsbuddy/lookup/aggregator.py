"""Term lookup: glossary, then dictionary, then a canned fallback.

Wikipedia and related terms are layered on top of whichever base record
won. Every failure along the way degrades to a usable record; ``lookup``
does not raise.
"""

from __future__ import annotations

import asyncio
import logging

from ..config import Settings
from ..models import (
    NO_EXAMPLE,
    NOT_AVAILABLE,
    AIStatus,
    LookupRecord,
    Resource,
    WikipediaSummary,
    scrub_text,
)
from .glossary import TechnicalGlossary, related_terms
from .sources import DictionaryAPI, WikipediaAPI, quote_term

logger = logging.getLogger(__name__)

FALLBACK_DEFINITIONS = (
    "Unable to fetch definition at this time. Please check your internet connection.",
    "This term may be technical or domain-specific.",
    "Try selecting a different word or phrase.",
)
FALLBACK_SYNONYMS = ("term", "word", "phrase")


def fallback_record(term: str) -> LookupRecord:
    """Record returned when no source had anything for *term*."""
    quoted = quote_term(term)
    return LookupRecord(
        term=term,
        word=term,
        pronunciation=NOT_AVAILABLE,
        part_of_speech="noun",
        definitions=list(FALLBACK_DEFINITIONS),
        example_usage=NO_EXAMPLE,
        synonyms=list(FALLBACK_SYNONYMS),
        resources=[
            Resource(title="Google Search", url=f"https://www.google.com/search?q={quoted}"),
            Resource(title="Merriam-Webster", url=f"https://www.merriam-webster.com/dictionary/{quoted}"),
        ],
        is_fallback=True,
    )


class TermLookupAggregator:
    """Merge glossary, dictionary and Wikipedia data into one LookupRecord."""

    def __init__(
        self,
        ai_status: AIStatus,
        *,
        glossary: TechnicalGlossary | None = None,
        dictionary: DictionaryAPI | None = None,
        wikipedia: WikipediaAPI | None = None,
        dictionary_timeout: float = 5.0,
        wikipedia_timeout: float = 3.0,
    ) -> None:
        self.ai_status = ai_status
        self.glossary = glossary or TechnicalGlossary()
        self.dictionary = dictionary or DictionaryAPI(timeout=dictionary_timeout)
        self.wikipedia = wikipedia or WikipediaAPI(timeout=wikipedia_timeout)
        self.dictionary_timeout = dictionary_timeout
        self.wikipedia_timeout = wikipedia_timeout

    @classmethod
    def from_settings(cls, settings: Settings, ai_status: AIStatus) -> TermLookupAggregator:
        return cls(
            ai_status,
            dictionary=DictionaryAPI(
                settings.dictionary_url,
                timeout=settings.dictionary_timeout,
                user_agent=settings.user_agent,
            ),
            wikipedia=WikipediaAPI(
                settings.wikipedia_url,
                timeout=settings.wikipedia_timeout,
                user_agent=settings.user_agent,
            ),
            dictionary_timeout=settings.dictionary_timeout,
            wikipedia_timeout=settings.wikipedia_timeout,
        )

    async def lookup(self, term: str) -> LookupRecord:
        term = scrub_text(term)
        try:
            return await self._lookup(term)
        except Exception:
            logger.exception("Lookup for %r failed; returning fallback", term)
            return self._enrich(fallback_record(term), term, None)

    async def _lookup(self, term: str) -> LookupRecord:
        # Wikipedia runs alongside base resolution; it never affects which base wins.
        wiki_task = asyncio.create_task(self._wikipedia_summary(term))
        try:
            base = await self._base_record(term)
        except BaseException:
            wiki_task.cancel()
            raise
        wiki = await wiki_task
        return self._enrich(base, term, wiki)

    async def _base_record(self, term: str) -> LookupRecord:
        record = self.glossary.find(term)
        if record is not None:
            logger.debug("Glossary hit for %r", term)
            return record

        record = await self.dictionary.fetch(term, self.dictionary_timeout)
        if record is not None:
            return record

        logger.info("No source had %r; using fallback record", term)
        return fallback_record(term)

    async def _wikipedia_summary(self, term: str) -> WikipediaSummary | None:
        try:
            return await asyncio.wait_for(
                self.wikipedia.fetch(term, self.wikipedia_timeout),
                self.wikipedia_timeout,
            )
        except asyncio.TimeoutError:
            logger.info("Wikipedia lookup for %r timed out", term)
        except Exception as exc:
            logger.info("Wikipedia lookup for %r failed: %s", term, exc)
        return None

    def _enrich(
        self,
        base: LookupRecord,
        term: str,
        wiki: WikipediaSummary | None,
    ) -> LookupRecord:
        return base.model_copy(update={
            "wikipedia": wiki,
            "related_terms": related_terms(term),
            "ai_status": self.ai_status,
        })
