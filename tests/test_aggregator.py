"""Tests for the term lookup fallback chain."""

from __future__ import annotations

import asyncio
import time

from docsbuddy.lookup.aggregator import FALLBACK_DEFINITIONS, TermLookupAggregator, fallback_record
from docsbuddy.lookup.sources import DictionaryAPI, SourceUnavailable, parse_dictionary_payload
from docsbuddy.models import WikipediaSummary
from docsbuddy.status import probe

OFFLINE = probe({})
ONLINE = probe({"OPENAI_API_KEY": "sk-test"})


class FakeDictionary:
    """Stands in for DictionaryAPI; records calls."""

    def __init__(self, record=None, *, exc: Exception | None = None, delay: float = 0.0):
        self._record = record
        self._exc = exc
        self._delay = delay
        self.calls: list[tuple[str, float | None]] = []

    async def fetch(self, term, timeout=None):
        self.calls.append((term, timeout))
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._exc is not None:
            raise self._exc
        return self._record


class FakeWikipedia(FakeDictionary):
    pass


def _unavailable(url):
    raise SourceUnavailable("Dictionary API request failed")


class ExplodingGlossary:
    def find(self, term):
        raise KeyError("corrupt glossary")


def _aggregator(dictionary=None, wikipedia=None, *, ai_status=OFFLINE, **kwargs):
    return TermLookupAggregator(
        ai_status,
        dictionary=dictionary or FakeDictionary(),
        wikipedia=wikipedia or FakeWikipedia(),
        **kwargs,
    )


class TestBaseRecord:
    def test_glossary_hit_skips_network(self):
        dictionary = FakeDictionary(exc=OSError("network down"))
        record = asyncio.run(_aggregator(dictionary).lookup("API"))

        assert record.word == "API"
        assert record.term == "API"
        assert record.part_of_speech == "noun"
        assert len(record.definitions) == 3
        assert "interface" in record.synonyms
        assert record.is_fallback is None
        assert dictionary.calls == []

    def test_dictionary_used_when_glossary_misses(self):
        entry = parse_dictionary_payload("serendipity", [{
            "word": "serendipity",
            "meanings": [{"partOfSpeech": "noun", "definitions": [{"definition": "A happy accident."}]}],
        }])
        dictionary = FakeDictionary(entry)
        record = asyncio.run(_aggregator(dictionary, dictionary_timeout=4.0).lookup("serendipity"))

        assert record.word == "serendipity"
        assert record.definitions == ["A happy accident."]
        assert record.is_fallback is None
        assert dictionary.calls == [("serendipity", 4.0)]

    def test_all_sources_failing_gives_fallback(self):
        record = asyncio.run(_aggregator(FakeDictionary(None), FakeWikipedia(None)).lookup("xyzzyunknown123"))

        assert record.is_fallback is True
        assert record.word == "xyzzyunknown123"
        assert record.definitions == list(FALLBACK_DEFINITIONS)
        assert "internet connection" in record.definitions[0]
        urls = [r.url for r in record.resources]
        assert "https://www.google.com/search?q=xyzzyunknown123" in urls
        assert record.wikipedia is None
        assert record.related_terms == []

    def test_dictionary_exception_is_absorbed(self):
        record = asyncio.run(_aggregator(FakeDictionary(exc=RuntimeError("boom"))).lookup("quux"))
        assert record.is_fallback is True

    def test_glossary_exception_is_absorbed(self):
        aggregator = TermLookupAggregator(
            OFFLINE,
            glossary=ExplodingGlossary(),
            dictionary=FakeDictionary(),
            wikipedia=FakeWikipedia(),
        )
        record = asyncio.run(aggregator.lookup("api"))
        assert record.is_fallback is True
        assert record.ai_status == OFFLINE
        assert record.related_terms[0] == "endpoint"

    def test_lone_surrogate_term_falls_back(self):
        dictionary = DictionaryAPI(timeout=1.0)
        dictionary._get_sync = _unavailable
        record = asyncio.run(_aggregator(dictionary).lookup("\ud800x"))

        assert record.is_fallback is True
        assert record.term == "\ufffdx"
        assert record.resources[0].url == "https://www.google.com/search?q=%EF%BF%BDx"

    def test_definitions_never_empty(self):
        aggregator = _aggregator()
        for term in ["api", "Function", "xyzzy", "a", "middleware layer", "!!"]:
            record = asyncio.run(aggregator.lookup(term))
            assert len(record.definitions) >= 1


class TestEnrichment:
    def test_wikipedia_attached(self):
        wiki = FakeWikipedia(WikipediaSummary(title="API", extract="An API is...", url="https://w/API"))
        record = asyncio.run(_aggregator(wikipedia=wiki).lookup("api"))
        assert record.wikipedia.extract == "An API is..."
        assert wiki.calls == [("api", 3.0)]

    def test_wikipedia_absence_does_not_change_base(self):
        with_wiki = asyncio.run(_aggregator(
            wikipedia=FakeWikipedia(WikipediaSummary(title="X", extract="x", url="u"))
        ).lookup("xyzzy"))
        without_wiki = asyncio.run(_aggregator(
            wikipedia=FakeWikipedia(exc=RuntimeError("wiki down"))
        ).lookup("xyzzy"))

        assert with_wiki.wikipedia is not None
        assert without_wiki.wikipedia is None
        assert with_wiki.is_fallback == without_wiki.is_fallback
        assert with_wiki.definitions == without_wiki.definitions

    def test_slow_wikipedia_is_dropped(self):
        wiki = FakeWikipedia(WikipediaSummary(title="X", extract="x", url="u"), delay=1.0)
        aggregator = _aggregator(wikipedia=wiki, wikipedia_timeout=0.05)
        record = asyncio.run(aggregator.lookup("api"))
        assert record.wikipedia is None
        assert record.word == "API"

    def test_wikipedia_runs_alongside_dictionary(self):
        dictionary = FakeDictionary(None, delay=0.3)
        wiki = FakeWikipedia(WikipediaSummary(title="X", extract="x", url="u"), delay=0.3)
        aggregator = _aggregator(dictionary, wiki)

        async def _timed():
            started = time.monotonic()
            record = await aggregator.lookup("xyzzy")
            return record, time.monotonic() - started

        record, elapsed = asyncio.run(_timed())
        assert record.wikipedia is not None
        assert elapsed < 0.55

    def test_related_terms_capped(self):
        record = asyncio.run(_aggregator().lookup("graphql api"))
        assert record.related_terms == ["endpoint", "rest", "graphql", "authentication", "authorization"]
        assert len(record.related_terms) <= 5


class TestAIStatus:
    def test_status_is_attached(self):
        record = asyncio.run(_aggregator(ai_status=ONLINE).lookup("api"))
        assert record.ai_status.status == "online"
        assert record.ai_status.has_openai is True

    def test_returned_records_keep_their_status(self):
        online_record = asyncio.run(_aggregator(ai_status=ONLINE).lookup("api"))
        asyncio.run(_aggregator(ai_status=OFFLINE).lookup("api"))
        assert online_record.ai_status.status == "online"


class TestPayload:
    def test_camel_case_keys_and_omitted_optionals(self):
        payload = asyncio.run(_aggregator().lookup("API")).to_payload()
        assert payload["word"] == "API"
        assert payload["partOfSpeech"] == "noun"
        assert "exampleUsage" in payload
        assert payload["relatedTerms"][0] == "endpoint"
        assert payload["aiStatus"] == {"hasOpenAI": False, "hasAnyAI": False, "status": "offline"}
        assert "wikipedia" not in payload
        assert "isFallback" not in payload

    def test_fallback_payload_flag(self):
        payload = fallback_record("x y").to_payload()
        assert payload["isFallback"] is True
        assert payload["resources"][0]["url"] == "https://www.google.com/search?q=x%20y"

    def test_fallback_record_quotes_lone_surrogates(self):
        record = fallback_record("\ud800x")
        assert record.resources[1].url == "https://www.merriam-webster.com/dictionary/%ED%A0%80x"
