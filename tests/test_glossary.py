"""Tests for the local technical glossary and keyword tables."""

from __future__ import annotations

from docsbuddy.lookup.glossary import (
    TECHNICAL_TERMS,
    TechnicalGlossary,
    extract_lookup_terms,
    related_terms,
)


class TestFind:
    def test_exact_match_is_case_insensitive(self):
        record = TechnicalGlossary().find("API")
        assert record is not None
        assert record.word == "API"
        assert record.part_of_speech == "noun"
        assert record.pronunciation == TECHNICAL_TERMS["api"]["pronunciation"]
        assert len(record.definitions) == 3
        assert "interface" in record.synonyms

    def test_term_is_kept_as_typed(self):
        record = TechnicalGlossary().find("  Database ")
        assert record is not None
        assert record.term == "  Database "
        assert record.word == "Database"

    def test_substring_of_term_matches(self):
        record = TechnicalGlossary().find("middleware stack")
        assert record is not None
        assert record.word == "Middleware"

    def test_term_contained_in_key_matches(self):
        record = TechnicalGlossary().find("authent")
        assert record is not None
        assert record.word == "Authentication"

    def test_first_key_in_table_order_wins(self):
        # Both "api" and "endpoint" are contained; "api" comes first.
        glossary = TechnicalGlossary()
        assert glossary.match_key("api endpoint") == "api"
        assert glossary.match_key("endpoint of the api") == "api"

    def test_unknown_term_returns_none(self):
        assert TechnicalGlossary().find("xyzzyunknown123") is None

    def test_blank_term_never_matches(self):
        assert TechnicalGlossary().find("   ") is None

    def test_custom_table(self):
        glossary = TechnicalGlossary({
            "cache": {
                "word": "Cache",
                "pronunciation": "kæʃ",
                "part_of_speech": "noun",
                "definitions": ["Fast storage"],
                "example_usage": "The cache is warm",
                "synonyms": [],
                "resources": [],
            }
        })
        assert glossary.find("CACHE").word == "Cache"
        assert glossary.find("api") is None

    def test_records_do_not_share_lists(self):
        glossary = TechnicalGlossary()
        first = glossary.find("api")
        first.definitions.append("mutated")
        assert len(glossary.find("api").definitions) == 3


class TestRelatedTerms:
    def test_api_keyword(self):
        assert related_terms("REST API") == [
            "endpoint", "rest", "graphql", "authentication", "authorization"
        ]

    def test_never_more_than_five(self):
        for key in TECHNICAL_TERMS:
            assert len(related_terms(key)) <= 5
        assert len(related_terms("api", limit=2)) == 2

    def test_unrelated_term(self):
        assert related_terms("banana") == []
        assert related_terms("") == []


class TestExtractLookupTerms:
    def test_picks_known_words_in_order(self):
        text = "Call the API, then query the Database via JWT."
        assert extract_lookup_terms(text) == ["API,", "Database", "JWT."]

    def test_ignores_short_and_unknown_words(self):
        assert extract_lookup_terms("an ox ate hay") == []
        assert extract_lookup_terms("") == []
