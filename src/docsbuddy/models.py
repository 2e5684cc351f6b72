"""Pydantic models for docsbuddy's lookup and analysis payloads."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


NOT_AVAILABLE = "N/A"
NO_EXAMPLE = "No example available"

# Lone UTF-16 surrogates are legal in JSON escapes but cannot be encoded as UTF-8.
_SURROGATE = re.compile(r"[\ud800-\udfff]")


def scrub_text(value: str) -> str:
    """Replace lone surrogates in *value* with U+FFFD."""
    return _SURROGATE.sub("\ufffd", value)


def utc_timestamp() -> str:
    """ISO-8601 timestamp in UTC, matching what the UI expects."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class CamelModel(BaseModel):
    """Base model that serializes to the camelCase keys the UI consumes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys and unset optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Lookup records
# ---------------------------------------------------------------------------

class Resource(CamelModel):
    """An external link shown under a lookup result."""

    title: str
    url: str


class WikipediaSummary(CamelModel):
    title: str
    extract: str
    url: str


class AIStatus(CamelModel):
    """Process-wide AI capability flags."""

    model_config = ConfigDict(frozen=True)

    has_openai: bool = Field(default=False, alias="hasOpenAI")
    has_any_ai: bool = Field(default=False, alias="hasAnyAI")
    status: str = "offline"  # "online" | "offline"

    @property
    def online(self) -> bool:
        return self.status == "online"


class LookupRecord(CamelModel):
    """Normalized result of a term lookup.

    ``term`` is what the user typed; ``word`` is the headword of whichever
    source produced the base record.
    """

    term: str
    word: str
    pronunciation: str = NOT_AVAILABLE
    part_of_speech: str = NOT_AVAILABLE
    definitions: list[str] = Field(min_length=1)
    example_usage: str = NO_EXAMPLE
    synonyms: list[str] = Field(default_factory=list)
    resources: list[Resource] = Field(default_factory=list)
    related_terms: list[str] = Field(default_factory=list, max_length=5)
    wikipedia: WikipediaSummary | None = None
    ai_status: AIStatus | None = None
    is_fallback: bool | None = None


# ---------------------------------------------------------------------------
# AI analysis
# ---------------------------------------------------------------------------

class SentenceAnalysis(CamelModel):
    """Result of a sentence-analysis request, AI-generated or templated."""

    response: str
    analysis_type: str
    original_sentence: str
    timestamp: str = Field(default_factory=utc_timestamp)
    is_ai: bool | None = Field(default=None, alias="isAI")
    is_fallback: bool | None = None
    note: str | None = None


class AIDefinition(CamelModel):
    """Free-text definition produced by the LLM for a term."""

    definition: str
    source: str
    model: str
    timestamp: str = Field(default_factory=utc_timestamp)


# ---------------------------------------------------------------------------
# Assistant reply analysis
# ---------------------------------------------------------------------------

class ResponseTraits(CamelModel):
    """Keyword-level traits of an assistant reply."""

    has_code: bool = False
    has_documentation: bool = False
    has_tools: bool = False
    has_examples: bool = False
    has_best_practices: bool = False
    topics: list[str] = Field(default_factory=list)
    complexity: str = "basic"  # "basic" | "intermediate" | "advanced"


class CodePattern(CamelModel):
    """One fenced code block found in a reply."""

    language: str
    code: str
    start_index: int


class CodeReferences(CamelModel):
    language: str
    patterns: list[CodePattern] = Field(default_factory=list)


class DocumentationTopics(CamelModel):
    topics: list[str] = Field(default_factory=list)


class ToolMentions(CamelModel):
    mentioned_tools: list[str] = Field(default_factory=list)


class ResponseLookups(CamelModel):
    code_references: CodeReferences | None = None
    documentation_links: DocumentationTopics | None = None
    tools_and_libraries: ToolMentions | None = None


class Insight(CamelModel):
    type: str
    message: str
    priority: str


class Suggestion(CamelModel):
    action: str
    description: str
    priority: str


class ResponseLookup(CamelModel):
    """Follow-up lookups, insights and suggestions for one assistant reply."""

    response_id: str
    timestamp: str = Field(default_factory=utc_timestamp)
    analysis: ResponseTraits
    lookups: ResponseLookups = Field(default_factory=ResponseLookups)
    insights: list[Insight] = Field(default_factory=list)
    suggestions: list[Suggestion] = Field(default_factory=list)
