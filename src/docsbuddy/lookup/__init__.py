"""Term lookup: local glossary, public dictionary, Wikipedia and AI analysis."""

from .aggregator import TermLookupAggregator, fallback_record
from .analyzer import AIAnalyzer
from .glossary import TechnicalGlossary, extract_lookup_terms, related_terms
from .response_analysis import analyze_response
from .sources import DictionaryAPI, WikipediaAPI

__all__ = [
    "AIAnalyzer",
    "DictionaryAPI",
    "TechnicalGlossary",
    "TermLookupAggregator",
    "WikipediaAPI",
    "analyze_response",
    "extract_lookup_terms",
    "fallback_record",
    "related_terms",
]
