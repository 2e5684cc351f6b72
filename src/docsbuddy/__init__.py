"""DocsBuddy - documentation assistant with contextual term lookup."""

from .models import (  # noqa: F401 -- public re-exports
    AIStatus,
    LookupRecord,
    Resource,
    SentenceAnalysis,
    WikipediaSummary,
)
from .llm import LLMClient, LLMError
from .lookup import AIAnalyzer, TermLookupAggregator
from .status import probe

__version__ = "0.1.0"

__all__ = [
    "AIAnalyzer",
    "AIStatus",
    "LLMClient",
    "LLMError",
    "LookupRecord",
    "Resource",
    "SentenceAnalysis",
    "TermLookupAggregator",
    "WikipediaSummary",
    "probe",
]
