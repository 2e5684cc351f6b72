"""Sentence analysis and AI definitions backed by the LLM client."""

from __future__ import annotations

import logging

from ..llm import INSUFFICIENT_QUOTA, INVALID_API_KEY, LLMClient, LLMError
from ..models import AIDefinition, SentenceAnalysis

logger = logging.getLogger(__name__)

ANALYSIS_TYPES = ("summarize", "simplify", "explain")
DEFAULT_ANALYSIS_TYPE = "summarize"

ANALYZER_MAX_TOKENS = 150
ANALYZER_TEMPERATURE = 0.3
DEFINITION_MAX_TOKENS = 500

FALLBACK_NOTE = (
    "AI analysis not available. Using fallback response. "
    "Add OPENAI_API_KEY to your .env for AI-powered analysis."
)

# Provider errors that callers in strict mode want to see.
PROVIDER_ERROR_CODES = frozenset({INVALID_API_KEY, INSUFFICIENT_QUOTA})

_ANALYZER_SYSTEM_TEMPLATE = """\
You are SentenceAnalyzer, a specialized AI that analyzes and processes text sentences. \
You are different from the main documentation assistant and focus specifically on:

- Summarizing complex sentences into simple, clear language
- Breaking down technical jargon into understandable terms
- Identifying key concepts and main ideas
- Providing alternative phrasings and explanations
- Highlighting important points and relationships

Your responses should be:
- Concise and focused (2-3 sentences max)
- Clear and easy to understand
- Helpful for learning and comprehension
- Different in tone from a general documentation assistant

Current analysis type: {analysis_type}"""

_DEFINITION_SYSTEM_PROMPT = (
    "You are a helpful AI assistant that provides accurate, concise definitions and "
    "explanations for technical terms and concepts. Focus on being clear and educational."
)


def _topic(sentence: str) -> str:
    lowered = sentence.lower()
    if "api" in lowered:
        return "API development"
    if "function" in lowered:
        return "programming functions"
    return "general content"


def fallback_text(sentence: str, analysis_type: str) -> str:
    """Templated analysis used when the LLM is unavailable."""
    if analysis_type == "simplify":
        return (
            f'The sentence "{sentence}" is straightforward and easy to understand. '
            "It communicates its message clearly without unnecessary complexity."
        )
    if analysis_type == "explain":
        return (
            f'This sentence "{sentence}" presents information in a direct manner. '
            "It's well-structured and conveys its meaning effectively."
        )
    return (
        f'This sentence "{sentence}" appears to be about {_topic(sentence)}. '
        "It's a clear statement that could benefit from additional context or examples."
    )


def fallback_analysis(sentence: str, analysis_type: str) -> SentenceAnalysis:
    return SentenceAnalysis(
        response=fallback_text(sentence, analysis_type),
        analysis_type=analysis_type,
        original_sentence=sentence,
        is_fallback=True,
        note=FALLBACK_NOTE,
    )


def build_definition_prompt(term: str, context: str = "") -> str:
    prompt = f'Please provide a clear definition and explanation for: "{term}"'
    if context:
        prompt += f"\n\nContext: {context}"
    prompt += (
        "\n\nPlease provide:\n"
        "1. A clear definition\n"
        "2. An example of usage\n"
        "3. Related terms or concepts\n"
        "4. Any important notes or warnings"
    )
    return prompt


class AIAnalyzer:
    """LLM-backed sentence analyzer with a deterministic offline fallback."""

    def __init__(self, llm: LLMClient | None) -> None:
        self._llm = llm

    @property
    def available(self) -> bool:
        return self._llm is not None

    async def analyze(
        self,
        sentence: str,
        analysis_type: str = DEFAULT_ANALYSIS_TYPE,
        *,
        strict: bool = False,
    ) -> SentenceAnalysis:
        """Analyze *sentence*; always returns a well-formed result.

        With ``strict=True`` invalid-key and quota errors from the provider
        are re-raised as ``LLMError`` instead of being replaced by the
        templated fallback.
        """
        if self._llm is None:
            return fallback_analysis(sentence, analysis_type)

        messages = [
            {"role": "system", "content": _ANALYZER_SYSTEM_TEMPLATE.format(analysis_type=analysis_type)},
            {"role": "user", "content": f'Please analyze this sentence: "{sentence}"'},
        ]
        try:
            response = await self._llm.chat(
                messages,
                max_tokens=ANALYZER_MAX_TOKENS,
                temperature=ANALYZER_TEMPERATURE,
            )
        except LLMError as exc:
            if strict and exc.code in PROVIDER_ERROR_CODES:
                raise
            logger.error("Sentence analyzer LLM error: %s", exc)
            return fallback_analysis(sentence, analysis_type)
        except Exception as exc:
            logger.error("Sentence analyzer failed: %s", exc)
            return fallback_analysis(sentence, analysis_type)

        return SentenceAnalysis(
            response=response,
            analysis_type=analysis_type,
            original_sentence=sentence,
            is_ai=True,
        )

    async def define(self, term: str, context: str = "") -> AIDefinition:
        """Ask the LLM for a definition of *term*. Raises LLMError on failure."""
        if self._llm is None:
            raise LLMError("OpenAI API key is not configured. Set OPENAI_API_KEY to enable AI definitions.")
        content = await self._llm.ask(
            build_definition_prompt(term, context),
            system=_DEFINITION_SYSTEM_PROMPT,
            max_tokens=DEFINITION_MAX_TOKENS,
            temperature=ANALYZER_TEMPERATURE,
        )
        return AIDefinition(
            definition=content,
            source=f"OpenAI {self._llm.model}",
            model=self._llm.model,
        )
