"""Heuristic follow-ups for assistant replies.

A chat reply is scanned for code, documentation pointers and package
installs; each trait found turns into a lookup section, an insight and a
suggested next step. Nothing here touches the network.
"""

from __future__ import annotations

import re
import secrets
import time

from ..models import (
    CodePattern,
    CodeReferences,
    DocumentationTopics,
    Insight,
    ResponseLookup,
    ResponseLookups,
    ResponseTraits,
    Suggestion,
    ToolMentions,
)

CODE_MARKERS = ("```", "function", "const ", "let ")
DOCUMENTATION_MARKERS = ("documentation", "docs", "guide", "tutorial")
TOOL_MARKERS = ("npm", "package", "library", "framework")
EXAMPLE_MARKERS = ("example", "instance", "case")
BEST_PRACTICE_MARKERS = ("best practice", "recommended", "should", "avoid")

INTERMEDIATE_LENGTH = 500
ADVANCED_LENGTH = 1000

DOCUMENTATION_TOPICS = (
    "api", "rest", "graphql", "authentication", "database", "testing", "deployment", "security",
)

_CODE_BLOCK = re.compile(r"```(\w+)?\n(.*?)```", re.DOTALL)
_INSTALL_COMMANDS = tuple(
    re.compile(pattern)
    for pattern in (r"npm install (\w+)", r"yarn add (\w+)", r"pip install (\w+)", r"gem install (\w+)")
)


def _mentions(text: str, markers: tuple[str, ...]) -> bool:
    return any(marker in text for marker in markers)


def detect_code_language(text: str) -> str:
    """Guess the language of code in *text* from a few tell-tale tokens."""
    if "function" in text and "const" in text:
        return "javascript"
    if "def " in text or "import " in text:
        return "python"
    if "public class" in text or "public static" in text:
        return "java"
    if "<?php" in text or "$" in text:
        return "php"
    return "unknown"


def extract_code_patterns(text: str) -> list[CodePattern]:
    return [
        CodePattern(language=m.group(1) or "unknown", code=m.group(2).strip(), start_index=m.start())
        for m in _CODE_BLOCK.finditer(text)
    ]


def extract_topics(text: str, user_query: str = "") -> list[str]:
    """Documentation topics mentioned in the reply or the question that prompted it."""
    combined = f"{text} {user_query}".lower()
    return [topic for topic in DOCUMENTATION_TOPICS if topic in combined]


def extract_mentioned_tools(text: str) -> list[str]:
    """Package names from install commands, grouped by package manager."""
    return [m.group(1) for pattern in _INSTALL_COMMANDS for m in pattern.finditer(text)]


def classify_response(text: str, user_query: str = "") -> ResponseTraits:
    if len(text) > ADVANCED_LENGTH:
        complexity = "advanced"
    elif len(text) > INTERMEDIATE_LENGTH:
        complexity = "intermediate"
    else:
        complexity = "basic"
    return ResponseTraits(
        has_code=_mentions(text, CODE_MARKERS),
        has_documentation=_mentions(text, DOCUMENTATION_MARKERS),
        has_tools=_mentions(text, TOOL_MARKERS),
        has_examples=_mentions(text, EXAMPLE_MARKERS),
        has_best_practices=_mentions(text, BEST_PRACTICE_MARKERS),
        topics=extract_topics(text, user_query),
        complexity=complexity,
    )


def build_insights(lookups: ResponseLookups) -> list[Insight]:
    insights = []
    if lookups.code_references is not None:
        code = lookups.code_references
        insights.append(Insight(
            type="code_quality",
            message=(
                f"The response includes {len(code.patterns)} code patterns. "
                f"Consider reviewing best practices for {code.language}."
            ),
            priority="medium",
        ))
    if lookups.documentation_links is not None:
        topics = lookups.documentation_links.topics
        insights.append(Insight(
            type="documentation",
            message=(
                f"The response points to documentation on {len(topics)} topics"
                + (f": {', '.join(topics)}." if topics else ".")
            ),
            priority="high",
        ))
    if lookups.tools_and_libraries is not None:
        tools = lookups.tools_and_libraries.mentioned_tools
        insights.append(Insight(
            type="tools",
            message=f"Response mentions {len(tools)} tools. Check compatibility and alternatives.",
            priority="medium",
        ))
    return insights


def build_suggestions(traits: ResponseTraits) -> list[Suggestion]:
    suggestions = []
    if traits.has_code:
        suggestions.append(Suggestion(
            action="test_code",
            description="Test the provided code examples in your development environment",
            priority="high",
        ))
    if traits.has_documentation:
        suggestions.append(Suggestion(
            action="read_docs",
            description="Review the suggested documentation for deeper understanding",
            priority="medium",
        ))
    if traits.has_tools:
        suggestions.append(Suggestion(
            action="evaluate_tools",
            description="Evaluate the mentioned tools for your specific use case",
            priority="medium",
        ))
    return suggestions


def new_response_id() -> str:
    return f"lookup_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


def analyze_response(ai_response: str, user_query: str = "") -> ResponseLookup:
    """Turn an assistant reply into lookups, insights and suggestions.

    Lookup sections appear only for the traits the reply has: code blocks
    and their language, documentation topics, and packages from install
    commands.
    """
    traits = classify_response(ai_response, user_query)
    lookups = ResponseLookups(
        code_references=CodeReferences(
            language=detect_code_language(ai_response),
            patterns=extract_code_patterns(ai_response),
        ) if traits.has_code else None,
        documentation_links=DocumentationTopics(
            topics=traits.topics,
        ) if traits.has_documentation else None,
        tools_and_libraries=ToolMentions(
            mentioned_tools=extract_mentioned_tools(ai_response),
        ) if traits.has_tools else None,
    )
    return ResponseLookup(
        response_id=new_response_id(),
        analysis=traits,
        lookups=lookups,
        insights=build_insights(lookups),
        suggestions=build_suggestions(traits),
    )
