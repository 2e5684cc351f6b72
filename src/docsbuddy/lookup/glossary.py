"""Local technical glossary and keyword tables.

The glossary is the first stop for every lookup and never touches the
network, so a handful of common programming terms always resolve.
"""

from __future__ import annotations

import re

from ..models import LookupRecord, Resource

# Insertion order matters: loose substring matches take the first entry.
TECHNICAL_TERMS: dict[str, dict] = {
    "api": {
        "word": "API",
        "pronunciation": "ˈeɪpiːaɪ",
        "part_of_speech": "noun",
        "definitions": [
            "Application Programming Interface - a set of rules and protocols for building software applications",
            "A way for different software programs to communicate with each other",
            "A collection of tools and functions that developers can use to build applications",
        ],
        "example_usage": "The API allows third-party developers to integrate with our platform",
        "synonyms": ["interface", "endpoint", "service", "protocol", "connector"],
        "resources": [
            ("REST API Tutorial", "https://restfulapi.net/"),
            ("OpenAPI Specification", "https://swagger.io/specification/"),
        ],
    },
    "function": {
        "word": "Function",
        "pronunciation": "ˈfʌŋkʃən",
        "part_of_speech": "noun",
        "definitions": [
            "A reusable block of code that performs a specific task",
            "A named section of a program that can be called to execute code",
            "A mathematical relationship between inputs and outputs",
        ],
        "example_usage": "The function processes user input and returns formatted data",
        "synonyms": ["method", "procedure", "routine", "subroutine", "handler"],
        "resources": [
            ("MDN Web Docs - Functions", "https://developer.mozilla.org/en-US/docs/Web/JavaScript/Guide/Functions"),
            ("JavaScript.info - Functions", "https://javascript.info/function-basics"),
        ],
    },
    "database": {
        "word": "Database",
        "pronunciation": "ˈdeɪtəbeɪs",
        "part_of_speech": "noun",
        "definitions": [
            "A structured collection of data stored electronically",
            "An organized collection of information that can be easily accessed, managed, and updated",
            "A system for storing and retrieving data in a structured format",
        ],
        "example_usage": "The database stores user profiles and authentication data",
        "synonyms": ["data store", "repository", "data warehouse", "data bank"],
        "resources": [
            ("SQL Tutorial", "https://www.w3schools.com/sql/"),
            ("MongoDB Documentation", "https://docs.mongodb.com/"),
        ],
    },
    "authentication": {
        "word": "Authentication",
        "pronunciation": "ɔːˌθɛntɪˈkeɪʃən",
        "part_of_speech": "noun",
        "definitions": [
            "The process of verifying the identity of a user or system",
            "A security measure that confirms who someone is before granting access",
            "The act of proving or showing something to be true, genuine, or valid",
        ],
        "example_usage": "The authentication system uses JWT tokens for secure access",
        "synonyms": ["verification", "validation", "identification", "confirmation", "certification"],
        "resources": [
            ("OAuth 2.0 Guide", "https://oauth.net/2/"),
            ("JWT.io", "https://jwt.io/"),
        ],
    },
    "middleware": {
        "word": "Middleware",
        "pronunciation": "ˈmɪdəlweə",
        "part_of_speech": "noun",
        "definitions": [
            "Software that acts as a bridge between different applications or components",
            "A layer of software that provides common services to applications",
            "Software that runs between the operating system and applications",
        ],
        "example_usage": "The middleware intercepts requests and applies authentication filters",
        "synonyms": ["intermediary", "bridge", "adapter", "connector", "interface"],
        "resources": [
            ("Express.js Middleware", "https://expressjs.com/en/guide/using-middleware.html"),
            ("ASP.NET Core Middleware", "https://docs.microsoft.com/en-us/aspnet/core/fundamentals/middleware/"),
        ],
    },
    "endpoint": {
        "word": "Endpoint",
        "pronunciation": "ˈendpɔɪnt",
        "part_of_speech": "noun",
        "definitions": [
            "A specific URL or URI that an API exposes for a particular service",
            "The entry point for a web service or API",
            "A point of termination or completion",
        ],
        "example_usage": "The API endpoint /users returns a list of all users",
        "synonyms": ["URL", "URI", "route", "path", "service"],
        "resources": [
            ("REST API Design", "https://restfulapi.net/rest-api-design-tutorial-with-example/"),
            ("API Endpoints Guide", "https://swagger.io/docs/specification/paths-and-operations/"),
        ],
    },
}

# Keyword -> related terms. First key contained in the term wins.
RELATED_TERMS: dict[str, list[str]] = {
    "api": ["endpoint", "rest", "graphql", "authentication", "authorization"],
    "function": ["method", "procedure", "callback", "closure", "arrow function"],
    "database": ["sql", "nosql", "query", "index", "schema"],
    "authentication": ["login", "password", "token", "session", "oauth"],
    "middleware": ["request", "response", "pipeline", "handler", "interceptor"],
    "endpoint": ["url", "route", "method", "request", "response"],
}

MAX_RELATED_TERMS = 5

# Vocabulary used to highlight lookup candidates in assistant replies.
LOOKUP_VOCABULARY = frozenset({
    "api", "function", "database", "authentication", "endpoint", "rest", "graphql",
    "javascript", "python", "react", "node", "express", "mongodb", "sql",
    "authorization", "jwt", "oauth", "cors", "middleware",
})

_NON_WORD = re.compile(r"[^\w]")


def normalize_term(term: str) -> str:
    return term.strip().lower()


class TechnicalGlossary:
    """In-memory lookup over a fixed table of technical terms."""

    def __init__(self, entries: dict[str, dict] | None = None) -> None:
        self._entries = TECHNICAL_TERMS if entries is None else entries

    def match_key(self, term: str) -> str | None:
        """Return the glossary key for *term*, or None.

        Exact key first, then the first key (in table order) that is a
        substring of the term or contains it.
        """
        needle = normalize_term(term)
        if not needle:
            return None
        if needle in self._entries:
            return needle
        for key in self._entries:
            if key in needle or needle in key:
                return key
        return None

    def find(self, term: str) -> LookupRecord | None:
        key = self.match_key(term)
        if key is None:
            return None
        entry = self._entries[key]
        return LookupRecord(
            term=term,
            word=entry["word"],
            pronunciation=entry["pronunciation"],
            part_of_speech=entry["part_of_speech"],
            definitions=list(entry["definitions"]),
            example_usage=entry["example_usage"],
            synonyms=list(entry["synonyms"]),
            resources=[Resource(title=t, url=u) for t, u in entry["resources"]],
        )


def related_terms(term: str, *, limit: int = MAX_RELATED_TERMS) -> list[str]:
    """Heuristic related terms for *term*, at most *limit* entries."""
    needle = normalize_term(term)
    if not needle:
        return []
    for key, related in RELATED_TERMS.items():
        if key in needle:
            return related[:limit]
    return []


def extract_lookup_terms(text: str) -> list[str]:
    """Pick out words in *text* worth offering a lookup for.

    Tokens keep their original spelling and order; duplicates are kept.
    """
    found = []
    for word in text.split():
        clean = _NON_WORD.sub("", word.lower())
        if len(clean) > 2 and clean in LOOKUP_VOCABULARY:
            found.append(word)
    return found
