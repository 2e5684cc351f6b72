"""FastAPI server for the DocsBuddy chat and lookup endpoints."""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import Settings, load_settings
from .llm import INSUFFICIENT_QUOTA, INVALID_API_KEY, LLMClient, LLMError, build_llm_client
from .lookup import AIAnalyzer, TermLookupAggregator, analyze_response, extract_lookup_terms, fallback_record
from .lookup.analyzer import DEFAULT_ANALYSIS_TYPE
from .models import AIStatus, scrub_text
from .status import status_for_key

logger = logging.getLogger(__name__)

app = FastAPI(title="docsbuddy", version="0.1.0")

# The UI is served from a different origin.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Set by configure() before uvicorn starts; built lazily otherwise.
_settings: Settings | None = None
_ai_status: AIStatus | None = None
_llm_client: LLMClient | None = None
_aggregator: TermLookupAggregator | None = None
_analyzer: AIAnalyzer | None = None


def configure(
    settings: Settings | None = None,
    *,
    llm_client: LLMClient | None = None,
    ai_status: AIStatus | None = None,
) -> None:
    """(Re)build the process-wide services from *settings*.

    The AI status is computed here once and shared by every request.
    """
    global _settings, _ai_status, _llm_client, _aggregator, _analyzer
    _settings = settings or load_settings()
    _ai_status = ai_status or status_for_key(_settings.openai_api_key)
    _llm_client = llm_client or build_llm_client(_settings)
    _aggregator = TermLookupAggregator.from_settings(_settings, _ai_status)
    _analyzer = AIAnalyzer(_llm_client)


def _ensure_configured() -> None:
    if _aggregator is None or _analyzer is None or _ai_status is None:
        configure()


def _provider_http_error(exc: LLMError, *, quota_message: str, key_message: str) -> HTTPException | None:
    """Map invalid-key / quota provider errors onto HTTP status codes."""
    if exc.code == INSUFFICIENT_QUOTA:
        return HTTPException(status_code=429, detail=quota_message)
    if exc.code == INVALID_API_KEY:
        return HTTPException(status_code=401, detail=key_message)
    return None


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------

class TextRequest(BaseModel):
    """Request body whose strings are safe to echo back as UTF-8 JSON."""

    @field_validator("*")
    @classmethod
    def _scrub(cls, value):
        return scrub_text(value) if isinstance(value, str) else value


class LookupRequest(TextRequest):
    term: str | None = None


class SentenceRequest(TextRequest):
    model_config = ConfigDict(populate_by_name=True)

    sentence: str | None = None
    analysis_type: str | None = Field(default=None, alias="analysisType")


class TermsRequest(TextRequest):
    text: str | None = None


class DefinitionRequest(TextRequest):
    term: str | None = None
    context: str = ""


class ResponseAnalysisRequest(TextRequest):
    model_config = ConfigDict(populate_by_name=True)

    response: str | None = None
    user_query: str = Field(default="", alias="userQuery")


@app.post("/api/lookup/definition")
@app.post("/lookup-definition")
async def lookup_definition(req: LookupRequest | None = None) -> JSONResponse:
    """Aggregate glossary, dictionary and Wikipedia data for a term."""
    term = req.term if req else None
    if not term or not term.strip():
        raise HTTPException(status_code=400, detail="Term is required")

    _ensure_configured()
    assert _aggregator is not None
    try:
        record = await _aggregator.lookup(term)
    except Exception:
        logger.exception("Error in lookup API")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "fallback": fallback_record(term).to_payload(),
            },
        )
    return JSONResponse(record.to_payload())


@app.post("/api/lookup/sentence-analyzer")
@app.post("/sentence-analyzer")
async def sentence_analyzer(req: SentenceRequest | None = None) -> JSONResponse:
    """Summarize, simplify or explain a sentence with the analyzer persona."""
    sentence = req.sentence if req else None
    if not sentence:
        raise HTTPException(status_code=400, detail="Sentence is required")
    analysis_type = (req.analysis_type if req else None) or DEFAULT_ANALYSIS_TYPE

    _ensure_configured()
    assert _analyzer is not None
    try:
        result = await _analyzer.analyze(sentence, analysis_type, strict=True)
    except LLMError as exc:
        logger.error("Sentence analyzer API error: %s", exc)
        http_exc = _provider_http_error(
            exc,
            quota_message="Lookup API quota exceeded. Please check your OpenAI billing settings.",
            key_message="Invalid API key. Please check your OPENAI_API_KEY.",
        )
        if http_exc is None:
            raise
        raise http_exc from exc
    return JSONResponse(result.to_payload())


@app.get("/api/lookup/status")
async def lookup_status() -> JSONResponse:
    """Report whether AI-backed lookups are available."""
    _ensure_configured()
    assert _ai_status is not None
    return JSONResponse(_ai_status.to_payload())


@app.post("/api/lookup/terms")
async def lookup_terms(req: TermsRequest | None = None) -> JSONResponse:
    """List the words in a block of text that have lookup data."""
    text = req.text if req else None
    if text is None:
        raise HTTPException(status_code=400, detail="Text is required")
    return JSONResponse({"terms": extract_lookup_terms(text)})


@app.post("/api/lookup/response-analysis")
async def response_analysis(req: ResponseAnalysisRequest | None = None) -> JSONResponse:
    """Suggest follow-up lookups for an assistant reply."""
    text = req.response if req else None
    if not text:
        raise HTTPException(status_code=400, detail="Response is required")
    return JSONResponse(analyze_response(text, req.user_query).to_payload())


@app.post("/api/lookup/ai-definition")
async def ai_definition(req: DefinitionRequest | None = None) -> JSONResponse:
    """Ask the LLM to define a term, optionally within some context."""
    term = req.term if req else None
    if not term or not term.strip():
        raise HTTPException(status_code=400, detail="Term is required")

    _ensure_configured()
    assert _analyzer is not None
    if not _analyzer.available:
        raise HTTPException(
            status_code=503,
            detail="AI definitions unavailable. Set OPENAI_API_KEY to enable them.",
        )
    try:
        result = await _analyzer.define(term, req.context if req else "")
    except LLMError as exc:
        logger.error("AI definition error: %s", exc)
        http_exc = _provider_http_error(
            exc,
            quota_message="Lookup API quota exceeded. Please check your OpenAI billing settings.",
            key_message="Invalid API key. Please check your OPENAI_API_KEY.",
        )
        raise (http_exc or HTTPException(status_code=502, detail=f"LLM Error: {exc}")) from exc
    return JSONResponse(result.to_payload())


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

CHAT_HISTORY_LIMIT = 10
CHAT_MAX_TOKENS = 1000
CHAT_TEMPERATURE = 0.7

_CHAT_SYSTEM_PROMPT = """\
You are DocsBuddy, an AI documentation assistant. You help users create, improve, \
and maintain technical documentation. You are knowledgeable about:

- API documentation and OpenAPI/Swagger specifications
- User guides and tutorials
- README files and project documentation
- Technical writing best practices
- Documentation tools and formats (Markdown, reStructuredText, etc.)
- Code documentation and inline comments
- Documentation site generators (GitBook, Docusaurus, etc.)

When generating README files, always format them as clean markdown code blocks. \
Provide helpful, clear, and actionable advice for documentation tasks. \
Be concise but thorough in your responses."""


class ChatMessage(TextRequest):
    role: str = "user"
    content: str = ""


class ChatRequest(TextRequest):
    model_config = ConfigDict(populate_by_name=True)

    message: str | None = None
    conversation_history: list[ChatMessage] = Field(default_factory=list, alias="conversationHistory")


class ChatResponse(BaseModel):
    response: str


def build_chat_messages(message: str, history: list[ChatMessage]) -> list[dict[str, str]]:
    """System prompt, the most recent history, then the new user message."""
    messages = [{"role": "system", "content": _CHAT_SYSTEM_PROMPT}]
    for msg in history[-CHAT_HISTORY_LIMIT:]:
        messages.append({
            "role": "user" if msg.role == "user" else "assistant",
            "content": msg.content,
        })
    messages.append({"role": "user", "content": message})
    return messages


@app.post("/api/chat", response_model=ChatResponse)
async def chat(req: ChatRequest | None = None) -> ChatResponse:
    """Answer a documentation question with the DocsBuddy persona."""
    message = req.message if req else None
    if not message:
        raise HTTPException(status_code=400, detail="Message is required")

    _ensure_configured()
    if _llm_client is None:
        raise HTTPException(
            status_code=503, detail="LLM not configured (missing OPENAI_API_KEY)."
        )

    messages = build_chat_messages(message, req.conversation_history)
    try:
        answer = await _llm_client.chat(
            messages, max_tokens=CHAT_MAX_TOKENS, temperature=CHAT_TEMPERATURE
        )
    except LLMError as exc:
        logger.error("Chat LLM error: %s", exc)
        http_exc = _provider_http_error(
            exc,
            quota_message="API quota exceeded. Please check your OpenAI billing settings.",
            key_message="Invalid API key. Please check your OpenAI API key.",
        )
        raise (http_exc or HTTPException(
            status_code=500,
            detail="An error occurred while processing your request. Please try again.",
        )) from exc
    return ChatResponse(response=answer)


# ---------------------------------------------------------------------------
# Server launcher
# ---------------------------------------------------------------------------

def start_server(
    settings: Settings,
    host: str = "127.0.0.1",
    port: int = 8000,
    llm_client: LLMClient | None = None,
) -> None:
    """Configure services and run the app under uvicorn."""
    import uvicorn

    configure(settings, llm_client=llm_client)
    uvicorn.run(app, host=host, port=port)
