"""CLI entry point for docsbuddy -- serve the API or run lookups locally."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import Settings, load_dotenv, load_settings
from .lookup.analyzer import ANALYSIS_TYPES, DEFAULT_ANALYSIS_TYPE

app = typer.Typer(
    name="docsbuddy",
    help="Documentation assistant with dictionary, Wikipedia and AI term lookup.",
    add_completion=False,
)

console = Console()


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _load_settings(log_level: str | None = None) -> Settings:
    """Read .env and the environment, then set up logging. Exits on bad config."""
    env_file = load_dotenv(Path.cwd())
    try:
        settings = load_settings(log_level=log_level, env_file=env_file)
    except ValidationError as exc:
        console.print(f"[red]Error:[/red] invalid configuration:\n{escape(str(exc))}")
        raise typer.Exit(code=1)
    logging.basicConfig(
        level=settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    return settings


def _print_record(payload: dict) -> None:
    title = payload.get("word") or payload.get("term", "")
    header = f"[bold]{title}[/bold]"
    if payload.get("pronunciation") and payload["pronunciation"] != "N/A":
        header += f"  [dim]/{payload['pronunciation']}/[/dim]"
    header += f"  [italic]{payload.get('partOfSpeech', '')}[/italic]"
    if payload.get("isFallback"):
        header += "  [yellow](fallback)[/yellow]"
    console.print(header)

    for i, definition in enumerate(payload.get("definitions", []), start=1):
        console.print(f"  {i}. {definition}")
    console.print(f"[bold]Example:[/bold] {payload.get('exampleUsage', '')}")
    if payload.get("synonyms"):
        console.print(f"[bold]Synonyms:[/bold] {', '.join(payload['synonyms'])}")
    if payload.get("relatedTerms"):
        console.print(f"[bold]Related:[/bold] {', '.join(payload['relatedTerms'])}")

    wiki = payload.get("wikipedia")
    if wiki:
        console.print(f"[bold]Wikipedia:[/bold] {wiki['title']}")
        console.print(f"  {wiki['extract']}")
        console.print(f"  [dim]{wiki['url']}[/dim]")

    if payload.get("resources"):
        table = Table(show_header=True, header_style="bold")
        table.add_column("Resource")
        table.add_column("URL")
        for res in payload["resources"]:
            table.add_row(res["title"], res["url"])
        console.print(table)

    status = payload.get("aiStatus", {}).get("status", "offline")
    colour = "green" if status == "online" else "yellow"
    console.print(f"[bold]AI:[/bold] [{colour}]{status}[/{colour}]")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address."),
    port: int = typer.Option(8000, "--port", "-p", help="Port number."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="OpenAI model ID (for chat and analysis)."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Run the chat and lookup API server."""
    settings = _load_settings(log_level)
    if model:
        settings = settings.model_copy(update={"model": model})

    from .llm import build_llm_client
    from .server import start_server

    llm_client = build_llm_client(settings)
    if llm_client is None:
        console.print(
            "[yellow]OPENAI_API_KEY not set. Chat is disabled and sentence analysis uses templates.[/yellow]"
        )

    console.print(f"[bold cyan]Serving[/bold cyan] http://{host}:{port}")
    start_server(settings, host=host, port=port, llm_client=llm_client)


@app.command()
def lookup(
    term: str = typer.Argument(..., help="Word or phrase to look up."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw lookup record as JSON."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Look up TERM in the glossary, dictionary and Wikipedia."""
    if not term.strip():
        console.print("[red]Error:[/red] Term is required.")
        raise typer.Exit(code=1)

    settings = _load_settings(log_level or "WARNING")

    from .lookup import TermLookupAggregator
    from .status import status_for_key

    aggregator = TermLookupAggregator.from_settings(settings, status_for_key(settings.openai_api_key))
    record = asyncio.run(aggregator.lookup(term))
    payload = record.to_payload()

    if as_json:
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        _print_record(payload)


@app.command()
def analyze(
    sentence: str = typer.Argument(..., help="Sentence to analyze."),
    analysis_type: str = typer.Option(
        DEFAULT_ANALYSIS_TYPE, "--type", "-t",
        help=f"Analysis type ({', '.join(ANALYSIS_TYPES)}).",
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Summarize, simplify or explain SENTENCE."""
    if analysis_type not in ANALYSIS_TYPES:
        console.print(
            f"[red]Error:[/red] Unknown analysis type [bold]{analysis_type}[/bold].\n"
            f"  Valid types: {', '.join(ANALYSIS_TYPES)}"
        )
        raise typer.Exit(code=1)

    settings = _load_settings(log_level or "WARNING")

    from .llm import build_llm_client
    from .lookup import AIAnalyzer

    result = asyncio.run(AIAnalyzer(build_llm_client(settings)).analyze(sentence, analysis_type))
    console.print(result.response)
    if result.note:
        console.print(f"[dim]{result.note}[/dim]")


@app.command()
def status() -> None:
    """Show whether AI-backed lookups are available."""
    settings = _load_settings("WARNING")

    from .status import probe

    ai = probe()
    colour = "green" if ai.online else "yellow"
    console.print(f"[bold]AI status:[/bold] [{colour}]{ai.status}[/{colour}]")
    console.print(f"[bold]OpenAI key:[/bold]  {'configured' if ai.has_openai else 'missing'}")
    console.print(f"[bold]Model:[/bold]       {settings.model}")
    console.print(f"[bold].env file:[/bold]   {settings.env_file or 'none found'}")


@app.command()
def terms(
    text: str = typer.Argument(..., help="Text to scan for lookup candidates."),
) -> None:
    """List words in TEXT that have technical lookup data."""
    from .lookup import extract_lookup_terms

    found = extract_lookup_terms(text)
    if not found:
        console.print("[dim]No technical terms found.[/dim]")
        return
    for word in found:
        console.print(f"  {word}")


@app.command()
def insights(
    reply: str = typer.Argument(..., help="Assistant reply to analyze."),
    query: str = typer.Option("", "--query", "-q", help="Question that produced the reply."),
) -> None:
    """Suggest follow-up lookups for an assistant REPLY."""
    from .lookup import analyze_response

    result = analyze_response(reply, query)
    console.print(f"[bold]Complexity:[/bold] {result.analysis.complexity}")
    if result.analysis.topics:
        console.print(f"[bold]Topics:[/bold] {', '.join(result.analysis.topics)}")
    for insight in result.insights:
        console.print(f"  [cyan]{insight.type}[/cyan] ({insight.priority}) {insight.message}")
    for suggestion in result.suggestions:
        console.print(f"  [green]{suggestion.action}[/green] {suggestion.description}")
    if not result.insights and not result.suggestions:
        console.print("[dim]Nothing to follow up on.[/dim]")


if __name__ == "__main__":
    app()
