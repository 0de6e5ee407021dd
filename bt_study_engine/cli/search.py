"""CLI commands for searching, replaying and classifying scopes."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import typer
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from bt_study_engine.adapters.translation_helps import TranslationHelpsAdapter
from bt_study_engine.core.models import (
    AggregatedSearch,
    ResourceKind,
    ResourcePreferences,
    ToolCallRecord,
)
from bt_study_engine.services.replay import ReplayResult, ToolCallReplayer
from bt_study_engine.services.scope_classifier import classify_scope
from bt_study_engine.services.tool_dispatch import ToolDispatcher

console = Console()
T = TypeVar("T")


def _run(action: Callable[[ToolDispatcher], Awaitable[T]]) -> T:
    """Run ``action`` against a dispatcher bound to the production provider."""

    async def _main() -> T:
        adapter = TranslationHelpsAdapter()
        try:
            return await action(ToolDispatcher.from_port(adapter))
        finally:
            await adapter.aclose()

    return asyncio.run(_main())


def _prefs(language: Optional[str], organization: Optional[str], resource: Optional[str]) -> ResourcePreferences:
    return ResourcePreferences().with_overrides(
        {"language": language, "organization": organization, "resource": resource}
    )


def _print_search(result: AggregatedSearch, show_markdown: bool) -> None:
    table = Table(title=f"'{result.query}' in {result.scope_raw or 'Bible'} ({result.scope_type.value})")
    table.add_column("Kind", style="cyan")
    table.add_column("Matches", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("By book")
    for kind, res in result.results.items():
        if res is None:
            table.add_row(kind.value, "[dim]-[/dim]", "[dim]-[/dim]", "")
            continue
        by_book = ""
        if res.breakdown is not None and res.breakdown.by_book:
            top = sorted(res.breakdown.by_book.items(), key=lambda item: -item[1])[:5]
            by_book = ", ".join(f"{book}: {count}" for book, count in top)
        table.add_row(kind.value, str(len(res.matches)), str(res.total_count), by_book)
    console.print(table)
    if show_markdown:
        for kind, res in result.results.items():
            if res is not None and res.combined_markdown:
                console.rule(kind.value)
                console.print(Markdown(res.combined_markdown))


def search_command(
    query: str = typer.Argument(..., help="Term or phrase to search for"),
    scope: str = typer.Option("Bible", "--scope", "-s", help="Reference, book, testament or 'Bible'"),
    kinds: Optional[list[ResourceKind]] = typer.Option(
        None, "--kind", "-k", help="Resource kind to include (repeatable)"
    ),
    language: Optional[str] = typer.Option(None, "--language", "-l"),
    organization: Optional[str] = typer.Option(None, "--organization", "-o"),
    resource: Optional[str] = typer.Option(None, "--resource", "-r", help="Scripture resource, e.g. ult or ust"),
    show_markdown: bool = typer.Option(False, "--markdown", "-m", help="Print combined markdown per kind"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw aggregated result as JSON"),
) -> None:
    """Search translation resources within a scope."""
    prefs = _prefs(language, organization, resource)
    result = _run(lambda dispatcher: dispatcher.aggregator.aggregate(query, scope, kinds, prefs))
    if result is None:
        console.print("[yellow]Search aborted.[/yellow]")
        raise typer.Exit(1)
    if as_json:
        console.print_json(result.model_dump_json(by_alias=True))
        return
    _print_search(result, show_markdown)


def _load_records(source: str) -> list[ToolCallRecord]:
    raw = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    data = json.loads(raw)
    if isinstance(data, dict):
        data = data.get("toolCalls") or data.get("tool_calls") or []
    return TypeAdapter(list[ToolCallRecord]).validate_python(data)


def _print_replay(result: ReplayResult) -> None:
    if result.is_empty():
        console.print("[dim]Nothing to replay.[/dim]")
        return
    if result.passage is not None:
        console.print(f"[bold]{result.passage.reference}[/bold] ({result.passage.translation})")
        for verse in result.passage.verses:
            console.print(f"[cyan]{verse.number}[/cyan] {verse.text}")
    if result.search is not None:
        _print_search(result.search, show_markdown=False)
    for kind, res in result.resources.items():
        console.print(f"[bold]{kind.value}[/bold]: {len(res.matches)} match(es)")


def replay_command(
    source: str = typer.Argument("-", help="JSON file of recorded tool calls, or '-' for stdin"),
    language: Optional[str] = typer.Option(None, "--language", "-l"),
    organization: Optional[str] = typer.Option(None, "--organization", "-o"),
    resource: Optional[str] = typer.Option(None, "--resource", "-r"),
    as_json: bool = typer.Option(False, "--json", help="Print the merged replay result as JSON"),
) -> None:
    """Replay recorded tool calls without consulting the LLM."""
    try:
        records = _load_records(source)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        console.print(f"[red]Error:[/red] could not read tool calls: {exc}")
        raise typer.Exit(1) from exc
    prefs = _prefs(language, organization, resource)
    result = _run(lambda dispatcher: ToolCallReplayer(dispatcher).replay(records, prefs))
    if as_json:
        console.print_json(result.model_dump_json(by_alias=True))
        return
    _print_replay(result)


def scope_command(reference: str = typer.Argument("", help="Reference to classify")) -> None:
    """Show how a reference is classified and expanded into scope tokens."""
    classification = classify_scope(reference)
    console.print(f"[bold]Scope type:[/bold] {classification.scope_type.value}")
    table = Table(title="Scope tokens")
    table.add_column("Kind", style="cyan")
    table.add_column("Value")
    for token in classification.tokens:
        table.add_row(token.kind.value, token.value)
    console.print(table)


__all__ = ["search_command", "replay_command", "scope_command"]
