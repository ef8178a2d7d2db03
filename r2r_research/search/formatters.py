"""Render search responses and collections as text, JSON or Markdown."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.models.collection import Collection
from ..core.models.search import SearchResponse, SearchResult


def _fmt_score(score: float | None) -> str:
    return f"{score:.3f}" if score is not None else "n/a"


def _result_collections(response: SearchResponse, result: SearchResult) -> list[str]:
    return [response.collection_name_for(cid) for cid in result.collection_ids]


# ----------------------------------------------------------------------
# Search results
# ----------------------------------------------------------------------
def search_to_dict(response: SearchResponse) -> dict[str, Any]:
    return {
        "query": response.query,
        "collections": response.collection_names,
        "fallback_used": response.fallback_used,
        "results": [
            {
                "id": res.id,
                "document_id": res.document_id,
                "collection_ids": res.collection_ids,
                "score": res.score,
                "text": res.text,
                "metadata": res.metadata,
            }
            for res in response.results
        ],
        "hints": response.hints,
    }


def render_json(response: SearchResponse) -> str:
    return json.dumps(search_to_dict(response), indent=2, ensure_ascii=False)


def render_markdown(response: SearchResponse) -> str:
    lines = [f"## Search: {response.query}", ""]
    if response.collections:
        lines.append(f"Collections: {', '.join(response.collection_names)}")
        lines.append("")
    if response.fallback_used:
        lines.append("_Few matches in the requested collections; universal collections were added._")
        lines.append("")

    if not response.results:
        lines.append("No results found.")
        lines.append("")

    for idx, res in enumerate(response.results, start=1):
        lines.append(f"### {idx}. {res.title}")
        meta = [f"score: {_fmt_score(res.score)}"]
        names = _result_collections(response, res)
        if names:
            meta.append(f"collections: {', '.join(names)}")
        lines.append(f"*{' | '.join(meta)}*")
        lines.append("")
        lines.append(res.text)
        lines.append("")

    for hint in response.hints:
        lines.append(f"> {hint}")
    return "\n".join(lines).rstrip() + "\n"


def render_text(response: SearchResponse, console: Console) -> None:
    if response.collections:
        console.print(f"[dim]Collections:[/dim] {escape(', '.join(response.collection_names))}")
    if response.fallback_used:
        console.print("[dim]Few matches in the requested collections; universal collections were added.[/dim]")

    if not response.results:
        console.print("[yellow]No results found[/yellow]")
    for idx, res in enumerate(response.results, start=1):
        console.print(
            f"\n[bold]{idx}. {escape(res.title)}[/bold] "
            f"[dim](score {_fmt_score(res.score)})[/dim]"
        )
        console.print(escape(res.text), highlight=False)

    for hint in response.hints:
        console.print(f"[yellow]Hint:[/yellow] {escape(hint)}")


# ----------------------------------------------------------------------
# Collections
# ----------------------------------------------------------------------
def collection_to_dict(collection: Collection) -> dict[str, Any]:
    return collection.model_dump(mode="json")


def render_collections_json(collections: list[Collection]) -> str:
    return json.dumps(
        {"collections": [collection_to_dict(c) for c in collections]},
        indent=2,
        ensure_ascii=False,
    )


def render_collections_markdown(collections: list[Collection]) -> str:
    lines = [
        "| Name | Tier | Documents | Description |",
        "| --- | --- | ---: | --- |",
    ]
    for c in collections:
        description = (c.description or "").replace("|", "\\|").replace("\n", " ")
        lines.append(f"| {c.name} | {c.tier.value if c.tier else '-'} | {c.document_count} | {description} |")
    return "\n".join(lines) + "\n"


def render_collections_text(collections: list[Collection], console: Console) -> None:
    if not collections:
        console.print("[yellow]No collections found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Name")
    table.add_column("Tier", style="dim")
    table.add_column("Docs", justify="right")
    table.add_column("Description")

    for c in collections:
        description = c.description or ""
        description = description[:60] + "..." if len(description) > 60 else description
        table.add_row(
            escape(c.name),
            c.tier.value if c.tier else "-",
            str(c.document_count),
            escape(description),
        )

    console.print(table)


def render_collection_json(collection: Collection) -> str:
    return json.dumps(collection_to_dict(collection), indent=2, ensure_ascii=False)


def render_collection_markdown(collection: Collection) -> str:
    lines = [
        f"## {collection.name}",
        "",
        f"- id: `{collection.id}`",
        f"- tier: {collection.tier.value if collection.tier else '-'}",
        f"- documents: {collection.document_count}",
    ]
    if collection.created_at:
        lines.append(f"- created: {collection.created_at.isoformat()}")
    if collection.updated_at:
        lines.append(f"- updated: {collection.updated_at.isoformat()}")
    if collection.description:
        lines.extend(["", collection.description])
    return "\n".join(lines) + "\n"


def render_collection_text(collection: Collection, console: Console) -> None:
    table = Table(show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Name", escape(collection.name))
    table.add_row("ID", collection.id)
    table.add_row("Tier", collection.tier.value if collection.tier else "-")
    table.add_row("Documents", str(collection.document_count))
    if collection.created_at:
        table.add_row("Created", str(collection.created_at))
    if collection.updated_at:
        table.add_row("Updated", str(collection.updated_at))
    if collection.description:
        table.add_row("Description", escape(collection.description))

    console.print(table)
