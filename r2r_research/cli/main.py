"""CLI interface for r2r-research using Typer."""

import asyncio
from typing import Annotated, Any, Awaitable, Callable, TypeVar

import typer
from rich.console import Console
from rich.markup import escape

from ..core.config.loader import load_settings
from ..core.errors import ResearchError
from ..core.models.enums import OutputFormat, Tier
from ..core.models.settings import ResearchSettings
from ..integrations.r2r_client import R2RClient
from ..observability.logger import get_logger, setup_logging
from ..search import formatters
from ..search.service import ResearchService

logger = get_logger(__name__)
console = Console()
err_console = Console(stderr=True)

T = TypeVar("T")

app = typer.Typer(
    name="r2r-research",
    help="Hybrid semantic/keyword search over tiered R2R documentation collections",
    add_completion=False,
    no_args_is_help=True,
)


def _get_settings(ctx: typer.Context) -> ResearchSettings:
    """Load settings with CLI overrides and apply logging config."""
    try:
        settings = load_settings(overrides=ctx.obj or {})
    except ResearchError as e:
        err_console.print(f"[red]! Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    setup_logging(
        log_level=settings.logging.level,
        log_format=settings.logging.format,
        log_file=settings.logging.file,
    )
    return settings


def _get_client(settings: ResearchSettings) -> R2RClient:
    """Create the backend client from settings."""
    return R2RClient.from_settings(settings)


def _run(settings: ResearchSettings, action: Callable[[ResearchService], Awaitable[T]]) -> T:
    """Run one async action against a fresh client, mapping errors to exit code 1."""

    async def runner() -> T:
        async with _get_client(settings) as client:
            return await action(ResearchService(client, settings))

    try:
        return asyncio.run(runner())
    except ResearchError as e:
        logger.debug("command_failed", **e.to_dict())
        err_console.print(f"[red]! Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Annotated[
        str | None,
        typer.Option("--base-url", help="R2R endpoint (env: R2R_RESEARCH_BASE_URL)"),
    ] = None,
    api_key: Annotated[
        str | None,
        typer.Option("--api-key", help="Bearer token (env: R2R_RESEARCH_API_KEY)"),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="DEBUG, INFO, WARNING, ERROR (logs go to stderr)"),
    ] = None,
):
    """Search tiered documentation collections (universal, tech-stack, project)."""
    overrides: dict[str, Any] = {
        "base_url": base_url,
        "api_key": api_key,
        "logging.level": log_level,
    }
    ctx.obj = {key: value for key, value in overrides.items() if value is not None}


@app.command()
def search(
    ctx: typer.Context,
    query: Annotated[str, typer.Argument(help="Search query text")],
    collection: Annotated[
        list[str] | None,
        typer.Option(
            "--collection",
            "-c",
            help="Collection name or id to search (repeatable). Searches all collections if omitted.",
        ),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option(
            "--limit",
            "-n",
            min=1,
            max=1000,
            help="Maximum number of results (env: R2R_RESEARCH_DEFAULT_LIMIT, default 10)",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", case_sensitive=False, help="Output format"),
    ] = OutputFormat.TEXT,
    fallback: Annotated[
        bool | None,
        typer.Option(
            "--fallback/--no-fallback",
            help="Add universal collections when the requested ones return few results",
        ),
    ] = None,
):
    """Hybrid semantic/keyword search."""
    if not query.strip():
        raise typer.BadParameter("query must not be empty", param_hint="QUERY")
    if collection and any(not ref.strip() for ref in collection):
        raise typer.BadParameter("collection names must not be blank", param_hint="--collection")

    settings = _get_settings(ctx)
    response = _run(
        settings,
        lambda service: service.search(
            query,
            collections=collection or [],
            limit=limit,
            fallback=fallback,
        ),
    )

    if output_format == OutputFormat.JSON:
        typer.echo(formatters.render_json(response))
    elif output_format == OutputFormat.MARKDOWN:
        typer.echo(formatters.render_markdown(response), nl=False)
    else:
        console.print(f"\n[bold blue]Results for:[/bold blue] {escape(query)}")
        formatters.render_text(response, console)


@app.command()
def collections(
    ctx: typer.Context,
    tier: Annotated[
        Tier | None,
        typer.Option("--tier", "-t", case_sensitive=False, help="Only show collections in this tier"),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", case_sensitive=False, help="Output format"),
    ] = OutputFormat.TEXT,
):
    """List available collections, grouped by tier."""
    settings = _get_settings(ctx)
    found = _run(settings, lambda service: service.list_collections(tier))

    if output_format == OutputFormat.JSON:
        typer.echo(formatters.render_collections_json(found))
    elif output_format == OutputFormat.MARKDOWN:
        typer.echo(formatters.render_collections_markdown(found), nl=False)
    else:
        formatters.render_collections_text(found, console)


@app.command()
def info(
    ctx: typer.Context,
    collection_id: Annotated[str, typer.Argument(help="Collection id or name")],
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", case_sensitive=False, help="Output format"),
    ] = OutputFormat.TEXT,
):
    """Show details for one collection."""
    settings = _get_settings(ctx)
    collection = _run(settings, lambda service: service.describe(collection_id))

    if output_format == OutputFormat.JSON:
        typer.echo(formatters.render_collection_json(collection))
    elif output_format == OutputFormat.MARKDOWN:
        typer.echo(formatters.render_collection_markdown(collection), nl=False)
    else:
        formatters.render_collection_text(collection, console)


@app.command()
def health(ctx: typer.Context):
    """Check that the R2R backend is reachable."""
    settings = _get_settings(ctx)
    status = _run(settings, lambda service: service.client.health())
    message = status.get("message", "ok")
    console.print(f"[green]> R2R reachable at[/green] {settings.base_url}: {message}")


if __name__ == "__main__":
    app()
