"""CLI interface: thin wrapper over TubeScoutService and the FastMCP server."""

import json
import logging

import typer

from tubescout.config import settings
from tubescout.models import ExtractionOptions
from tubescout.service import (
    ConfigurationError,
    InvalidRequestError,
    MetadataUnavailableError,
    TubeScoutService,
)
from tubescout.ingestion.data_api import DataApiError
from tubescout.storage.sqlite import SQLiteAnalysisRepository


app = typer.Typer(
    name="tubescout",
    help="Extract YouTube metadata, statistics and transcripts for competitor research.",
    no_args_is_help=True,
)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")) -> None:
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _get_service() -> TubeScoutService:
    """Create a service instance with default dependencies."""
    settings.ensure_dirs()
    return TubeScoutService(repository=SQLiteAnalysisRepository())


def _echo_json(data) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _options(title: bool, description: bool, thumbnail: bool, transcript: bool, metadata: bool) -> ExtractionOptions:
    return ExtractionOptions(
        title=title,
        description=description,
        thumbnail=thumbnail,
        transcript=transcript,
        metadata=metadata,
    )


@app.command()
def video(
    url: str = typer.Argument(..., help="YouTube video URL."),
    title: bool = typer.Option(True, "--title/--no-title"),
    description: bool = typer.Option(True, "--description/--no-description"),
    thumbnail: bool = typer.Option(True, "--thumbnail/--no-thumbnail"),
    transcript: bool = typer.Option(True, "--transcript/--no-transcript"),
    metadata: bool = typer.Option(True, "--metadata/--no-metadata"),
) -> None:
    """Extract metadata and transcript for one video."""
    svc = _get_service()
    try:
        result = svc.extract_video(url, _options(title, description, thumbnail, transcript, metadata))
    except (InvalidRequestError, MetadataUnavailableError) as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)
    _echo_json(result)


@app.command()
def bulk(
    urls: list[str] = typer.Argument(..., help="YouTube video URLs."),
    description: bool = typer.Option(True, "--description/--no-description"),
    thumbnail: bool = typer.Option(True, "--thumbnail/--no-thumbnail"),
    transcript: bool = typer.Option(True, "--transcript/--no-transcript"),
    metadata: bool = typer.Option(True, "--metadata/--no-metadata"),
) -> None:
    """Analyze several videos: stats, performance and publishing pattern."""
    svc = _get_service()
    results = svc.analyze_videos(urls, _options(True, description, thumbnail, transcript, metadata))
    _echo_json(results)
    failed = sum(1 for r in results if "error" in r)
    if failed:
        typer.echo(f"⚠️  {failed} of {len(results)} videos failed", err=True)


@app.command()
def channel(url: str = typer.Argument(..., help="Channel URL (/channel/UC..., /@handle).")) -> None:
    """List every long-form upload of a channel."""
    svc = _get_service()
    try:
        listing = svc.list_channel_videos(url)
    except (ConfigurationError, InvalidRequestError, DataApiError) as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)
    _echo_json({"data": [v.model_dump() for v in listing.videos], "meta": listing.meta()})
    if listing.truncated:
        typer.echo(f"⚠️  Stopped after {listing.pages_fetched} pages; list is incomplete", err=True)


@app.command()
def history(
    user: str = typer.Option(..., "--user", "-u", help="User ID owning the history."),
    type: str | None = typer.Option(None, "--type", "-t", help="Filter by analysis type."),
    show: int | None = typer.Option(None, "--show", help="Print the analysis with this ID as JSON."),
    delete: int | None = typer.Option(None, "--delete", help="Delete the analysis with this ID."),
) -> None:
    """List, show or delete saved analyses."""
    svc = _get_service()
    if show is not None:
        analysis = svc.get_analysis(user, show)
        if analysis is None:
            typer.echo(f"❌ No analysis {show} for user {user}", err=True)
            raise typer.Exit(code=1)
        _echo_json(analysis.model_dump(mode="json"))
        return

    if delete is not None:
        if not svc.delete_analysis(user, delete):
            typer.echo(f"❌ No analysis {delete} for user {user}", err=True)
            raise typer.Exit(code=1)
        typer.echo(f"🗑️  Removed analysis {delete}")
        return

    analyses = svc.list_history(user, type=type)
    if not analyses:
        typer.echo("No saved analyses.")
        return
    for a in analyses:
        typer.echo(f"  {a.id:>4}  {a.created_at:%Y-%m-%d %H:%M}  {a.type:<13s}  {a.title}")


@app.command()
def serve(
    stdio: bool = typer.Option(False, "--stdio", help="Use stdio transport instead of HTTP."),
    host: str = typer.Option(settings.host, "--host", help="Host to bind to."),
    port: int = typer.Option(settings.port, "--port", help="Port to bind to."),
) -> None:
    """Start the tubescout server (MCP tools plus /api routes over HTTP)."""
    from tubescout.server import mcp

    if stdio:
        typer.echo("Starting tubescout MCP server (stdio)...", err=True)
        mcp.run(transport="stdio")
    else:
        typer.echo(f"Starting tubescout on http://{host}:{port} (MCP at /mcp, API at /api)")
        mcp.run(transport="streamable-http", host=host, port=port)
