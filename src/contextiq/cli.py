"""Command-line interface for ContextIQ."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import click
import structlog
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from contextiq import __version__
from contextiq.config import Config, MonitoringConfig
from contextiq.container import DependencyContainer
from contextiq.models import AcquisitionOutcome, AcquisitionStatus
from contextiq.normalizer import preview
from contextiq.observability.logging import configure_logging

console = Console(stderr=True)
logger = structlog.get_logger(__name__)


def _container(ctx: click.Context) -> DependencyContainer:
    return DependencyContainer(config_path=ctx.obj["config_path"])


def _report(outcome: AcquisitionOutcome, output: Optional[str], as_json: bool) -> None:
    """Print or save an outcome; exits with status 1 on failure."""
    if outcome.error is not None:
        if as_json:
            click.echo(json.dumps({"error": outcome.error.message, "kind": outcome.error.kind}))
        else:
            console.print(f"[red]❌ {outcome.error.message}[/red]")
        sys.exit(1)

    result = outcome.result
    assert result is not None

    if output:
        Path(output).write_text(result.text, encoding="utf-8")
        console.print(f"[green]Saved {len(result.text)} characters to {output}[/green]")
    elif as_json:
        click.echo(json.dumps(result.to_dict(), ensure_ascii=False))
    else:
        console.print(
            Panel(
                preview(result.text, 2000),
                title=f"{result.source_label} ({len(result.text)} characters)",
                border_style="green",
            )
        )


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", type=click.Path(exists=True), help="Configuration file path")
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], log_level: str) -> None:
    """ContextIQ - turn text, files and web pages into analysis-ready text."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config) if config else None
    ctx.obj["log_level"] = log_level

    configure_logging(MonitoringConfig(log_level=log_level))


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(), help="Write the extracted text to this file")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def extract(ctx: click.Context, file_path: str, output: Optional[str], as_json: bool) -> None:
    """Extract text from a local file (txt, md, csv, rtf, pdf, docx or an image)."""
    path = Path(file_path)

    async def read() -> bytes:
        return path.read_bytes()

    async def run() -> AcquisitionOutcome:
        async with _container(ctx).lifecycle() as container:
            pipeline = await container.get_pipeline()
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
                TimeElapsedColumn(),
                console=console,
                transient=True,
            ) as progress:
                task = progress.add_task(f"Extracting {path.name}", total=100)

                def listener(status: AcquisitionStatus, percent: Optional[float]) -> None:
                    if percent is not None:
                        progress.update(task, completed=percent)
                    elif status is not AcquisitionStatus.RUNNING:
                        progress.update(task, completed=100)

                return await pipeline.acquire_upload(path.name, path.stat().st_size, read, listener)

    _report(asyncio.run(run()), output, as_json)


@cli.command()
@click.argument("url")
@click.option("--output", "-o", type=click.Path(), help="Write the extracted text to this file")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def scrape(ctx: click.Context, url: str, output: Optional[str], as_json: bool) -> None:
    """Fetch a web page and reduce it to its main text."""

    async def run() -> AcquisitionOutcome:
        async with _container(ctx).lifecycle() as container:
            pipeline = await container.get_pipeline()
            with console.status(f"[blue]🔍 Fetching {url}[/blue]"):
                return await pipeline.acquire_url(url)

    _report(asyncio.run(run()), output, as_json)


@cli.command()
@click.option("--host", default=None, help="Host to bind (defaults to web.host)")
@click.option("--port", default=None, type=int, help="Port to bind (defaults to web.port)")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int]) -> None:
    """Start the HTTP API."""
    from contextiq.web.main import run_web_server

    container = _container(ctx)
    container.load_config()
    assert container.config is not None
    host = host or container.config.web.host
    port = port or container.config.web.port

    console.print(f"[green]🚀 Starting ContextIQ API at http://{host}:{port}[/green]")
    run_web_server(host=host, port=port, container=container)


@cli.command("validate-config")
@click.pass_context
def validate_config(ctx: click.Context) -> None:
    """Validate configuration and show the effective settings."""
    config_path: Optional[Path] = ctx.obj["config_path"]
    try:
        config = Config.from_yaml(config_path) if config_path else Config()
    except Exception as e:
        console.print(f"[red]❌ Configuration validation failed: {e}[/red]")
        sys.exit(1)

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Upload limit", f"{config.upload.max_upload_mb:g} MB")
    table.add_row("Extensions", ", ".join(config.upload.allowed_extensions))
    table.add_row("Primary service", config.fetcher.primary_service_url or "(none)")
    table.add_row("Relays", " → ".join(relay.name for relay in config.fetcher.relays))
    table.add_row("Request timeout", f"{config.fetcher.request_timeout:g}s")
    table.add_row("Analysis model", config.analysis.model)
    table.add_row("Analysis API key", "set" if config.analysis.api_key else "missing")
    console.print(table)
    console.print("[green]✅ Configuration is valid![/green]")


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
