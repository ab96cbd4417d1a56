"""
CLI Interface
=============
Command-line interface for the lab report extractor.

Usage:
    python -m labparser parse <pdf_path> [options]
    python -m labparser info <pdf_path>
    python -m labparser serve [options]
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from . import __version__
from .config import Settings, setup_logging
from .engine import LabReportExtractor
from .models import ParseResponse
from .rasterizer import ConversionError, PyMuPDFRasterizer
from .validator import UploadValidationError, validate_upload
from .vision import VisionClient

console = Console()

STATUS_STYLES = {
    "normal": "[green]normal[/]",
    "high": "[red]high[/]",
    "low": "[yellow]low[/]",
}


@click.group()
@click.version_option(version=__version__, prog_name="labparser")
def cli():
    """Lab Report Parser — extract lab test results from PDF reports."""
    pass


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output", "-o",
    default=None,
    help="Write the JSON response to this file",
)
@click.option(
    "--model", "-m",
    default=None,
    help="Vision model name (defaults to OPENAI_MODEL or gpt-4o)",
)
@click.option(
    "--dpi",
    default=None,
    type=int,
    help="Render resolution for page images",
)
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Logging level",
)
@click.option(
    "--json-output",
    is_flag=True,
    default=False,
    help="Output only JSON result to stdout (for programmatic use)",
)
def parse(
    pdf_path: str,
    output: str,
    model: str,
    dpi: int,
    log_level: str,
    json_output: bool,
):
    """Extract lab results from a local PDF file."""

    if json_output:
        log_level = "ERROR"

    settings = Settings.from_env()
    if model:
        settings.openai_model = model
    if dpi:
        settings.render_dpi = dpi
    setup_logging(log_level, settings.log_file)

    if not json_output:
        console.print()
        console.print(
            Panel.fit(
                f"[bold cyan]Lab Report Parser v{__version__}[/]\n"
                f"[dim]Parsing: {os.path.basename(pdf_path)}[/]",
                border_style="cyan",
            )
        )
        console.print()

    pdf_bytes = Path(pdf_path).read_bytes()

    try:
        extractor = LabReportExtractor(
            rasterizer=PyMuPDFRasterizer(dpi=settings.render_dpi),
            vision=VisionClient.from_settings(settings),
        )

        if not json_output:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=console,
            ) as progress:
                task = progress.add_task("Reading pages...", total=None)

                def on_page(current: int, total: int):
                    progress.update(
                        task,
                        total=total,
                        completed=current,
                        description=f"Page {current}/{total}",
                    )

                result = extractor.extract(pdf_bytes, progress_callback=on_page)
        else:
            result = extractor.extract(pdf_bytes)

    except (UploadValidationError, ConversionError) as e:
        console.print(f"[red]Error:[/] {e.error}")
        for key, val in e.details.items():
            console.print(f"  [dim]{key}:[/] {val}")
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Unexpected error:[/] {e}")
        if log_level == "DEBUG":
            console.print_exception()
        sys.exit(1)

    payload = ParseResponse.from_result(result).model_dump(mode="json")

    if output:
        Path(output).parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)

    if json_output:
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    _display_results(result)
    if output:
        console.print(f"[dim]Saved JSON to {output}[/]")
        console.print()


@cli.command()
@click.argument("pdf_path", type=click.Path(exists=True, dir_okay=False))
def info(pdf_path: str):
    """Display PDF file information and upload checks."""

    import fitz

    data = Path(pdf_path).read_bytes()

    table = Table(title="PDF Information", border_style="cyan")
    table.add_column("Property", style="bold")
    table.add_column("Value")

    table.add_row("File", os.path.basename(pdf_path))
    table.add_row("File Size", f"{len(data) / 1024:.1f} KB")

    try:
        validate_upload(data)
        table.add_row("Upload Check", "[green]✓ accepted[/]")
    except UploadValidationError as e:
        table.add_row("Upload Check", f"[red]✗ {e.error}[/]")

    try:
        with fitz.open(pdf_path) as doc:
            table.add_row("Pages", str(doc.page_count))
            metadata = doc.metadata or {}
            for key in ["title", "author", "creator", "producer"]:
                val = metadata.get(key, "")
                if val:
                    table.add_row(key.title(), val)
    except RuntimeError as e:
        table.add_row("Pages", f"[red]unreadable ({e})[/]")

    console.print()
    console.print(table)
    console.print()


@cli.command()
@click.option("--host", default=None, help="Server host (default: HOST or 0.0.0.0)")
@click.option("--port", default=None, type=int, help="Server port (default: PORT or 4000)")
@click.option("--debug", is_flag=True, default=False, help="Debug mode")
def serve(host: str, port: int, debug: bool):
    """Start the HTTP microservice."""
    from .server import run_server

    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Lab Report Parser Service[/]\n"
            "[dim]POST /api/parse-pdf[/]",
            border_style="cyan",
        )
    )
    console.print()

    run_server(host=host, port=port, debug=debug)


# ─── Display Helpers ──────────────────────────────────────────────────────────


def _display_results(result):
    """Display extracted records in a formatted table."""
    table = Table(title="Lab Results", border_style="cyan")
    table.add_column("Test", style="bold")
    table.add_column("Category")
    table.add_column("Result", justify="right")
    table.add_column("Reference", justify="center")
    table.add_column("Status", justify="center")
    table.add_column("Date")

    for record in result.records:
        status = record.status.value if record.status else ""
        reference = f"{record.reference_min} – {record.reference_max}".strip(" –")
        table.add_row(
            record.test,
            record.category,
            record.result,
            reference,
            STATUS_STYLES.get(status, "[dim]-[/]"),
            record.test_date.isoformat() if record.test_date else "",
        )

    console.print(table)
    console.print()
    console.print(
        f"[dim]Pages: {result.page_count} | "
        f"Failed pages: {result.pages_failed} | "
        f"Results: {result.total_results} | "
        f"Size: {result.file_size} bytes[/]"
    )
    console.print()


# ─── Entry point (for python -m labparser.cli) ────────────────────────────────


if __name__ == "__main__":
    cli()
