"""CLI for copay-autofill: extract / detect / fetch / status / reset."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from copay_autofill.core.config import AppSettings, ObservabilityConfig
from copay_autofill.core.logging_config import setup_logging
from copay_autofill.core.startup_checks import validate_settings
from copay_autofill.documents.pdf_text import decode_pdf_text, is_pdf_bytes
from copay_autofill.documents.source import DocumentTextSource
from copay_autofill.exceptions import CopayError, DocumentFetchError
from copay_autofill.extraction.pipeline import ExtractionPipeline
from copay_autofill.insurers.detector import detect_insurer
from copay_autofill.models import ExtractionResult
from copay_autofill.persistence import create_backend
from copay_autofill.workflow.store import WorkflowStateStore

app = typer.Typer(name="copay-autofill", help="Eligibility PDF copay extraction and workflow tools")
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    settings = AppSettings()
    level = "DEBUG" if verbose else settings.observability.log_level
    setup_logging(ObservabilityConfig(log_level=level))
    try:
        validate_settings(settings)
    except ValueError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(code=2) from e


def _read_document(path: Path) -> str:
    """PDF files are decoded with pypdf; anything else is read as UTF-8 text."""
    data = path.read_bytes()
    if is_pdf_bytes(data):
        return decode_pdf_text(data)
    return data.decode("utf-8", errors="replace")


def _render_result(result: ExtractionResult, show_candidates: bool) -> None:
    table = Table(title=f"Cost share ({result.insurer})")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Primary copay", f"${result.primary_copay}" if result.primary_copay else "-")
    table.add_row(
        "Primary coinsurance",
        f"{result.primary_coinsurance}%" if result.primary_coinsurance else "-",
    )
    table.add_row("Urgent copay", f"${result.urgent_copay}" if result.urgent_copay else "-")
    table.add_row(
        "Urgent coinsurance",
        f"{result.urgent_coinsurance}%" if result.urgent_coinsurance else "-",
    )
    if result.used_default_fallback:
        table.add_row("Rule set", "default (fallback)")
    console.print(table)

    if show_candidates:
        cands = Table(title=f"Candidates ({len(result.candidates)})")
        cands.add_column("Service")
        cands.add_column("Details")
        cands.add_column("Amount", justify="right")
        for c in result.candidates:
            cands.add_row(c.service, c.details, c.display_amount())
        console.print(cands)


@app.command()
def extract(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="PDF or text file"),
    candidates: bool = typer.Option(False, "--candidates", help="List every matched line"),
) -> None:
    """Extract primary and urgent care cost share from an eligibility document."""
    settings = AppSettings()
    try:
        text = _read_document(file)
    except CopayError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from e
    result = ExtractionPipeline(settings.extraction).extract(text)
    _render_result(result, candidates)


@app.command()
def detect(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="PDF or text file"),
) -> None:
    """Print the insurer rule set a document would be parsed with."""
    try:
        text = _read_document(file)
    except CopayError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from e
    console.print(detect_insurer(text).name)


@app.command()
def fetch(
    url: str = typer.Argument(..., help="Eligibility PDF URL"),
    candidates: bool = typer.Option(False, "--candidates"),
) -> None:
    """Download an eligibility PDF (with retries) and extract it."""
    settings = AppSettings()

    async def _run() -> str:
        async with DocumentTextSource(settings.fetch) as source:
            return await source.fetch_and_extract_text(url)

    try:
        text = asyncio.run(_run())
    except DocumentFetchError as e:
        console.print(f"[red]Fetch failed:[/red] {e}")
        raise typer.Exit(code=1) from e
    _render_result(ExtractionPipeline(settings.extraction).extract(text), candidates)


def _store(settings: AppSettings) -> WorkflowStateStore:
    return WorkflowStateStore(
        create_backend(settings.persistence), namespace=settings.persistence.namespace
    )


@app.command()
def status() -> None:
    """Show the persisted workflow context."""
    settings = AppSettings()
    try:
        ctx = _store(settings).load()
    except CopayError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1) from e

    if ctx.is_idle:
        console.print("No workflow in progress")
        return

    table = Table(title=f"Workflow {ctx.workflow_id}")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("Step", ctx.current_step.value)
    table.add_row("Retry count", str(ctx.retry_count))
    table.add_row("Insurance level", ctx.insurance_level.value)
    table.add_row("Guarantor balance", ctx.guarantor_balance or "-")
    table.add_row("Next appointment", ctx.next_appointment_summary)
    if ctx.extraction_result is not None:
        table.add_row("Extraction", ctx.extraction_result.summary())
    console.print(table)


@app.command()
def reset() -> None:
    """Clear the persisted workflow context."""
    settings = AppSettings()
    _store(settings).clear()
    console.print("[green]Workflow state cleared[/green]")


if __name__ == "__main__":
    app()
