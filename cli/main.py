# cli/main.py
# ============================================================
# docsense — Command Line Interface
# ============================================================
# Typer-based CLI around the OCR pipeline.
#
# Usage:
#   python -m cli.main extract scan.pdf
#   python -m cli.main extract photo.jpg --source camera --output output/
#   python -m cli.main classify report.pdf
#   python -m cli.main language "Some extracted text"
# ============================================================

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config.settings import settings
from docsense.document.classifier import DocumentClassifier
from docsense.errors import DocsenseError
from docsense.language.identifier import LanguageIdentifier
from docsense.models import CompletedSubmission, Selectable, SourceKind, SubmittedDocument
from docsense.pipeline.orchestrator import PipelineOrchestrator
from docsense.pipeline.storage import InMemoryResultStore, JsonResultStore

# ============================================================
# CLI App Setup
# ============================================================

app = typer.Typer(
    name="docsense",
    help=(
        "docsense — Document OCR Pipeline\n\n"
        "Extract text, bounding boxes and language from images and PDFs.\n"
        "Selectable PDFs are read directly; scanned PDFs are rasterized and OCR'd."
    ),
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


# ============================================================
# Commands
# ============================================================

@app.command()
def extract(
    input_path: str = typer.Argument(
        ...,
        help="Path to an image or PDF file.",
    ),
    source: Optional[str] = typer.Option(
        None,
        "--source", "-s",
        help="Source kind: image | camera | pdf. Inferred from the file type if omitted.",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output", "-o",
        help="Directory for the JSON result. Defaults to printing only.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout", "-t",
        help="Abort the run after this many seconds.",
    ),
):
    """
    Extract text from an image or PDF.

    Examples:
        extract invoice.png
        extract report.pdf --output output/
        extract photo.jpg --source camera
    """
    input_file = Path(input_path)
    if not input_file.is_file():
        console.print(f"[red]Error:[/red] Input file not found: {input_path}")
        raise typer.Exit(code=1)

    try:
        kind = SourceKind(source) if source else None
    except ValueError:
        console.print(
            f"[red]Error:[/red] Unknown source '{source}'. "
            f"Available: {', '.join(k.value for k in SourceKind)}"
        )
        raise typer.Exit(code=1)

    document = SubmittedDocument.from_path(input_file, source_kind=kind)
    store = JsonResultStore(output) if output else InMemoryResultStore()

    console.print(Panel(
        f"Input:    {input_path}\n"
        f"Source:   {document.source_kind.value}\n"
        f"Primary:  {settings.ocr_primary_provider}\n"
        f"Fallback: {settings.ocr_fallback_provider}\n"
        f"Output:   {output or 'stdout'}",
        title="docsense OCR",
        border_style="blue",
    ))

    pipeline = PipelineOrchestrator(store=store)

    async def run_pipeline():
        try:
            return await pipeline.process(document, timeout=timeout)
        finally:
            await pipeline.aclose()

    try:
        completed = asyncio.run(run_pipeline())
    except (DocsenseError, asyncio.TimeoutError) as e:
        console.print(f"[red]Failed:[/red] {e.__class__.__name__}: {e}")
        raise typer.Exit(code=1)

    _print_summary(completed)
    console.print("\n[bold]Extracted Text:[/bold]\n")
    console.print(completed.result.extracted_text, markup=False)

    if completed.result.failed_pages:
        raise typer.Exit(code=1)


@app.command()
def classify(
    input_path: str = typer.Argument(..., help="Path to a PDF file."),
):
    """
    Show whether a PDF has a selectable text layer or needs OCR.
    """
    pdf_path = Path(input_path)
    if not pdf_path.is_file():
        console.print(f"[red]Error:[/red] Input file not found: {input_path}")
        raise typer.Exit(code=1)

    try:
        decision = DocumentClassifier().classify(pdf_path.read_bytes())
    except DocsenseError as e:
        console.print(f"[red]Failed:[/red] {e}")
        raise typer.Exit(code=1)

    if isinstance(decision, Selectable):
        console.print(
            f"[green]selectable[/green] — {decision.page_count} page(s), "
            f"{len(decision.text.strip())} characters of text"
        )
    else:
        console.print("[yellow]scanned[/yellow] — OCR required")


@app.command()
def language(
    text: str = typer.Argument(..., help="Text to identify."),
):
    """
    Identify the language of a piece of text.
    """
    info = LanguageIdentifier().identify(text)
    console.print(f"{info.name} ({info.code}) — confidence {info.confidence:.1f}")


# ============================================================
# Helper Functions
# ============================================================

def _print_summary(completed: CompletedSubmission) -> None:
    """Print a summary table of the finished run."""
    result = completed.result

    table = Table(title="Processing Summary", show_header=False)
    table.add_column("Property", style="bold")
    table.add_column("Value")

    table.add_row("Result ID", completed.record.id)
    table.add_row("Source", result.source_type.value)
    if result.pdf_type:
        table.add_row("PDF Type", result.pdf_type.value)
    table.add_row("Pages", str(result.page_count))
    if result.failed_pages:
        failed = ", ".join(str(i + 1) for i in result.failed_pages)
        table.add_row("Failed Pages", f"[red]{failed}[/red]")
    table.add_row("Language", f"{result.language_name} ({result.language_code})")
    table.add_row("Confidence", f"{result.confidence_score:.2f}")
    table.add_row("Boxes", str(len(result.bounding_boxes)))
    table.add_row("Characters", str(len(result.extracted_text)))
    table.add_row("Time", f"{result.processing_time_ms:.0f}ms")

    console.print(table)


# ============================================================
# Entry Point
# ============================================================

if __name__ == "__main__":
    app()
