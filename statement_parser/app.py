#!/usr/bin/env python3
"""
CLI interface for the statement parser.
"""
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .core.detectors import SourceDetector
from .core.loader import dump_fixture, load_pdf, load_statement
from .core.money import format_cents
from .core.runner import SOURCES, build_report, parse_statement
from .core.tags import parse_description_and_tags
from .models.schema import ParseReport

app = typer.Typer(help="Parse bank and card statements into transactions")
console = Console()


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _print_summary(report: ParseReport):
    table = Table(title=f"Results for {report.file}")
    table.add_column("Source")
    table.add_column("Statements", justify="right")
    table.add_column("Transactions", justify="right")
    table.add_column("Net amount", justify="right")
    table.add_column("Errors", justify="right")

    for source in report.sources:
        net = sum(t.amount for t in source.transactions)
        table.add_row(
            source.source,
            str(len(source.metadata)),
            str(len(source.transactions)),
            format_cents(net),
            f"[red]{len(source.errors)}[/red]" if source.errors else "0",
        )
    console.print(table)

    for source in report.sources:
        for error in source.errors:
            page = f" (page {error.page_number})" if error.page_number is not None else ""
            console.print(f"[yellow]{source.source}: {error.kind}: {error.message}{page}[/yellow]")


@app.command()
def parse(
    path: Path = typer.Argument(..., help="Path to PDF or fixture JSON file"),
    output: Optional[Path] = typer.Option(None, "--out", "-o", help="Output JSON file path"),
    source: Optional[str] = typer.Option(None, "--source", "-s", help=f"Source to use: {', '.join(SOURCES)}"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Parse a statement into transactions, metadata and errors."""
    _configure_logging(verbose)

    if not path.exists():
        console.print(f"[red]Error: file not found: {path}[/red]")
        raise typer.Exit(1)

    if source is not None and source not in SOURCES:
        console.print(f"[red]Error: unknown source {source}. Available: {', '.join(SOURCES)}[/red]")
        raise typer.Exit(1)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Loading statement...", total=None)
            statement = load_statement(path)

            progress.update(task, description="Extracting data...")
            results = parse_statement(statement, [source] if source else None)
            report = build_report(path, results)

    except (OSError, ValueError) as e:
        console.print(f"[red]Error parsing {path}: {e}[/red]")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)

    if output:
        output.write_text(report.model_dump_json(indent=2))
        console.print(f"[green]✓ Output written to: {output}[/green]")
    else:
        console.print_json(report.model_dump_json())

    _print_summary(report)

    if any(source_report.errors for source_report in report.sources):
        raise typer.Exit(2)


@app.command()
def detect(
    path: Path = typer.Argument(..., help="Path to PDF or fixture JSON file")
):
    """Detect which source a statement comes from."""
    try:
        statement = load_statement(path)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading {path}: {e}[/red]")
        raise typer.Exit(1)

    detector = SourceDetector()
    template_id = detector.detect_template(statement)
    if template_id is None:
        console.print("[red]No matching source found[/red]")
        raise typer.Exit(1)

    template = detector.get_template(template_id)
    console.print(f"[green]Detected source: {template.get('source')}[/green] ({template.get('bank')}, template {template_id})")


@app.command()
def fixture(
    pdf_path: Path = typer.Argument(..., help="Path to PDF file"),
    output: Path = typer.Argument(..., help="Fixture JSON file to write")
):
    """Extract the positioned text of a PDF into a fixture file."""
    try:
        statement = load_pdf(pdf_path)
        dump_fixture(statement, output)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error extracting fixture: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ Wrote {len(statement.pages)} pages to: {output}[/green]")


@app.command()
def validate(
    json_path: Path = typer.Argument(..., help="Path to results JSON file to validate")
):
    """Validate a results JSON file against the schema."""
    try:
        report = ParseReport.model_validate_json(json_path.read_text())
    except (OSError, ValidationError) as e:
        console.print(f"[red]Validation failed: {e}[/red]")
        raise typer.Exit(1)

    console.print("[green]✓ JSON is valid[/green]")
    console.print(f"File: {report.file}")
    for source in report.sources:
        console.print(f"{source.source}: {len(source.transactions)} transactions, {len(source.errors)} errors")


@app.command()
def tags(
    text: str = typer.Argument(..., help="Description with inline #tags")
):
    """Split a description into its text and tags."""
    result = parse_description_and_tags(text)
    console.print(f"Description: {result.description!r}")
    for tagged in result.tagged:
        year = f" ({tagged.year})" if tagged.year is not None else ""
        console.print(f"  #{tagged.name}{year}")


if __name__ == "__main__":
    app()
