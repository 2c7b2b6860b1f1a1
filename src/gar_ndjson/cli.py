"""Command-line interface for gar-ndjson."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from gar_ndjson.converter import ConversionOptions, Converter, FileReport, collect_xml_files
from gar_ndjson.errors import GarError, MatchMode
from gar_ndjson.tokens import DEFAULT_CHUNK_SIZE

# stdout carries the records, so everything for humans goes to stderr.
error_console = Console(stderr=True)


def _configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING

    handler = RichHandler(console=error_console, show_path=False, markup=False)
    root = logging.getLogger("gar_ndjson")
    root.handlers[:] = [handler]
    root.setLevel(level)


@click.command()
@click.argument("xml_path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--schema-dir",
    "-s",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default="gar_schemas",
    envvar="GAR_SCHEMA_DIR",
    show_default=True,
    help="Directory with GAR XSD schemas.",
)
@click.option(
    "--element",
    "-e",
    default=None,
    help="Element to stream (defaults to the first child of the root).",
)
@click.option(
    "--expected-count",
    type=click.IntRange(min=0),
    default=None,
    help="Expected number of records per file; disables the counting pass.",
)
@click.option(
    "--count/--no-count",
    "verify_count",
    default=True,
    show_default=True,
    help="Count records in a first pass and warn when fewer are written.",
)
@click.option(
    "--match",
    "match_mode",
    type=click.Choice([m.value for m in MatchMode], case_sensitive=False),
    default=MatchMode.PREFIX.value,
    show_default=True,
    help="Match files to schemas by file-name prefix or by root element.",
)
@click.option(
    "--warn-log",
    type=click.Path(dir_okay=False, path_type=Path),
    default="validation.log",
    envvar="GAR_WARN_LOG",
    show_default=True,
    help="File to append validation warnings to.",
)
@click.option(
    "--chunk-size",
    type=click.IntRange(min=1),
    default=DEFAULT_CHUNK_SIZE,
    show_default=True,
    help="Bytes read from the XML file per parser call.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug details.")
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Only log warnings and errors; no summary.",
)
def main(
    xml_path: Path,
    schema_dir: Path,
    element: str | None,
    expected_count: int | None,
    verify_count: bool,
    match_mode: str,
    warn_log: Path,
    chunk_size: int,
    verbose: bool,
    quiet: bool,
) -> None:
    """Convert GAR/FIAS XML files to newline-delimited JSON.

    XML_PATH can be a single file or a directory of *.xml files.
    Records are written to stdout; diagnostics go to stderr.
    """
    _configure_logging(verbose, quiet)
    options = ConversionOptions(
        schema_dir=schema_dir,
        element=element,
        expected_count=expected_count,
        verify_count=verify_count,
        match_mode=MatchMode(match_mode.lower()),
        chunk_size=chunk_size,
        warn_log=warn_log,
    )

    reports: list[FileReport] = []
    try:
        converter = Converter.from_options(options)
        files = collect_xml_files(xml_path)
        for file_path in files:
            reports.append(converter.convert_file(file_path, sys.stdout))
    except (GarError, OSError) as exc:
        error_console.print(f"[red]Error:[/red] {escape(str(exc))}", highlight=False)
        sys.exit(1)

    if not quiet:
        _output_summary(reports)


def _output_summary(reports: list[FileReport]) -> None:
    """Print a per-file summary table to stderr."""
    if not reports:
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("File")
    table.add_column("Schema", style="dim")
    table.add_column("Element")
    table.add_column("Expected", justify="right")
    table.add_column("Processed", justify="right")
    table.add_column("Skipped", justify="right")

    for report in reports:
        result = report.result
        expected = "-" if result.expected_count is None else str(result.expected_count)
        processed = str(result.processed_count)
        if result.count_mismatch:
            processed = f"[yellow]{processed}[/yellow]"
        skipped = str(result.skipped_count)
        if result.skipped:
            skipped = f"[red]{skipped}[/red]"
        table.add_row(
            escape(report.path.name),
            escape(report.schema.path.name),
            result.element or "-",
            expected,
            processed,
            skipped,
        )

    error_console.print(table)

    total = sum(r.result.processed_count for r in reports)
    flagged = sum(1 for r in reports if r.has_warnings)
    error_console.print(f"[bold]Summary:[/bold] {total} records from {len(reports)} files", end="")
    if flagged:
        error_console.print(f", [yellow]{flagged} with warnings[/yellow]")
    else:
        error_console.print()


if __name__ == "__main__":
    main()
