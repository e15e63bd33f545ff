"""CLI entry point for scriptcast.

Provides commands:
  - parse: Run the ingestion pipeline over script files and show the cast
  - roles: Print the database projection (roles and conflicts) as JSON
  - lines: Extract validated dialogue lines from a table or transcript
  - detect: Show the detected content type of a file
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from scriptcast.config import ParserConfig, load_config
from scriptcast.diagnostics import Diagnostic, Severity, summarize_diagnostics
from scriptcast.exceptions import ConfigError, ScriptcastError
from scriptcast.export import convert_to_db_format
from scriptcast.extraction.text import extract_document
from scriptcast.models import ContentType, FileStatus, ParsedScriptBundle, ScriptLineInput
from scriptcast.normalizer import normalize_text, unicode_cleanup
from scriptcast.pipeline import detect_document, parse_script_files
from scriptcast.tabular.columns import auto_detect_columns
from scriptcast.tabular.dialogue import extract_dialogue_lines
from scriptcast.tabular.structured import parse_and_validate_structured_data, split_text_table
from scriptcast.validation import validate_script_lines

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="scriptcast - Extract roles, replica counts and conflicts from dubbing scripts",
    rich_markup_mode="rich",
)
console = Console()

_SEVERITY_STYLE = {Severity.ERROR: "red", Severity.WARNING: "yellow", Severity.INFO: "dim"}
PREVIEW_TEXT_LENGTH = 60

FilesArgument = Annotated[
    list[Path],
    typer.Argument(help="Script files (TXT, PDF, DOCX, XLSX)", exists=True, dir_okay=False),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to scriptcast config JSON"),
]


def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _load(config_path: Path | None) -> ParserConfig:
    try:
        return load_config(config_path)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


def _print_json(data: Any) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2))


def _print_diagnostics(diagnostics: list[Diagnostic]) -> None:
    if not diagnostics:
        return
    console.print(f"\n[bold]Diagnostics:[/bold] {summarize_diagnostics(diagnostics)}")
    for diagnostic in diagnostics:
        style = _SEVERITY_STYLE[diagnostic.severity]
        console.print(f"  [{style}]{escape(diagnostic.format())}[/{style}]")


def _print_bundle(bundle: ParsedScriptBundle) -> None:
    files_table = Table(title="Files")
    files_table.add_column("File", style="bold")
    files_table.add_column("Size", justify="right")
    files_table.add_column("Type")
    files_table.add_column("Status")
    for outcome in bundle.files:
        if outcome.status is FileStatus.SUCCESS:
            status_text = "[green]ok[/green]"
        else:
            status_text = f"[red]{escape(outcome.error or '')}[/red]"
        content_type = outcome.content_type.value if outcome.content_type else "-"
        files_table.add_row(outcome.name, outcome.size, content_type, status_text)
    console.print(files_table)

    result = bundle.parse_result
    cast_table = Table(title=f"Characters ({len(result.characters)})")
    cast_table.add_column("Name", style="bold")
    cast_table.add_column("Replicas", justify="right")
    cast_table.add_column("First line", justify="right")
    cast_table.add_column("Variants")
    cast_table.add_column("Flags")
    for character in result.characters:
        flags = []
        if character.possible_group:
            flags.append("[yellow]group[/yellow]")
        if character.parent_name:
            flags.append(f"variant of {character.parent_name}")
        if character.combined_role:
            flags.append("combined")
        cast_table.add_row(
            character.normalized_name,
            str(character.replica_count),
            str(character.first_appearance),
            escape(", ".join(character.variants)),
            " ".join(flags),
        )
    console.print(cast_table)

    if result.warnings:
        warnings_table = Table(title=f"Warnings ({len(result.warnings)})")
        warnings_table.add_column("Type", style="bold")
        warnings_table.add_column("Message")
        for warning in result.warnings:
            warnings_table.add_row(warning.type.value, escape(warning.message))
        console.print(warnings_table)

    for message in bundle.extraction_warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    console.print(
        f"\n[bold]Total replicas:[/bold] {result.metadata.total_replicas}  "
        f"[bold]Lines:[/bold] {result.metadata.total_lines}  "
        f"[bold]Conflicts:[/bold] {len(result.interactions)}"
    )


def _print_lines(lines: list[ScriptLineInput]) -> None:
    table = Table(title=f"Script Lines ({len(lines)})")
    table.add_column("#", justify="right")
    table.add_column("Role", style="bold")
    table.add_column("Timecode")
    table.add_column("Source text")
    table.add_column("Rec")
    for line in lines:
        text = line.source_text or ""
        if len(text) > PREVIEW_TEXT_LENGTH:
            text = text[: PREVIEW_TEXT_LENGTH - 3] + "..."
        table.add_row(
            str(line.line_number),
            line.role_name,
            line.timecode or "",
            text,
            line.rec_status.value if line.rec_status else "",
        )
    console.print(table)


@app.command()
def parse(
    files: FilesArgument,
    threshold: Annotated[
        float | None,
        typer.Option("--threshold", "-t", help="Similarity threshold for duplicate detection"),
    ] = None,
    config_path: ConfigOption = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the full bundle as JSON"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log pipeline progress to stderr"),
    ] = False,
) -> None:
    """Parse script files and list characters, replica counts and warnings."""
    _setup_logging(verbose)
    config = _load(config_path)
    bundle = parse_script_files(files, config=config, similarity_threshold=threshold)

    if as_json:
        _print_json(bundle.to_dict())
    else:
        console.print(Panel(f"Parsed [bold]{len(files)}[/bold] file(s)", title="scriptcast"))
        _print_bundle(bundle)
        _print_diagnostics(bundle.diagnostics)

    if all(outcome.status is FileStatus.ERROR for outcome in bundle.files):
        raise typer.Exit(code=1)


@app.command()
def roles(
    files: FilesArgument,
    config_path: ConfigOption = None,
) -> None:
    """Print roles and same-scene conflicts ready for database insertion."""
    config = _load(config_path)
    bundle = parse_script_files(files, config=config)
    _print_json(convert_to_db_format(bundle, config).to_dict())


@app.command()
def lines(
    file: Annotated[
        Path,
        typer.Argument(help="Table or dialogue transcript", exists=True, dir_okay=False),
    ],
    sheet: Annotated[
        int,
        typer.Option("--sheet", help="Table or sheet index (0-based)"),
    ] = 0,
    keep_empty_role: Annotated[
        bool,
        typer.Option("--keep-empty-role", help="Keep rows whose role cell is empty"),
    ] = False,
    config_path: ConfigOption = None,
) -> None:
    """Extract validated script lines from a table or a dialogue transcript."""
    config = _load(config_path)
    try:
        document = extract_document(file, config)
    except ScriptcastError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    table = None
    if document.tables:
        if not 0 <= sheet < len(document.tables):
            console.print(
                f"[red]Error:[/red] Table index {sheet} out of range "
                f"({len(document.tables)} table(s) found)"
            )
            raise typer.Exit(code=1)
        table = document.tables[sheet]
    elif detect_document(document, file.suffix.lower(), config) is ContentType.TABULAR:
        table = split_text_table(unicode_cleanup(document.text))

    if table is not None:
        mapping = auto_detect_columns(table.headers)
        mapping.skip_empty_role = not keep_empty_role
        outcome = parse_and_validate_structured_data(table, mapping, config)
        script_lines, diagnostics = outcome.lines, outcome.diagnostics
    else:
        validation = validate_script_lines(
            extract_dialogue_lines(normalize_text(document.text, config))
        )
        script_lines, diagnostics = validation.data, validation.diagnostics

    _print_lines(script_lines)
    _print_diagnostics(diagnostics)


@app.command()
def detect(
    file: Annotated[
        Path,
        typer.Argument(help="Script file", exists=True, dir_okay=False),
    ],
    config_path: ConfigOption = None,
) -> None:
    """Show whether a file reads as a screenplay, a table, or both."""
    config = _load(config_path)
    try:
        document = extract_document(file, config)
    except ScriptcastError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    content_type = detect_document(document, file.suffix.lower(), config)
    console.print(f"[bold]{file.name}[/bold]: {content_type.value}")
    for warning in document.warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(warning)}")
