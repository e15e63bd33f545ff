"""Generic tabular rows -> ScriptLineInput conversion.

Works on any ``StructuredParseResult`` regardless of where it came from:
Excel sheets, PDF tables, DOCX tables or whitespace-aligned text.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field

from scriptcast.config import DEFAULT_CONFIG, ParserConfig
from scriptcast.diagnostics import Diagnostic, DiagnosticCollector
from scriptcast.models import (
    CellValue,
    ColumnMapping,
    RecStatus,
    Row,
    ScriptLineInput,
    ScriptParseResult,
    StructuredParseResult,
    TabularSource,
)
from scriptcast.screenplay.parser import CharacterTracker
from scriptcast.validation import RejectedRow, validate_column_mapping, validate_script_lines

logger = logging.getLogger(__name__)

TEXT_COLUMN_SPLIT_RE = re.compile(r"\t+|\s{3,}")
_REC_STATUS_VALUES = {status.value: status for status in RecStatus}


@dataclass
class StructuredParseOutcome:
    """Validated lines plus everything that was set aside on the way."""

    lines: list[ScriptLineInput] = field(default_factory=list)
    rejected: list[RejectedRow] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


def _cell_text(row: Row, column: str | None) -> str | None:
    if not column:
        return None
    value = row.get(column)
    if value is None:
        return None
    return str(value).strip() or None


def normalize_rec_status(value: CellValue) -> RecStatus | None:
    """Map a cell to one of the three recording statuses, or None."""
    if value is None:
        return None
    return _REC_STATUS_VALUES.get(str(value).strip())


def parse_script_lines_from_structured_data(
    result: StructuredParseResult,
    mapping: ColumnMapping,
    config: ParserConfig | None = None,
) -> list[ScriptLineInput]:
    """Convert table rows into script lines using *mapping*.

    Rows whose role cell is empty are skipped unless
    ``mapping.skip_empty_role`` is False, in which case they are kept with
    ``role_name == ""``. Every other field is optional; a missing column or
    an empty cell becomes None. Line numbers are sequential from 1.

    Args:
        result: Headers and header-keyed rows.
        mapping: Which header feeds which field.
        config: Optional row cap (``max_tabular_rows``).

    Returns:
        List of ScriptLineInput; never raises.
    """
    config = config or DEFAULT_CONFIG
    lines: list[ScriptLineInput] = []
    line_number = 1

    for row in result.rows[: config.max_tabular_rows]:
        role_name = _cell_text(row, mapping.role_name_column) or ""
        if not role_name and mapping.skip_empty_role:
            continue

        rec_status = None
        if mapping.rec_status_column:
            rec_status = normalize_rec_status(row.get(mapping.rec_status_column))

        lines.append(
            ScriptLineInput(
                line_number=line_number,
                role_name=role_name,
                timecode=_cell_text(row, mapping.timecode_column),
                source_text=_cell_text(row, mapping.source_text_column),
                translation=_cell_text(row, mapping.translation_column),
                rec_status=rec_status,
                notes=_cell_text(row, mapping.notes_column),
            )
        )
        line_number += 1

    if len(result.rows) > config.max_tabular_rows:
        logger.debug(
            "Row cap reached: read %d of %d rows", config.max_tabular_rows, len(result.rows)
        )
    return lines


def parse_and_validate_structured_data(
    result: StructuredParseResult,
    mapping: ColumnMapping,
    config: ParserConfig | None = None,
) -> StructuredParseOutcome:
    """Check the mapping against the headers, convert rows, then validate them.

    A mapping whose role column is missing or dangling yields an error
    diagnostic and zero lines.
    """
    config = config or DEFAULT_CONFIG
    collector = DiagnosticCollector()
    collector.add_all(validate_column_mapping(mapping, result.headers))

    if not mapping.role_name_column or mapping.role_name_column not in result.headers:
        return StructuredParseOutcome(diagnostics=collector.all())

    if len(result.rows) > config.max_tabular_rows:
        collector.warn(
            "structured",
            f"Only the first {config.max_tabular_rows} of {len(result.rows)} rows were read",
        )

    lines = parse_script_lines_from_structured_data(result, mapping, config)
    validation = validate_script_lines(lines)
    collector.add_all(validation.diagnostics)
    return StructuredParseOutcome(
        lines=validation.data,
        rejected=validation.rejected,
        diagnostics=collector.all(),
    )


def split_text_table(text: str) -> StructuredParseResult:
    """Turn tab- or space-aligned text into a table; the first row is the header.

    Missing trailing cells become None; surplus cells are dropped.
    """
    records = [
        [cell.strip() for cell in TEXT_COLUMN_SPLIT_RE.split(line.strip())]
        for line in text.splitlines()
        if line.strip()
    ]
    if not records:
        return StructuredParseResult(headers=[], rows=[], source=TabularSource.TEXT_TABULAR)

    headers = records[0]
    rows: list[Row] = []
    for cells in records[1:]:
        row: Row = {}
        for position, header in enumerate(headers):
            if header in row:
                continue
            row[header] = cells[position] if position < len(cells) and cells[position] else None
        rows.append(row)

    return StructuredParseResult(
        headers=headers,
        rows=rows,
        source=TabularSource.TEXT_TABULAR,
        total_rows=len(rows),
    )


def characters_from_script_lines(
    lines: list[ScriptLineInput], config: ParserConfig | None = None
) -> ScriptParseResult:
    """Count replicas per role in a flat line list.

    Group, variant and combined-role heuristics apply to the role names.
    Tables carry no scene structure, so no interactions are recorded.
    """
    started = time.perf_counter()
    tracker = CharacterTracker(config or DEFAULT_CONFIG, track_interactions=False)
    for line in lines:
        if line.role_name.strip():
            tracker.register_cue(line.role_name, line.line_number)
    return tracker.finish(len(lines), started)

