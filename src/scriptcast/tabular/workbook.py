"""Excel workbook reading via openpyxl.

Each non-empty worksheet becomes a ``WorkbookSheet``: headers from the first
row, header-keyed data rows, and a short preview for mapping dialogs. Sheets
convert to the common ``StructuredParseResult`` with ``sheet_to_structured``.
"""

from __future__ import annotations

import datetime
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from scriptcast.exceptions import ExtractionError
from scriptcast.models import CellValue, RoleForDatabase, Row, StructuredParseResult, TabularSource

logger = logging.getLogger(__name__)

PREVIEW_ROWS = 10


@dataclass
class WorkbookSheet:
    name: str
    headers: list[str]
    rows: list[Row] = field(default_factory=list)
    preview: list[Row] = field(default_factory=list)


@dataclass
class WorkbookParseResult:
    sheets: list[WorkbookSheet]
    file_name: str
    total_rows: int = 0


@dataclass
class RoleColumnMapping:
    """Column choice for importing a plain role list (name + optional replica count)."""

    role_name_column: str
    replicas_column: str | None = None
    sheet_index: int = 0


def cell_value(value: object) -> CellValue:
    """Reduce an openpyxl cell value to a str, int, float or None."""
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, (int, float, str)):
        return value
    if isinstance(value, datetime.time):
        return value.strftime("%H:%M:%S")
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return str(value)


def _header_names(first_row: tuple[object, ...]) -> list[str]:
    headers = []
    for position, value in enumerate(first_row, start=1):
        text = str(value).strip() if value is not None else ""
        headers.append(text or f"Column {position}")
    return headers


def _row_dict(headers: list[str], values: tuple[object, ...]) -> Row:
    row: Row = {}
    for position, header in enumerate(headers):
        if header in row:
            continue  # duplicate header: the first column wins
        row[header] = cell_value(values[position]) if position < len(values) else None
    return row


def read_workbook(path: Path) -> WorkbookParseResult:
    """Read every non-empty sheet of an .xlsx workbook.

    Args:
        path: Workbook file.

    Returns:
        WorkbookParseResult with one entry per sheet that has a header row
        and at least one data row.

    Raises:
        ExtractionError: If the file is not a readable workbook.
    """
    path = Path(path)
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError) as e:
        raise ExtractionError(f"Cannot read workbook {path.name}: {e}") from e

    sheets: list[WorkbookSheet] = []
    try:
        for worksheet in workbook.worksheets:
            values = [
                row
                for row in worksheet.iter_rows(values_only=True)
                if any(cell is not None and str(cell).strip() for cell in row)
            ]
            if len(values) < 2:
                continue
            headers = _header_names(values[0])
            rows = [_row_dict(headers, row) for row in values[1:]]
            sheets.append(
                WorkbookSheet(
                    name=worksheet.title,
                    headers=headers,
                    rows=rows,
                    preview=rows[:PREVIEW_ROWS],
                )
            )
    finally:
        workbook.close()

    total = sum(len(sheet.rows) for sheet in sheets)
    logger.debug("Read %d sheet(s), %d rows from %s", len(sheets), total, path.name)
    return WorkbookParseResult(sheets=sheets, file_name=path.name, total_rows=total)


def sheet_to_structured(sheet: WorkbookSheet) -> StructuredParseResult:
    return StructuredParseResult(
        headers=list(sheet.headers),
        rows=list(sheet.rows),
        source=TabularSource.EXCEL,
        sheet_name=sheet.name,
        total_rows=len(sheet.rows),
    )


def _replica_count(value: CellValue) -> int:
    if value is None:
        return 1
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 1
    if math.isnan(parsed) or parsed <= 0:
        return 1
    return max(1, math.floor(parsed + 0.5))


def apply_role_mapping(
    workbook: WorkbookParseResult, mapping: RoleColumnMapping
) -> list[RoleForDatabase]:
    """Turn a role-list sheet into unique roles.

    Roles are keyed on the uppercased name; the first row for a name wins.
    The replica count comes from ``replicas_column`` when it holds a
    positive number (rounded half up), otherwise 1.
    """
    if not 0 <= mapping.sheet_index < len(workbook.sheets):
        return []

    roles: list[RoleForDatabase] = []
    seen: set[str] = set()
    for row in workbook.sheets[mapping.sheet_index].rows:
        raw = row.get(mapping.role_name_column)
        role_name = str(raw).strip() if raw is not None else ""
        if not role_name:
            continue
        normalized = role_name.upper()
        if normalized in seen:
            continue
        seen.add(normalized)

        replicas = 1
        if mapping.replicas_column:
            replicas = _replica_count(row.get(mapping.replicas_column))
        roles.append(
            RoleForDatabase(
                role_name=role_name,
                role_name_normalized=normalized,
                replicas_needed=replicas,
            )
        )
    return roles
