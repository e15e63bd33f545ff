"""Table extraction from DOCX and PDF documents.

Both python-docx and pdfplumber hand back tables as lists of cell strings.
They are converted into the shared ``StructuredParseResult`` so the
structured parser never needs to know where a table came from.
"""

from __future__ import annotations

from typing import Any

from scriptcast.models import Row, StructuredParseResult, TabularSource


def _clean(cell: Any) -> str:
    if cell is None:
        return ""
    return " ".join(str(cell).split())


def rows_to_structured(
    cells: list[list[Any]],
    source: TabularSource,
    sheet_name: str | None = None,
) -> StructuredParseResult | None:
    """Turn raw table cells into a header-keyed table.

    The first non-empty row is the header row. Blank headers are named
    ``Column N``; when a header repeats, the first column keeps the key.

    Returns:
        StructuredParseResult, or None when there is no data row.
    """
    records = [[_clean(cell) for cell in row] for row in cells]
    records = [row for row in records if any(row)]
    if len(records) < 2:
        return None

    headers = [text or f"Column {position}" for position, text in enumerate(records[0], start=1)]
    rows: list[Row] = []
    for record in records[1:]:
        row: Row = {}
        for position, header in enumerate(headers):
            if header in row:
                continue
            value = record[position] if position < len(record) else ""
            row[header] = value or None
        rows.append(row)

    return StructuredParseResult(
        headers=headers,
        rows=rows,
        source=source,
        sheet_name=sheet_name,
        total_rows=len(rows),
    )


def docx_tables(document: Any) -> list[StructuredParseResult]:
    """Extract every table of a python-docx ``Document``."""
    tables = []
    for index, table in enumerate(document.tables, start=1):
        cells = [[cell.text for cell in row.cells] for row in table.rows]
        structured = rows_to_structured(cells, TabularSource.DOCX_TABLE, f"Table {index}")
        if structured is not None:
            tables.append(structured)
    return tables


def pdf_tables(pages: list[Any]) -> list[StructuredParseResult]:
    """Extract tables from pdfplumber pages.

    A table whose header row repeats the previous table's header is treated
    as that table continuing onto the next page and is appended to it.
    """
    tables: list[StructuredParseResult] = []
    for page in pages:
        for raw in page.extract_tables():
            structured = rows_to_structured(
                raw, TabularSource.PDF_TABLE, f"Table {len(tables) + 1}"
            )
            if structured is None:
                continue
            if tables and tables[-1].headers == structured.headers:
                tables[-1].rows.extend(structured.rows)
                tables[-1].total_rows = len(tables[-1].rows)
            else:
                tables.append(structured)
    return tables


def largest_table(tables: list[StructuredParseResult]) -> StructuredParseResult | None:
    """The table with the most data rows (first one on ties)."""
    best = None
    for table in tables:
        if best is None or table.total_rows > best.total_rows:
            best = table
    return best
