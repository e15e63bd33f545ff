"""Partial-success validation for tabular script data.

Quarantine, don't abort: rows that fail ``ValidatedScriptLine`` are collected
with per-field error strings and excluded from ``data``, while valid rows
proceed. Table and mapping checks return diagnostics instead of raising.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import asdict, dataclass, field, is_dataclass
from typing import Any

from pydantic import ValidationError

from scriptcast.diagnostics import Diagnostic, DiagnosticCollector, Severity
from scriptcast.models import ColumnMapping, ScriptLineInput, StructuredParseResult
from scriptcast.schemas import ColumnMappingSchema, StructuredResultSchema, ValidatedScriptLine

logger = logging.getLogger(__name__)

SOURCE = "validation"


@dataclass
class RejectedRow:
    """A row that failed schema validation.

    Attributes:
        index: 0-based position in the input batch.
        raw: The row as submitted.
        errors: ``"field: message"`` strings, one per failed constraint.
    """

    index: int
    raw: dict[str, Any]
    errors: list[str] = field(default_factory=list)


@dataclass
class ValidationResult:
    success: bool
    data: list[ScriptLineInput] = field(default_factory=list)
    rejected: list[RejectedRow] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


def _as_dict(value: Any) -> dict[str, Any]:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, dict):
        return dict(value)
    return {"value": value}


def format_errors(error: ValidationError) -> list[str]:
    """Flatten a pydantic error into ``"field: message"`` strings."""
    messages = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "row"
        messages.append(f"{location}: {detail['msg']}")
    return messages


def validate_script_lines(lines: list[ScriptLineInput | dict[str, Any]]) -> ValidationResult:
    """Validate a batch of script lines, keeping the good rows.

    Args:
        lines: ScriptLineInput objects or plain dicts with the same keys.

    Returns:
        ValidationResult. ``success`` is True only when no row was rejected.
        A summary diagnostic comes first: an error when every row failed,
        otherwise a warning. Each rejected row adds one warning.
    """
    data: list[ScriptLineInput] = []
    rejected: list[RejectedRow] = []
    collector = DiagnosticCollector()

    for index, line in enumerate(lines):
        raw = _as_dict(line)
        try:
            model = ValidatedScriptLine.model_validate(raw)
        except ValidationError as e:
            errors = format_errors(e)
            rejected.append(RejectedRow(index=index, raw=raw, errors=errors))
            line_number = raw.get("line_number")
            collector.warn(
                SOURCE,
                f"Row {index + 1} rejected: {'; '.join(errors)}",
                line=line_number if isinstance(line_number, int) else None,
                context=str(raw.get("role_name") or "") or None,
            )
            continue
        data.append(ScriptLineInput(**model.model_dump()))

    diagnostics = collector.all()
    if rejected:
        total = len(lines)
        if not data:
            summary = Diagnostic(
                Severity.ERROR, f"All {total} rows failed validation", SOURCE
            )
        else:
            summary = Diagnostic(
                Severity.WARNING,
                f"{len(rejected)} of {total} rows failed validation and were skipped",
                SOURCE,
            )
        diagnostics.insert(0, summary)
        logger.debug("Validation rejected %d of %d rows", len(rejected), total)

    return ValidationResult(
        success=not rejected, data=data, rejected=rejected, diagnostics=diagnostics
    )


def validate_structured_result(result: StructuredParseResult) -> list[Diagnostic]:
    """Check a table's shape; mismatched counts and duplicate headers are warnings."""
    collector = DiagnosticCollector()
    try:
        StructuredResultSchema.model_validate(_as_dict(result))
    except ValidationError as e:
        for message in format_errors(e):
            collector.error(SOURCE, f"Invalid table: {message}")
        return collector.all()

    if result.total_rows != len(result.rows):
        collector.warn(
            SOURCE,
            f"Table reports {result.total_rows} rows but contains {len(result.rows)}",
        )

    for header, count in Counter(result.headers).items():
        if count > 1:
            collector.warn(
                SOURCE,
                f'Header "{header}" appears {count} times; the first column is used',
                context=header,
            )
    return collector.all()


def validate_column_mapping(mapping: ColumnMapping, headers: list[str]) -> list[Diagnostic]:
    """Report every mapped column that is missing from *headers* as an error.

    A mapping without a role column is an error too, since no row can be
    attributed to a character.
    """
    collector = DiagnosticCollector()
    try:
        ColumnMappingSchema.model_validate(_as_dict(mapping))
    except ValidationError as e:
        for detail in e.errors():
            if detail["loc"] and detail["loc"][0] == "role_name_column":
                collector.error(SOURCE, "No role column is mapped")
            else:
                location = ".".join(str(part) for part in detail["loc"])
                collector.error(SOURCE, f"Invalid column mapping: {location}: {detail['msg']}")

    available = set(headers)
    for label, header in mapping.configured_columns():
        if header not in available:
            collector.error(
                SOURCE,
                f'Mapped {label} column "{header}" does not exist in the table headers',
                context=header,
            )
    return collector.all()
