"""Pydantic models for the tabular boundary: script lines, tables and column mappings.

These schemas are the single source of truth for what a valid row looks like
before it reaches persistence. ``validation.py`` wraps them in a
partial-success policy so one bad row never rejects a whole sheet.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scriptcast.models import CellValue, RecStatus, TabularSource

# HH:MM:SS or HH:MM:SS:FF
TIMECODE_PATTERN = r"^\d{1,2}:\d{2}:\d{2}(?::\d{2})?$"


class ValidatedScriptLine(BaseModel):
    """One dialogue row as accepted by the persistence layer."""

    line_number: int = Field(gt=0, strict=True, description="1-based, sequential")
    timecode: str | None = Field(default=None, pattern=TIMECODE_PATTERN)
    role_name: str = Field(min_length=1)
    actor_id: str | None = None
    source_text: str | None = None
    translation: str | None = None
    rec_status: RecStatus | None = None
    notes: str | None = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("role_name")
    @classmethod
    def reject_blank_role(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("role name must not be blank")
        return v


class StructuredResultSchema(BaseModel):
    """Shape check for a StructuredParseResult handed over by an extractor."""

    headers: list[str] = Field(min_length=1)
    rows: list[dict[str, CellValue]] = Field(default_factory=list)
    source: TabularSource
    sheet_name: str | None = None
    total_rows: int = Field(ge=0)

    model_config = ConfigDict(extra="ignore")


class ColumnMappingSchema(BaseModel):
    """A user- or auto-detected column mapping. The role column is mandatory."""

    role_name_column: str = Field(min_length=1)
    timecode_column: str | None = None
    source_text_column: str | None = None
    translation_column: str | None = None
    rec_status_column: str | None = None
    notes_column: str | None = None
    skip_empty_role: bool = True
    sheet_index: int = Field(default=0, ge=0)

    model_config = ConfigDict(extra="ignore")
