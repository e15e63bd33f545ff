"""Content-type detection: screenplay, tabular, or hybrid.

Detection is heuristic and cheap:
- DOCX: a table element with enough rows
- PDF: column alignment reported by the table extractor
- Text: ratio of lines that look like table rows vs. screenplay cues

When in doubt the answer is ``screenplay``: a screenplay parse of table
data degrades to "no characters found", while a table parse of prose can
silently mis-map columns.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from scriptcast.config import DEFAULT_CONFIG, ParserConfig
from scriptcast.models import ContentType

# HH:MM:SS or HH:MM:SS:FF anywhere in a value
TIMECODE_PATTERN = re.compile(r"\b\d{1,2}:\d{2}:\d{2}(?::\d{2})?\b")
LEADING_TIMECODE_RE = re.compile(r"^\d{1,2}:\d{2}:\d{2}")
COLUMN_GAP_RE = re.compile(r"\S {3,}\S")
CAPS_START_RE = re.compile(r"^[A-Z]")

MIN_TABULAR_LINES = 5
MAX_CAPS_LINE_LENGTH = 50
CENTERED_CAPS_RATIO = 0.05
STANDALONE_CAPS_RATIO = 0.1


@dataclass
class DetectionOptions:
    """Signals gathered by the extractors for one document."""

    text_lines: list[str] = field(default_factory=list)
    pdf_aligned_columns: int = 0
    pdf_row_count: int = 0
    docx_has_tables: bool = False
    docx_table_row_count: int = 0


def looks_like_timecode(value: str) -> bool:
    return bool(TIMECODE_PATTERN.search(value.strip()))


def _is_tabular_line(line: str) -> bool:
    if "\t" in line:
        return True
    if COLUMN_GAP_RE.search(line):
        return True
    return bool(LEADING_TIMECODE_RE.match(line.strip()))


def is_text_tabular(lines: list[str], config: ParserConfig = DEFAULT_CONFIG) -> bool:
    """True when more than half of the non-empty lines look like table rows.

    A row contains a tab, a run of 3+ spaces *between* two non-space
    characters (leading indent does not count), or starts with a timecode.
    """
    non_empty = [line for line in lines if line.strip()]
    if len(non_empty) < MIN_TABULAR_LINES:
        return False
    tabular = sum(1 for line in non_empty if _is_tabular_line(line))
    return tabular / len(non_empty) > config.tabular_line_ratio


def _is_caps(text: str) -> bool:
    return text == text.upper() and bool(CAPS_START_RE.match(text))


def has_screenplay_features(lines: list[str]) -> bool:
    """True when the text shows centered or standalone ALL-CAPS cue lines."""
    non_empty = [line for line in lines if line.strip()]
    if not non_empty:
        return False

    centered = 0
    standalone = 0
    for line in non_empty:
        text = line.strip()
        if len(text) > MAX_CAPS_LINE_LENGTH or not _is_caps(text):
            continue
        if line.startswith(" "):
            centered += 1
        if len(text) >= 2:
            standalone += 1

    total = len(non_empty)
    return centered / total > CENTERED_CAPS_RATIO or standalone / total > STANDALONE_CAPS_RATIO


def detect_content_type(
    options: DetectionOptions | None = None, config: ParserConfig | None = None
) -> ContentType:
    """Classify a document. Pure; defaults to screenplay on empty input."""
    options = options or DetectionOptions()
    config = config or DEFAULT_CONFIG

    is_tabular = (
        (options.docx_has_tables and options.docx_table_row_count >= config.docx_min_table_rows)
        or (
            options.pdf_aligned_columns >= config.pdf_min_columns
            and options.pdf_row_count >= config.pdf_min_rows
        )
        or is_text_tabular(options.text_lines, config)
    )
    is_screenplay = has_screenplay_features(options.text_lines)

    if is_tabular and is_screenplay:
        return ContentType.HYBRID
    if is_tabular:
        return ContentType.TABULAR
    return ContentType.SCREENPLAY
