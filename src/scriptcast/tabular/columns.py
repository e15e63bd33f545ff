"""Header auto-detection for tabular dubbing scripts.

Studio spreadsheets arrive with English or Hebrew headers in any order.
Each semantic field has one anchored, case-insensitive pattern matched
against the trimmed header text; the first header that matches wins, so
duplicate headers resolve deterministically to the leftmost column.
"""

from __future__ import annotations

import re

from scriptcast.models import ColumnDetection, ColumnMapping


def _anchored(alternatives: str) -> re.Pattern[str]:
    return re.compile(r"^(?:" + alternatives + r")$", re.IGNORECASE)


# (mapping attribute, pattern, confidence weight); weights sum to 100
FIELD_PATTERNS: tuple[tuple[str, re.Pattern[str], int], ...] = (
    ("role_name_column", _anchored(r"character|char|דמות|תפקיד|role[\s_-]?name|role"), 45),
    (
        "source_text_column",
        _anchored(r"dialogue|dialog|text|eng(?:lish)?|source[\s_-]?text|subtitles?"),
        20,
    ),
    ("timecode_column", _anchored(r"timecode|tc|time[\s_-]?in|time_in|in[\s_-]?time"), 15),
    (
        "translation_column",
        _anchored(r"עברית|heb(?:rew)?|תרגום|translation|target[\s_-]?text"),
        10,
    ),
    ("rec_status_column", _anchored(r"rec(?:ording)?[\s_-]?status|rec|סטטוס|status"), 5),
    ("notes_column", _anchored(r"הערות|notes?|note|remarks?"), 5),
)

FIELD_LABELS = {
    "role_name_column": "role_name",
    "source_text_column": "source_text",
    "timecode_column": "timecode",
    "translation_column": "translation",
    "rec_status_column": "rec_status",
    "notes_column": "notes",
}


def _find_header(headers: list[str], pattern: re.Pattern[str]) -> str | None:
    for header in headers:
        if header is not None and pattern.match(str(header).strip()):
            return header
    return None


def auto_detect_columns(headers: list[str]) -> ColumnMapping:
    """Map each semantic field to the first matching header.

    An undetected role column is reported as ``""``; every other
    undetected field is None.
    """
    detected = {attr: _find_header(headers, pattern) for attr, pattern, _ in FIELD_PATTERNS}
    return ColumnMapping(
        role_name_column=detected["role_name_column"] or "",
        timecode_column=detected["timecode_column"],
        source_text_column=detected["source_text_column"],
        translation_column=detected["translation_column"],
        rec_status_column=detected["rec_status_column"],
        notes_column=detected["notes_column"],
    )


def auto_detect_columns_with_confidence(headers: list[str]) -> ColumnDetection:
    """Detect columns and score how trustworthy the mapping is.

    The role column carries the largest weight, so a mapping that found the
    role always outscores one that found the same number of other fields.

    Returns:
        ColumnDetection with confidence 0-100 and the detected field names.
    """
    mapping = auto_detect_columns(headers)
    confidence = 0
    detected_fields: list[str] = []
    for attr, _, weight in FIELD_PATTERNS:
        if getattr(mapping, attr):
            confidence += weight
            detected_fields.append(FIELD_LABELS[attr])
    return ColumnDetection(mapping=mapping, confidence=confidence, detected_fields=detected_fields)
