"""Shared pytest fixtures for scriptcast tests.

Provides sample screenplay and transcript texts, a studio dubbing table,
a character factory, and a helper that writes script files into a
temporary directory.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from scriptcast.models import ExtractedCharacter, StructuredParseResult, TabularSource

SCREENPLAY = """INT. KITCHEN - DAY

John enters, carrying groceries.

                    JOHN
          Hello, Sarah.

                    SARAH
          Hi, John.

                    JOHN (V.O.)
          How was your day?

EXT. GARDEN - NIGHT

                    SARAH
          It's cold out here.

                    MIKE
          Sure is.
"""

TWO_SCENES = """INT. OFFICE - DAY

JOHN
    Morning.

SARAH
    Morning, John.

INT. CAR - NIGHT

JOHN
    Long day.

SARAH
    Very long.
"""

TRANSCRIPT = "PADDINGTON: Hello!\nMR. BROWN: Welcome.\n"


@pytest.fixture
def screenplay_text() -> str:
    """Two scenes: JOHN and SARAH in the kitchen, SARAH and MIKE in the garden."""
    return SCREENPLAY


@pytest.fixture
def two_scene_text() -> str:
    """JOHN and SARAH speaking together in two separate scenes."""
    return TWO_SCENES


@pytest.fixture
def transcript_text() -> str:
    return TRANSCRIPT


@pytest.fixture
def dubbing_table() -> StructuredParseResult:
    """A small studio sheet with English and Hebrew headers."""
    headers = ["Timecode", "Character", "Dialogue", "תרגום", "Rec Status", "Notes"]
    rows = [
        {
            "Timecode": "00:00:01",
            "Character": "JOHN",
            "Dialogue": "Hello there.",
            "תרגום": "שלום לך.",
            "Rec Status": "הוקלט",
            "Notes": None,
        },
        {
            "Timecode": "00:00:04",
            "Character": "MARY",
            "Dialogue": "Hi!",
            "תרגום": "היי!",
            "Rec Status": "Optional",
            "Notes": "breathy",
        },
        {
            "Timecode": "00:00:07",
            "Character": None,
            "Dialogue": "(music)",
            "תרגום": None,
            "Rec Status": None,
            "Notes": None,
        },
        {
            "Timecode": "00:00:09",
            "Character": "JOHN",
            "Dialogue": "Let's go.",
            "תרגום": "בואי נלך.",
            "Rec Status": "לא הוקלט",
            "Notes": None,
        },
    ]
    return StructuredParseResult(
        headers=headers,
        rows=rows,
        source=TabularSource.EXCEL,
        sheet_name="Episode 1",
        total_rows=len(rows),
    )


@pytest.fixture
def make_character() -> Callable[..., ExtractedCharacter]:
    """Factory for ExtractedCharacter with the normalized name as the display name."""

    def _make(normalized_name: str, replica_count: int = 1, **kwargs: object) -> ExtractedCharacter:
        kwargs.setdefault("variants", [normalized_name])
        return ExtractedCharacter(
            name=normalized_name,
            normalized_name=normalized_name,
            replica_count=replica_count,
            **kwargs,
        )

    return _make


@pytest.fixture
def write_script(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write *content* to ``tmp_path/name`` (UTF-8) and return the path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
