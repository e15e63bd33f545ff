"""Plain-text dialogue transcripts -> ScriptLineInput.

Handles the two layouts studios send when a "script" is really a dialogue
list rather than a formatted screenplay:

    Format A (colon)             Format B (indented)
    JOHN: Hello, how are you?    JOHN
    MARY: Fine, thanks.              Hello, how are you?

                                 MARY
                                     Fine, thanks.

Only ``role_name`` and ``source_text`` are filled; timecodes, translation
and recording status are left for the user.
"""

from __future__ import annotations

import re

from scriptcast.models import ScriptLineInput

LINE_SPLIT_RE = re.compile(r"\r?\n")
COLON_LINE_RE = re.compile(r"^([A-Zא-ת][A-Z0-9 \-'.א-ת]{0,40}):\s+(.+)$")
CAPS_START_RE = re.compile(r"^[A-Zא-ת]")
SENTENCE_END = (".", "!", "?")
MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 50


def _is_speaker_name(trimmed: str) -> bool:
    return (
        trimmed == trimmed.upper()
        and bool(CAPS_START_RE.match(trimmed))
        and MIN_NAME_LENGTH <= len(trimmed) <= MAX_NAME_LENGTH
        and not trimmed.endswith(SENTENCE_END)
    )


def _collect_indented(lines: list[str], start: int) -> tuple[list[str], int]:
    """Gather indented lines after a name; a blank line after content ends the block."""
    parts: list[str] = []
    position = start
    while position < len(lines):
        raw = lines[position]
        stripped = raw.strip()
        if not stripped:
            position += 1
            if parts:
                break
            continue
        if not raw.startswith((" ", "\t")):
            break
        parts.append(stripped)
        position += 1
    return parts, position


def extract_dialogue_lines(text: str) -> list[ScriptLineInput]:
    """Extract speaker/text pairs from a colon or indented dialogue transcript.

    Args:
        text: Raw transcript text.

    Returns:
        One ScriptLineInput per utterance with sequential line numbers.
    """
    lines = LINE_SPLIT_RE.split(text or "")
    extracted: list[ScriptLineInput] = []
    index = 0

    while index < len(lines):
        trimmed = lines[index].strip()
        if not trimmed:
            index += 1
            continue

        colon = COLON_LINE_RE.match(trimmed)
        if colon:
            extracted.append(
                ScriptLineInput(
                    line_number=len(extracted) + 1,
                    role_name=colon.group(1).strip(),
                    source_text=colon.group(2).strip(),
                )
            )
            index += 1
            continue

        if _is_speaker_name(trimmed):
            parts, next_index = _collect_indented(lines, index + 1)
            if parts:
                extracted.append(
                    ScriptLineInput(
                        line_number=len(extracted) + 1,
                        role_name=trimmed,
                        source_text=" ".join(parts),
                    )
                )
                index = next_index
                continue

        index += 1

    return extracted
