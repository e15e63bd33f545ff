"""Character-name canonicalization and name-shape heuristics.

``normalize_character_name`` produces the key that identifies a role across
a script: ``JOHN (V.O.)``, ``john (CONT'D)`` and ``JOHN #2`` all collapse to
``JOHN``, while ``GUARD 1`` and ``GUARD 2`` stay distinct and age/flashback
markers such as ``JOHN (YOUNG)`` are kept so variant detection can see them.
"""

from __future__ import annotations

import re

from scriptcast.screenplay.patterns import (
    EXTENSION_PATTERNS,
    GROUP_INDICATORS,
    HASH_SUFFIX_RE,
    TRAILING_PARENTHETICAL_RE,
    VARIANT_MARKER_RE,
    VARIANT_PATTERNS,
)

WHITESPACE_RE = re.compile(r"\s+")
COMBINED_SEPARATOR = "/"
MIN_PART_LENGTH = 2


def _normalize_once(name: str) -> str:
    normalized = name.strip().upper()
    for pattern in EXTENSION_PATTERNS:
        normalized = pattern.sub("", normalized)

    # Strip leftover trailing parentheticals unless they mark a variant
    trailing = TRAILING_PARENTHETICAL_RE.search(normalized)
    while trailing and not VARIANT_MARKER_RE.search(trailing.group(0)):
        normalized = normalized[: trailing.start()]
        trailing = TRAILING_PARENTHETICAL_RE.search(normalized)

    normalized = HASH_SUFFIX_RE.sub("", normalized)
    return WHITESPACE_RE.sub(" ", normalized).strip()


def normalize_character_name(name: str) -> str:
    """Return the canonical uppercase key for a raw character cue.

    Cue extensions such as ``(V.O.)`` or ``(CONT'D)`` and any other trailing
    parenthetical are stripped, except age and flashback variant markers:
    ``JOHN (YOUNG)`` and ``JOHN (FLASHBACK)`` keep their parenthetical so the
    variant stays a separate role from ``JOHN``. ``#N`` suffixes are dropped;
    a bare trailing number (``GUARD 2``) is kept.

    Repeats the cleanup until the value stops changing, so the result is
    always a fixed point of this function.
    """
    current = name or ""
    normalized = _normalize_once(current)
    while normalized != current:
        current = normalized
        normalized = _normalize_once(current)
    return normalized


def find_base_character(normalized_name: str) -> str | None:
    """Return the parent name when *normalized_name* is a variant (``YOUNG JOHN`` -> ``JOHN``)."""
    for pattern in VARIANT_PATTERNS:
        match = pattern.match(normalized_name)
        if not match:
            continue
        base = normalize_character_name(match.group("base"))
        if base and base != normalized_name:
            return base
    return None


def is_group_character(raw_name: str, normalized_name: str | None = None) -> bool:
    """True for collective speakers such as CROWD, 3 GUARDS or ``JOHN (ALL)``.

    The raw cue is checked as well as the key, because normalization strips
    group parentheticals like ``(ALL)``.
    """
    candidates = [raw_name.strip()]
    if normalized_name:
        candidates.append(normalized_name)
    return any(
        pattern.search(candidate) for pattern in GROUP_INDICATORS for candidate in candidates
    )


def detect_combined_role(raw_name: str) -> list[str] | None:
    """Split a shared cue like ``JOHN / MARY`` into its normalized parts.

    Returns:
        Ordered, de-duplicated normalized parts, or None when the cue is not
        a combination of at least two names of two or more characters.
    """
    if COMBINED_SEPARATOR not in raw_name:
        return None

    parts: list[str] = []
    for piece in raw_name.split(COMBINED_SEPARATOR):
        normalized = normalize_character_name(piece)
        if len(normalized) < MIN_PART_LENGTH:
            return None
        if normalized not in parts:
            parts.append(normalized)

    if len(parts) < 2:
        return None
    return parts
