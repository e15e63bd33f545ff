"""Screenplay subpackage: cue extraction, name canonicalization and scene tracking."""

from scriptcast.screenplay.names import (
    detect_combined_role,
    find_base_character,
    is_group_character,
    normalize_character_name,
)
from scriptcast.screenplay.parser import (
    extract_character_from_line,
    has_dialogue_following,
    merge_parse_results,
    parse_script,
    parse_tokens,
)

__all__ = [
    "parse_script",
    "parse_tokens",
    "merge_parse_results",
    "extract_character_from_line",
    "has_dialogue_following",
    "normalize_character_name",
    "find_base_character",
    "is_group_character",
    "detect_combined_role",
]
