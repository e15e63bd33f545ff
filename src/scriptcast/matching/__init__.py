"""Fuzzy matching subpackage: similar-name detection and role grouping."""

from scriptcast.matching.fuzzy import (
    find_similar_characters,
    generate_similarity_warnings,
    group_similar_characters,
    similarity_ratio,
)
from scriptcast.matching.nicknames import are_nicknames, strip_titles

__all__ = [
    "similarity_ratio",
    "find_similar_characters",
    "generate_similarity_warnings",
    "group_similar_characters",
    "are_nicknames",
    "strip_titles",
]
