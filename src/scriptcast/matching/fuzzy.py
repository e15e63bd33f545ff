"""Fuzzy matching of character names that may be the same role.

Runs over the already de-duplicated character list (O(n^2) pairs; n is a
cast size, typically under 200). Each pair is tested against an ordered list
of rules and the first rule that fires decides the reason and score:

    combined_role -> levenshtein -> nickname -> contains -> title_variant
"""

from __future__ import annotations

import logging

from rapidfuzz.distance import Levenshtein

from scriptcast.matching.nicknames import are_nicknames, has_title, strip_titles
from scriptcast.models import (
    CharacterGroup,
    ExtractedCharacter,
    MatchReason,
    ParserWarning,
    SimilarityMatch,
    WarningType,
)

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.75
NICKNAME_SIMILARITY = 0.85
MIN_CONTAINS_RATIO = 0.5


def similarity_ratio(first: str, second: str) -> float:
    """Return ``1 - edit_distance / max_length``; two empty strings give 1.0."""
    longest = max(len(first), len(second))
    if longest == 0:
        return 1.0
    return 1.0 - Levenshtein.distance(first, second) / longest


def _nickname_match(first: str, second: str) -> bool:
    words_a = strip_titles(first).split()
    words_b = strip_titles(second).split()
    if not words_a or not words_b:
        return False
    if not are_nicknames(words_a[0], words_b[0]):
        return False
    if len(words_a) > 1 and len(words_b) > 1:
        return words_a[-1] == words_b[-1]
    return True


def _contains_ratio(first: str, second: str) -> float | None:
    """Length ratio when every word of the shorter name appears in the longer one."""
    words_a, words_b = first.split(), second.split()
    shorter, longer = (words_a, words_b) if len(words_a) <= len(words_b) else (words_b, words_a)
    if not shorter or not all(word in longer for word in shorter):
        return None
    return min(len(first), len(second)) / max(len(first), len(second))


def _match_pair(
    a: ExtractedCharacter, b: ExtractedCharacter, threshold: float
) -> SimilarityMatch | None:
    name_a, name_b = a.normalized_name, b.normalized_name

    if a.combined_role and b.combined_role and set(a.combined_role) & set(b.combined_role):
        return SimilarityMatch(name_a, name_b, 1.0, MatchReason.COMBINED_ROLE)

    similarity = similarity_ratio(name_a, name_b)
    if similarity >= threshold:
        return SimilarityMatch(name_a, name_b, similarity, MatchReason.LEVENSHTEIN)

    if _nickname_match(name_a, name_b):
        return SimilarityMatch(name_a, name_b, NICKNAME_SIMILARITY, MatchReason.NICKNAME)

    ratio = _contains_ratio(name_a, name_b)
    if ratio is not None and ratio >= MIN_CONTAINS_RATIO:
        return SimilarityMatch(name_a, name_b, ratio, MatchReason.CONTAINS)

    if has_title(name_a) or has_title(name_b):
        bare_a, bare_b = strip_titles(name_a), strip_titles(name_b)
        if bare_a and bare_b:
            title_similarity = similarity_ratio(bare_a, bare_b)
            if title_similarity >= threshold:
                return SimilarityMatch(
                    name_a, name_b, title_similarity, MatchReason.TITLE_VARIANT
                )
    return None


def find_similar_characters(
    characters: list[ExtractedCharacter], threshold: float = DEFAULT_THRESHOLD
) -> list[SimilarityMatch]:
    """Find character pairs that might be the same role.

    Pairs already linked as parent and variant are skipped.

    Args:
        characters: De-duplicated characters (unique normalized names).
        threshold: Minimum Levenshtein similarity for the edit-distance
            and title rules.

    Returns:
        Matches sorted by similarity, highest first.
    """
    matches: list[SimilarityMatch] = []
    for i, first in enumerate(characters):
        for second in characters[i + 1 :]:
            if (
                first.parent_name == second.normalized_name
                or second.parent_name == first.normalized_name
            ):
                continue
            match = _match_pair(first, second, threshold)
            if match is not None:
                matches.append(match)

    matches.sort(key=lambda m: m.similarity, reverse=True)
    logger.debug("Found %d similar pair(s) among %d characters", len(matches), len(characters))
    return matches


def _message(match: SimilarityMatch) -> str:
    a, b = match.character1, match.character2
    if match.reason is MatchReason.LEVENSHTEIN:
        return f'"{a}" and "{b}" are very similar ({round(match.similarity * 100)}% match)'
    if match.reason is MatchReason.CONTAINS:
        return f'"{a}" may be the same as "{b}"'
    if match.reason is MatchReason.TITLE_VARIANT:
        return f'"{a}" and "{b}" may be the same character with different titles'
    if match.reason is MatchReason.NICKNAME:
        return f'"{a}" and "{b}" may be the same character (nickname)'
    return f'"{a}" and "{b}" are credited together in a combined role'


def generate_similarity_warnings(matches: list[SimilarityMatch]) -> list[ParserWarning]:
    """One ``possible_duplicate`` warning per match."""
    return [
        ParserWarning(
            type=WarningType.POSSIBLE_DUPLICATE,
            message=_message(match),
            characters=[match.character1, match.character2],
        )
        for match in matches
    ]


def group_similar_characters(
    characters: list[ExtractedCharacter],
    manual_groups: dict[str, list[str]] | None = None,
) -> list[CharacterGroup]:
    """Group characters into role families for casting.

    Manual groups (primary name -> member names) apply first, then each
    parent collects its variants, then every remaining character becomes
    a singleton group.

    Returns:
        Groups sorted by total replicas, highest first.
    """
    by_name = {c.normalized_name: c for c in characters}
    assigned: set[str] = set()
    groups: list[CharacterGroup] = []

    def _total(members: list[str]) -> int:
        return sum(by_name[m].replica_count for m in members if m in by_name)

    for primary, members in (manual_groups or {}).items():
        if primary not in by_name or primary in assigned:
            continue
        extra = [
            m for m in dict.fromkeys(members) if m in by_name and m != primary and m not in assigned
        ]
        if not extra:
            continue
        group_members = [primary, *extra]
        assigned.update(group_members)
        groups.append(CharacterGroup(primary, group_members, _total(group_members)))

    for character in characters:
        parent_name = character.parent_name
        if character.normalized_name in assigned or not parent_name:
            continue
        if parent_name not in by_name or parent_name in assigned:
            continue
        children = [
            c.normalized_name
            for c in characters
            if c.parent_name == parent_name and c.normalized_name not in assigned
        ]
        group_members = [parent_name, *children]
        assigned.update(group_members)
        groups.append(CharacterGroup(parent_name, group_members, _total(group_members)))

    for character in characters:
        if character.normalized_name not in assigned:
            groups.append(
                CharacterGroup(
                    character.normalized_name,
                    [character.normalized_name],
                    character.replica_count,
                )
            )

    groups.sort(key=lambda g: g.total_replicas, reverse=True)
    return groups
