"""Screenplay parser: characters, replica counts, interactions and warnings.

Two front ends share one tracker:

- ``parse_script`` scans raw lines with the cue heuristics in
  ``extract_character_from_line``.
- ``parse_tokens`` consumes a tokenizer stream, where every CHARACTER and
  SPEAKER_COLON token is one replica.

Interactions are recorded once per unordered pair for the whole parse. A
separate tally counts the distinct scenes each pair shares; a pair that
meets in two or more scenes is escalated to an ``interaction`` warning.
"""

from __future__ import annotations

import copy
import logging
import re
import time

from scriptcast.config import DEFAULT_CONFIG, ParserConfig
from scriptcast.models import (
    ExtractedCharacter,
    Interaction,
    ParseMetadata,
    ParserWarning,
    ScriptParseResult,
    Token,
    TokenType,
    WarningType,
)
from scriptcast.screenplay.names import (
    COMBINED_SEPARATOR,
    detect_combined_role,
    find_base_character,
    is_group_character,
    normalize_character_name,
)
from scriptcast.screenplay.patterns import (
    COMMON_WORDS,
    CONTINUATION_PUNCTUATION,
    CUE_SHAPES,
    LOWERCASE_WORD_RE,
    NAME_PARTICLES,
    PARENTHETICAL_LINE_RE,
    SCENE_HEADING_RE,
    match_structural,
)

logger = logging.getLogger(__name__)

LINE_SPLIT_RE = re.compile(r"\r?\n")
DIGITS_RE = re.compile(r"^\d+$")
WHITESPACE_RE = re.compile(r"\s+")

LOWERCASE_WORD_RATIO = 0.4
SHORT_CANDIDATE_WORDS = 2
MIN_NAME_LENGTH = 2


def _lowercase_words(words: list[str]) -> int:
    return sum(
        1 for word in words if LOWERCASE_WORD_RE.match(word) and word not in NAME_PARTICLES
    )


def has_dialogue_following(lines: list[str], index: int) -> bool:
    """True when the next content line after *index* reads like dialogue.

    Blank lines are skipped. A scene heading means no dialogue. Dialogue is
    a line starting lowercase, a parenthetical, a line opening with
    continuation punctuation, or an indented mixed-case line.
    """
    for line in lines[index + 1 :]:
        stripped = line.strip()
        if not stripped:
            continue
        if SCENE_HEADING_RE.match(stripped):
            return False
        if LOWERCASE_WORD_RE.match(stripped) or stripped.startswith("("):
            return True
        if stripped.startswith(CONTINUATION_PUNCTUATION):
            return True
        return line[:1] in (" ", "\t") and stripped != stripped.upper()
    return False


def extract_character_from_line(
    line: str, lines: list[str], index: int, config: ParserConfig = DEFAULT_CONFIG
) -> str | None:
    """Return the raw speaker cue on *line*, or None when it is not a cue.

    Args:
        line: The source line, with its indentation.
        lines: All source lines, used for dialogue lookahead.
        index: 0-based position of *line* in *lines*.
        config: Length and centering thresholds.

    Returns:
        The cue with its parentheticals (``JOHN (V.O.)``), whitespace
        collapsed, or None.
    """
    trimmed = line.strip()
    if not trimmed or len(trimmed) > config.max_cue_length:
        return None
    if SCENE_HEADING_RE.match(trimmed) or match_structural(trimmed):
        return None
    if PARENTHETICAL_LINE_RE.match(trimmed):
        return None

    words = trimmed.split()
    lowercase = _lowercase_words(words)
    if lowercase > len(words) * LOWERCASE_WORD_RATIO:
        return None
    if lowercase and len(words) <= SHORT_CANDIDATE_WORDS:
        return None

    match = None
    for shape in CUE_SHAPES:
        match = shape.pattern.match(line if shape.use_raw_line else trimmed)
        if match:
            break
    if match is None:
        return None

    name = match.group("name").strip().rstrip(":").strip()
    if len(name) < MIN_NAME_LENGTH or DIGITS_RE.match(name):
        return None

    if name in COMMON_WORDS:
        indent = len(line) - len(line.lstrip())
        if indent < config.centered_indent or not has_dialogue_following(lines, index):
            return None

    extension = match.group("ext") or ""
    return WHITESPACE_RE.sub(" ", f"{name} {extension}").strip()


class CharacterTracker:
    """Accumulates characters, scene co-occurrence and warnings for one parse."""

    def __init__(
        self, config: ParserConfig = DEFAULT_CONFIG, track_interactions: bool = True
    ) -> None:
        self.config = config
        self.track_interactions = track_interactions
        self._characters: dict[str, ExtractedCharacter] = {}
        self._warnings: list[ParserWarning] = []
        self._interactions: list[Interaction] = []
        self._recorded_pairs: set[frozenset[str]] = set()
        self._pair_scenes: dict[frozenset[str], set[int]] = {}
        self._combinations: set[tuple[str, ...]] = set()
        self._ambiguous: set[str] = set()
        self._recent: list[str] = []
        self._scene_index = 0
        self._scene_reference: str | None = None

    def start_scene(self, heading: str) -> None:
        self._scene_index += 1
        self._scene_reference = heading.strip()[: self.config.scene_reference_length]
        self._recent = []

    def register_cue(self, raw_name: str, line_number: int) -> None:
        """Count one replica for *raw_name* and record who it shares the scene with."""
        parts = detect_combined_role(raw_name)
        if parts:
            self._register_combined(raw_name, parts, line_number)
            return

        normalized = normalize_character_name(raw_name)
        if not normalized:
            return

        self._record_interactions(normalized, list(self._recent), line_number)
        self._register(raw_name.strip(), normalized, line_number)
        self._touch_recent(normalized)

        if normalized in COMMON_WORDS and normalized not in self._ambiguous:
            self._ambiguous.add(normalized)
            self._warnings.append(
                ParserWarning(
                    type=WarningType.AMBIGUOUS_NAME,
                    message=f'"{normalized}" is a common word; check it is really a character',
                    characters=[normalized],
                    line_reference=line_number,
                )
            )

    def _register_combined(self, raw_name: str, parts: list[str], line_number: int) -> None:
        before = list(self._recent)
        raw_parts = {
            normalize_character_name(piece): piece.strip()
            for piece in raw_name.split(COMBINED_SEPARATOR)
        }
        for part in parts:
            self._record_interactions(part, before, line_number)
            character = self._register(raw_parts.get(part, part), part, line_number)
            if character.combined_role is None:
                character.combined_role = list(parts)
        for part in parts:
            self._touch_recent(part)

        key = tuple(parts)
        if key not in self._combinations:
            self._combinations.add(key)
            self._warnings.append(
                ParserWarning(
                    type=WarningType.COMBINED_ROLE,
                    message=f'"{raw_name.strip()}" credits {len(parts)} characters together: '
                    + ", ".join(parts),
                    characters=list(parts),
                    line_reference=line_number,
                )
            )

    def _register(self, raw_name: str, normalized: str, line_number: int) -> ExtractedCharacter:
        existing = self._characters.get(normalized)
        if existing is not None:
            existing.replica_count += 1
            existing.add_variant(raw_name)
            return existing

        group = is_group_character(raw_name, normalized)
        character = ExtractedCharacter(
            name=raw_name,
            normalized_name=normalized,
            replica_count=1,
            first_appearance=line_number,
            variants=[raw_name],
            possible_group=group,
            parent_name=find_base_character(normalized),
        )
        self._characters[normalized] = character
        if group:
            self._warnings.append(
                ParserWarning(
                    type=WarningType.POSSIBLE_GROUP,
                    message=f'"{raw_name}" appears to be a group character',
                    characters=[normalized],
                    line_reference=line_number,
                )
            )
        return character

    def _record_interactions(self, name: str, others: list[str], line_number: int) -> None:
        if not self.track_interactions:
            return
        for other in others:
            if other == name:
                continue
            key = frozenset((name, other))
            self._pair_scenes.setdefault(key, set()).add(self._scene_index)
            if key in self._recorded_pairs:
                continue
            self._recorded_pairs.add(key)
            self._interactions.append(
                Interaction(
                    character_a=name,
                    character_b=other,
                    line_number=line_number,
                    scene_reference=self._scene_reference,
                )
            )

    def _touch_recent(self, name: str) -> None:
        if name in self._recent:
            self._recent.remove(name)
        self._recent.append(name)
        if len(self._recent) > self.config.recent_characters_limit:
            self._recent.pop(0)

    def finish(self, total_lines: int, started: float) -> ScriptParseResult:
        """Build the result: variant and interaction warnings, sorted characters, metadata."""
        characters = list(self._characters.values())
        warnings = list(self._warnings)

        for character in characters:
            if not character.parent_name:
                continue
            parent = self._characters.get(character.parent_name)
            if parent is not None:
                warnings.append(
                    ParserWarning(
                        type=WarningType.POSSIBLE_DUPLICATE,
                        message=f'"{character.name}" may be a variant of "{parent.name}"',
                        characters=[character.normalized_name, parent.normalized_name],
                        line_reference=character.first_appearance,
                    )
                )

        for interaction in self._interactions:
            scenes = len(self._pair_scenes.get(interaction.pair_key, ()))
            if scenes >= 2:
                pair = sorted(interaction.pair_key)
                warnings.append(
                    ParserWarning(
                        type=WarningType.INTERACTION,
                        message=f'"{pair[0]}" and "{pair[1]}" appear together in {scenes} '
                        "scenes - cannot be played by the same actor",
                        characters=pair,
                    )
                )

        characters.sort(key=lambda c: c.replica_count, reverse=True)
        elapsed_ms = max(0.0, (time.perf_counter() - started) * 1000)
        return ScriptParseResult(
            characters=characters,
            warnings=warnings,
            interactions=list(self._interactions),
            metadata=ParseMetadata(
                total_lines=total_lines,
                total_replicas=sum(c.replica_count for c in characters),
                parse_time_ms=elapsed_ms,
            ),
        )


def parse_script(text: str, config: ParserConfig | None = None) -> ScriptParseResult:
    """Extract every speaking role from screenplay text.

    Never raises; an empty string yields an empty result with
    ``total_lines == 1``.

    Args:
        text: Normalized screenplay text.
        config: Optional thresholds; defaults to ``DEFAULT_CONFIG``.

    Returns:
        ScriptParseResult with characters sorted by replica count.
    """
    started = time.perf_counter()
    config = config or DEFAULT_CONFIG
    lines = LINE_SPLIT_RE.split(text or "")
    tracker = CharacterTracker(config)

    for index, line in enumerate(lines):
        trimmed = line.strip()
        if SCENE_HEADING_RE.match(trimmed):
            tracker.start_scene(trimmed)
            continue
        raw_name = extract_character_from_line(line, lines, index, config)
        if raw_name is not None:
            tracker.register_cue(raw_name, index + 1)

    result = tracker.finish(len(lines), started)
    logger.debug(
        "Parsed %d lines: %d characters, %d interactions",
        len(lines),
        len(result.characters),
        len(result.interactions),
    )
    return result


def parse_tokens(tokens: list[Token], config: ParserConfig | None = None) -> ScriptParseResult:
    """Build a ScriptParseResult from a tokenizer stream."""
    started = time.perf_counter()
    tracker = CharacterTracker(config or DEFAULT_CONFIG)

    for token in tokens:
        if token.type is TokenType.SCENE_HEADING:
            tracker.start_scene(token.content or token.text)
        elif token.type in (TokenType.CHARACTER, TokenType.SPEAKER_COLON):
            tracker.register_cue(token.character_name or token.text.strip(), token.line)

    return tracker.finish(max(len(tokens), 1), started)


def merge_parse_results(results: list[ScriptParseResult]) -> ScriptParseResult:
    """Combine per-file results into one.

    Characters are united by normalized name (counts summed, variants
    merged, earliest first appearance kept). Warnings are de-duplicated by
    type and character set, interactions by unordered pair. Inputs are not
    modified.
    """
    started = time.perf_counter()
    merged: dict[str, ExtractedCharacter] = {}
    warnings: list[ParserWarning] = []
    warning_keys: set[tuple[str, tuple[str, ...]]] = set()
    interactions: list[Interaction] = []
    pairs: set[frozenset[str]] = set()
    total_lines = 0

    for result in results:
        total_lines += result.metadata.total_lines

        for character in result.characters:
            existing = merged.get(character.normalized_name)
            if existing is None:
                merged[character.normalized_name] = copy.deepcopy(character)
                continue
            existing.replica_count += character.replica_count
            for variant in character.variants:
                existing.add_variant(variant)
            existing.first_appearance = min(existing.first_appearance, character.first_appearance)
            existing.possible_group = existing.possible_group or character.possible_group
            if existing.parent_name is None:
                existing.parent_name = character.parent_name
            if existing.combined_role is None and character.combined_role:
                existing.combined_role = list(character.combined_role)

        for warning in result.warnings:
            if warning.dedup_key not in warning_keys:
                warning_keys.add(warning.dedup_key)
                warnings.append(copy.deepcopy(warning))

        for interaction in result.interactions:
            if interaction.pair_key not in pairs:
                pairs.add(interaction.pair_key)
                interactions.append(copy.deepcopy(interaction))

    characters = sorted(merged.values(), key=lambda c: c.replica_count, reverse=True)
    return ScriptParseResult(
        characters=characters,
        warnings=warnings,
        interactions=interactions,
        metadata=ParseMetadata(
            total_lines=total_lines,
            total_replicas=sum(c.replica_count for c in characters),
            parse_time_ms=max(0.0, (time.perf_counter() - started) * 1000),
        ),
    )
