"""Randomized invariant checks over generated scripts, names and tables.

Each test draws its inputs from ``random.Random(seed)`` so a failing seed
reproduces exactly.
"""

from __future__ import annotations

import random

import pytest
from pydantic import ValidationError

from scriptcast.detector import DetectionOptions, detect_content_type
from scriptcast.models import (
    ColumnMapping,
    ContentType,
    ExtractedCharacter,
    ParseMetadata,
    ScriptParseResult,
    StructuredParseResult,
    TabularSource,
    TokenType,
)
from scriptcast.normalizer import normalize_text
from scriptcast.schemas import ValidatedScriptLine
from scriptcast.screenplay.names import normalize_character_name
from scriptcast.screenplay.parser import merge_parse_results
from scriptcast.tabular.columns import auto_detect_columns
from scriptcast.tabular.dialogue import extract_dialogue_lines
from scriptcast.tabular.structured import parse_script_lines_from_structured_data
from scriptcast.tokenizer import tokenize

SEEDS = range(40)

BIDI = [chr(c) for c in (0x200B, 0x200E, 0x200F, 0x202A, 0x202B, 0x202C, 0x2066, 0xFEFF, 0xAD)]
ALPHABET = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
    " \t:.,;!?()'\"-/#&" + "".join(chr(c) for c in range(0x05D0, 0x05EB)) + "".join(BIDI)
)
SCRIPT_LINES = [
    "",
    "INT. KITCHEN - DAY",
    "EXT. GARDEN - NIGHT",
    "                    JOHN",
    "          Hello, Sarah.",
    "                    SARAH (V.O.)",
    "          (quietly)",
    "JOHN",
    "    Morning.",
    "MR. BROWN: Welcome.",
    "PADDINGTON: Hello!",
    "He walks to the",
    "door and leaves.",
    "she turns away",
    "12",
    "3.",
    "CUT TO:",
    "JOHN/MARY",
    "GUARD #2",
    "00:01:02:03",
    "Timecode\tCharacter\tDialogue",
    "Note: lowercase prose follows",
    "YOUNG JOHN (CONT'D)",
]
NAME_PARTS = [
    "JOHN",
    "mary",
    "Dr.",
    "YOUNG",
    "SARAH",
    "(V.O.)",
    "(O.S.)",
    "(CONT'D)",
    "(YOUNG)",
    "(FLASHBACK)",
    "(ON PHONE)",
    "(whispering)",
    "(AGE 12)",
    "#2",
    "3",
    "/",
    "&",
    "  ",
    "(",
    ")",
    "'S VOICE",
    "MCDONALD",
    "שרה",
]
POOL = ["JOHN", "SARAH", "MIKE", "YOUNG JOHN", "MARY", "GUARD 1", "CROWD", "DR. SMITH"]


def _random_chars(rng: random.Random, max_length: int) -> str:
    return "".join(rng.choice(ALPHABET) for _ in range(rng.randint(0, max_length)))


def _random_text(rng: random.Random) -> str:
    """Mix of real script lines, random characters and injected bidi marks."""
    lines = []
    for _ in range(rng.randint(0, 60)):
        if rng.random() < 0.7:
            line = rng.choice(SCRIPT_LINES)
        else:
            line = _random_chars(rng, 40)
        if line and rng.random() < 0.2:
            at = rng.randint(0, len(line))
            line = line[:at] + rng.choice(BIDI) + line[at:]
        lines.append(" " * rng.choice([0, 0, 3, 5, 10, 20]) + line)
    return "\n".join(lines)


def _random_result(rng: random.Random) -> ScriptParseResult:
    characters = [
        ExtractedCharacter(
            name=name,
            normalized_name=name,
            replica_count=rng.randint(1, 9),
            first_appearance=rng.randint(1, 50),
            variants=[name],
            possible_group=rng.random() < 0.2,
        )
        for name in rng.sample(POOL, rng.randint(0, len(POOL)))
    ]
    return ScriptParseResult(
        characters=characters,
        metadata=ParseMetadata(
            total_lines=rng.randint(1, 200),
            total_replicas=sum(c.replica_count for c in characters),
        ),
    )


def _summary(result: ScriptParseResult) -> dict[str, tuple[int, int, bool]]:
    return {
        c.normalized_name: (c.replica_count, c.first_appearance, c.possible_group)
        for c in result.characters
    }


class TestNormalizeTextProperties:
    @pytest.mark.parametrize("seed", SEEDS)
    def test_idempotent(self, seed: int) -> None:
        text = _random_text(random.Random(seed))
        once = normalize_text(text)
        assert normalize_text(once) == once

    @pytest.mark.parametrize("seed", SEEDS)
    def test_bidi_marks_removed(self, seed: int) -> None:
        text = normalize_text(_random_text(random.Random(seed)))
        assert not any(mark in text for mark in BIDI)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_at_most_doubles_line_count(self, seed: int) -> None:
        text = _random_text(random.Random(seed))
        assert len(normalize_text(text).split("\n")) <= 2 * len(text.split("\n")) + 1

    def test_expanded_continuations_settle(self) -> None:
        """Continuations that only repeat after expansion still reach a fixed point."""
        text = "\n".join(f"R{i}: ok" for i in range(30))
        once = normalize_text(text)
        assert normalize_text(once) == once


class TestNormalizeCharacterNameProperties:
    @pytest.mark.parametrize("seed", SEEDS)
    def test_idempotent(self, seed: int) -> None:
        rng = random.Random(seed)
        for _ in range(25):
            parts = [rng.choice(NAME_PARTS) for _ in range(rng.randint(0, 5))]
            raw = " ".join(parts)
            if rng.random() < 0.3:
                raw += _random_chars(rng, 10)
            normalized = normalize_character_name(raw)
            assert normalize_character_name(normalized) == normalized


class TestTokenizeProperties:
    @pytest.mark.parametrize("seed", SEEDS)
    def test_one_token_per_line(self, seed: int) -> None:
        text = _random_text(random.Random(seed))
        tokens = tokenize(text).tokens

        assert tokens
        assert len(tokens) == len(text.split("\n"))
        assert [t.line for t in tokens] == list(range(1, len(tokens) + 1))

    @pytest.mark.parametrize("seed", SEEDS)
    def test_blank_lines_are_blank_tokens(self, seed: int) -> None:
        text = _random_text(random.Random(seed))
        for line, token in zip(text.split("\n"), tokenize(text).tokens):
            assert (token.type is TokenType.BLANK) == (not line.strip())


class TestMergeProperties:
    @pytest.mark.parametrize("seed", SEEDS)
    def test_associative(self, seed: int) -> None:
        rng = random.Random(seed)
        a, b, c = (_random_result(rng) for _ in range(3))

        left = merge_parse_results([merge_parse_results([a, b]), c])
        right = merge_parse_results([a, merge_parse_results([b, c])])
        flat = merge_parse_results([a, b, c])

        assert _summary(left) == _summary(right) == _summary(flat)
        assert left.metadata.total_replicas == right.metadata.total_replicas
        assert left.metadata.total_lines == right.metadata.total_lines == flat.metadata.total_lines

    @pytest.mark.parametrize("seed", SEEDS)
    def test_totals_are_preserved(self, seed: int) -> None:
        rng = random.Random(seed)
        results = [_random_result(rng) for _ in range(rng.randint(0, 5))]
        merged = merge_parse_results(results)

        assert merged.metadata.total_replicas == sum(r.metadata.total_replicas for r in results)
        assert len({c.normalized_name for c in merged.characters}) == len(merged.characters)


class TestTabularProperties:
    @pytest.mark.parametrize("seed", SEEDS)
    def test_column_detection_never_fails(self, seed: int) -> None:
        rng = random.Random(seed)
        headers = [_random_chars(rng, 20) for _ in range(rng.randint(0, 12))]
        assert isinstance(auto_detect_columns(headers).role_name_column, str)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_role_header_is_found_among_noise(self, seed: int) -> None:
        rng = random.Random(seed)
        role_header = rng.choice(["Character", "ROLE", "תפקיד", "דמות", "char"])
        headers = [f"x{_random_chars(rng, 10)}" for _ in range(rng.randint(0, 5))]
        headers.insert(rng.randint(0, len(headers)), role_header)
        assert auto_detect_columns(headers).role_name_column

    @pytest.mark.parametrize("seed", SEEDS)
    def test_structured_lines_are_sequential(self, seed: int) -> None:
        rng = random.Random(seed)
        rows = [
            {"Role": _random_chars(rng, 12), "Text": _random_chars(rng, 40)}
            for _ in range(rng.randint(0, 50))
        ]
        table = StructuredParseResult(
            headers=["Role", "Text"], rows=rows, source=TabularSource.EXCEL, total_rows=len(rows)
        )
        lines = parse_script_lines_from_structured_data(
            table, ColumnMapping(role_name_column="Role", source_text_column="Text")
        )

        assert len(lines) <= len(rows)
        assert [line.line_number for line in lines] == list(range(1, len(lines) + 1))
        assert all(line.role_name for line in lines)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_dialogue_lines_are_sequential(self, seed: int) -> None:
        lines = extract_dialogue_lines(_random_text(random.Random(seed)))
        assert [line.line_number for line in lines] == list(range(1, len(lines) + 1))

    @pytest.mark.parametrize("seed", SEEDS)
    def test_detection_always_classifies(self, seed: int) -> None:
        rng = random.Random(seed)
        text_lines = [_random_chars(rng, 60) for _ in range(rng.randint(0, 80))]
        assert detect_content_type(DetectionOptions(text_lines=text_lines)) in set(ContentType)


class TestScriptLineSchemaProperties:
    @pytest.mark.parametrize("seed", SEEDS)
    def test_non_positive_line_number_rejected(self, seed: int) -> None:
        rng = random.Random(seed)
        with pytest.raises(ValidationError):
            ValidatedScriptLine(line_number=rng.randint(-1000, 0), role_name="JOHN")

    @pytest.mark.parametrize("seed", SEEDS)
    def test_positive_line_number_accepted(self, seed: int) -> None:
        rng = random.Random(seed)
        name = "".join(rng.choice("ABCDEFGHIJ KLMN") for _ in range(rng.randint(0, 20)))
        line = ValidatedScriptLine(line_number=rng.randint(1, 100000), role_name=f"R{name}")
        assert line.role_name.startswith("R")
