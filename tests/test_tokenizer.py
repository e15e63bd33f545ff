"""Tokenizer tests."""

from __future__ import annotations

from scriptcast.diagnostics import Severity
from scriptcast.models import TokenType
from scriptcast.tokenizer import group_dialogue_blocks, tokenize


def _types(text: str) -> list[TokenType]:
    return [token.type for token in tokenize(text).tokens]


class TestTokenize:
    def test_empty_input(self) -> None:
        """An empty string is one blank line, not an error."""
        result = tokenize("")
        assert [t.type for t in result.tokens] == [TokenType.BLANK]
        assert result.diagnostics == []

    def test_speaker_colon_lines(self, transcript_text: str) -> None:
        tokens = [t for t in tokenize(transcript_text).tokens if t.type is TokenType.SPEAKER_COLON]
        assert len(tokens) == 2
        assert [t.character_name for t in tokens] == ["PADDINGTON", "MR. BROWN"]
        assert [t.content for t in tokens] == ["Hello!", "Welcome."]

    def test_screenplay_elements(self, screenplay_text: str) -> None:
        result = tokenize(screenplay_text)
        by_type: dict[TokenType, list[str]] = {}
        for token in result.tokens:
            by_type.setdefault(token.type, []).append(token.character_name or token.content or "")

        assert by_type[TokenType.SCENE_HEADING] == ["INT. KITCHEN - DAY", "EXT. GARDEN - NIGHT"]
        assert by_type[TokenType.CHARACTER] == ["JOHN", "SARAH", "JOHN", "SARAH", "MIKE"]
        assert len(by_type[TokenType.DIALOGUE]) == 5
        assert by_type[TokenType.ACTION] == ["John enters, carrying groceries."]
        assert result.diagnostics == []

    def test_line_numbers_are_preserved(self, screenplay_text: str) -> None:
        tokens = tokenize(screenplay_text).tokens
        assert [t.line for t in tokens] == list(range(1, len(tokens) + 1))

    def test_timecode_and_transition(self) -> None:
        assert _types("00:01:02:03\nCUT TO:") == [TokenType.TIMECODE, TokenType.TRANSITION]

    def test_bare_name_needs_indented_follower(self) -> None:
        """An unindented caps line is a cue only when indented text follows."""
        assert _types("MARY\n    Hello.") == [TokenType.CHARACTER, TokenType.DIALOGUE]
        assert _types("THE DOOR OPENS\nShe walks in.") == [TokenType.ACTION, TokenType.ACTION]

    def test_parenthetical_between_cue_and_dialogue(self) -> None:
        text = "          JOHN\n          (quietly)\n     I know."
        assert _types(text) == [TokenType.CHARACTER, TokenType.PARENTHETICAL, TokenType.DIALOGUE]

    def test_cue_without_dialogue_is_reported(self) -> None:
        result = tokenize("                    JOHN\n\nINT. HOUSE - DAY")
        assert len(result.diagnostics) == 1
        diagnostic = result.diagnostics[0]
        assert diagnostic.severity is Severity.INFO
        assert diagnostic.message == 'Speaker cue "JOHN" has no dialogue'
        assert diagnostic.line == 1


class TestDialogueBlocks:
    def test_colon_blocks_carry_inline_text(self, transcript_text: str) -> None:
        blocks = group_dialogue_blocks(tokenize(transcript_text).tokens)
        assert [(b.character_name, b.character_line) for b in blocks] == [
            ("PADDINGTON", 1),
            ("MR. BROWN", 2),
        ]
        assert [line.text for line in blocks[0].dialogue_lines] == ["Hello!"]

    def test_screenplay_blocks(self, screenplay_text: str) -> None:
        blocks = group_dialogue_blocks(tokenize(screenplay_text).tokens)
        assert [b.character_name for b in blocks] == ["JOHN", "SARAH", "JOHN", "SARAH", "MIKE"]
        assert [line.text for line in blocks[0].dialogue_lines] == ["Hello, Sarah."]
        assert blocks[0].dialogue_lines[0].line == 6

    def test_action_closes_block(self) -> None:
        tokens = tokenize("MARY\n    Hello.\nShe leaves.\n    Stray indented text").tokens
        blocks = group_dialogue_blocks(tokens)
        assert len(blocks) == 1
        assert [line.text for line in blocks[0].dialogue_lines] == ["Hello."]
