"""Text normalizer tests."""

from __future__ import annotations

from scriptcast.config import ParserConfig
from scriptcast.normalizer import (
    collapse_whitespace,
    expand_speaker_colon,
    normalize_text,
    remove_headers_and_footers,
    repair_line_wraps,
    unicode_cleanup,
)

RLM = chr(0x200F)
ZWJ = chr(0x200D)
RLE = chr(0x202B)
PDF_MARK = chr(0x202C)
BOM = chr(0xFEFF)


class TestUnicodeCleanup:
    def test_strips_bidi_and_zero_width_characters(self) -> None:
        """Directional marks and joiners injected by extractors are removed."""
        raw = f"{BOM}{RLE}JOHN{RLM}{PDF_MARK}\n  Hel{ZWJ}lo"
        assert unicode_cleanup(raw) == "JOHN\n  Hello"

    def test_nfkc_merges_compatibility_forms(self) -> None:
        """Fullwidth letters and ligatures fold to their plain forms."""
        fullwidth_john = "".join(chr(0xFF00 + ord(c) - 0x20) for c in "JOHN")
        assert unicode_cleanup(fullwidth_john) == "JOHN"
        assert unicode_cleanup(chr(0xFB01) + "ne") == "fine"

    def test_empty_input(self) -> None:
        assert unicode_cleanup("") == ""


class TestHeadersAndFooters:
    def test_page_numbers_always_dropped(self) -> None:
        lines = ["JOHN", "12", "    Hello.", "3."]
        assert remove_headers_and_footers(lines) == ["JOHN", "    Hello."]

    def test_short_input_keeps_repeated_lines(self) -> None:
        """Below the line minimum, only the page-number rule applies."""
        lines = ["Yes.", "No.", "Yes.", "Yes.", "Yes.", "Yes.", "Yes."]
        assert remove_headers_and_footers(lines) == lines

    def test_running_header_dropped_on_long_input(self) -> None:
        """A line repeated on every page of a long script is a running header."""
        lines = []
        for page in range(8):
            lines.append("MY SHOW - EPISODE 1")
            lines.extend(f"Action line {page}-{n} happens here." for n in range(5))
        cleaned = remove_headers_and_footers(lines)
        assert "MY SHOW - EPISODE 1" not in cleaned
        assert len(cleaned) == 40

    def test_repeated_speaker_cue_is_kept(self) -> None:
        """A frequent line followed by indented dialogue is a cue, not a header."""
        lines = []
        for n in range(10):
            lines.extend(["JOHN", f"    Line number {n}.", f"Action {n} happens."])
        cleaned = remove_headers_and_footers(lines)
        assert cleaned.count("JOHN") == 10


class TestWhitespace:
    def test_interior_runs_collapse_and_indent_is_kept(self) -> None:
        assert collapse_whitespace("      JOHN   (V.O.)   ") == "      JOHN (V.O.)"
        assert collapse_whitespace("a\t\tb") == "a b"

    def test_blank_line_becomes_empty(self) -> None:
        assert collapse_whitespace("   \t ") == ""


class TestSpeakerColon:
    def test_colon_line_is_split(self) -> None:
        assert expand_speaker_colon(["PADDINGTON: Hello Mrs Brown"]) == [
            "PADDINGTON",
            "    Hello Mrs Brown",
        ]

    def test_leading_indent_is_preserved(self) -> None:
        assert expand_speaker_colon(["  MR. BROWN: Welcome."]) == ["  MR. BROWN", "      Welcome."]

    def test_prose_with_colon_is_untouched(self) -> None:
        line = "Note: this is lowercase prose"
        assert expand_speaker_colon([line]) == [line]


class TestLineWraps:
    def test_broken_sentence_is_joined(self) -> None:
        lines = ["He walks to the", "door and leaves."]
        assert repair_line_wraps(lines) == ["He walks to the door and leaves."]

    def test_terminated_line_is_not_joined(self) -> None:
        lines = ["He walks out.", "then silence."]
        assert repair_line_wraps(lines) == lines

    def test_long_line_is_not_joined(self) -> None:
        lines = ["x" * 70, "continues here"]
        assert repair_line_wraps(lines, ParserConfig(wrap_max_length=60)) == lines


class TestNormalizeText:
    def test_empty_input(self) -> None:
        assert normalize_text("") == ""

    def test_colon_transcript_becomes_cue_blocks(self, transcript_text: str) -> None:
        assert normalize_text(transcript_text).split("\n") == [
            "PADDINGTON",
            "    Hello!",
            "MR. BROWN",
            "    Welcome.",
            "",
        ]

    def test_idempotent(self, screenplay_text: str, transcript_text: str) -> None:
        """Normalizing twice gives the same text as normalizing once."""
        samples = [
            screenplay_text,
            transcript_text,
            f"{RLM}JOHN:   Hi   there\n12\nHe walks to the\ndoor slowly",
        ]
        for sample in samples:
            once = normalize_text(sample)
            assert normalize_text(once) == once

    def test_bidi_characters_never_survive(self) -> None:
        text = normalize_text(f"{RLE}SARAH{PDF_MARK}\n    {RLM}Shalom")
        for char in (RLE, PDF_MARK, RLM):
            assert char not in text
