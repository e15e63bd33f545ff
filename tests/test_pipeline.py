"""End-to-end tests for the batch ingestion pipeline."""

from __future__ import annotations

from pathlib import Path

import pytest
from docx import Document
from openpyxl import Workbook

from scriptcast.config import ParserConfig
from scriptcast.diagnostics import Severity
from scriptcast.extraction.text import ExtractedDocument
from scriptcast.models import (
    ContentType,
    FileStatus,
    VerificationResult,
    WarningType,
)
from scriptcast.pipeline import (
    FILE_BREAK,
    FileFailure,
    FileSuccess,
    detect_document,
    parse_script_files,
    process_file,
)

TAB_TABLE = (
    "Timecode\tCharacter\tDialogue\n"
    "00:00:01\tJOHN\tHello there.\n"
    "00:00:03\tMARY\tHi John.\n"
    "00:00:05\tJOHN\tHow are you?\n"
    "00:00:08\tMARY\tFine.\n"
    "00:00:10\tMIKE\tMe too.\n"
)


def _counts(bundle) -> dict[str, int]:
    return {c.normalized_name: c.replica_count for c in bundle.parse_result.characters}


def _verification(**kwargs) -> VerificationResult:
    return VerificationResult(
        success=True, source="test", timestamp="2026-01-01T00:00:00", **kwargs
    )


class TestProcessFile:
    def test_screenplay(self, write_script, screenplay_text: str) -> None:
        result = process_file(write_script("ep01.txt", screenplay_text))

        assert isinstance(result, FileSuccess)
        assert result.outcome.status is FileStatus.SUCCESS
        assert result.outcome.content_type is ContentType.SCREENPLAY
        assert result.raw_text == screenplay_text
        assert result.script_lines == []
        assert len(result.parse_result.characters) == 3

    def test_tabular_text(self, write_script) -> None:
        result = process_file(write_script("table.txt", TAB_TABLE))

        assert isinstance(result, FileSuccess)
        assert result.outcome.content_type is ContentType.TABULAR
        assert len(result.script_lines) == 5
        assert result.script_lines[0].timecode == "00:00:01"
        assert result.parse_result.interactions == []

    def test_unsupported_format(self, write_script) -> None:
        result = process_file(write_script("notes.rtf", "JOHN"))

        assert isinstance(result, FileFailure)
        assert result.outcome.status is FileStatus.ERROR
        assert result.outcome.error == "Unsupported file format: .rtf"

    def test_legacy_doc(self, write_script) -> None:
        result = process_file(write_script("old.doc", "JOHN"))

        assert isinstance(result, FileFailure)
        assert result.outcome.error == "DOC format is not supported. Please convert to DOCX or TXT."

    def test_extractor_exception_is_contained(self, write_script) -> None:
        def explode(path: Path, config: ParserConfig) -> ExtractedDocument:
            raise ValueError("decoder crashed")

        result = process_file(write_script("ep01.txt", "JOHN"), extractor=explode)

        assert isinstance(result, FileFailure)
        assert result.outcome.error == "decoder crashed"

    def test_extraction_warnings_carry_file_name(self, write_script, transcript_text) -> None:
        result = process_file(write_script("pad.txt", transcript_text))
        assert result.warnings[0].startswith("pad.txt: Very few uppercase lines")


class TestRouting:
    def test_docx_table(self, tmp_path: Path) -> None:
        document = Document()
        rows = [("Character", "Dialogue")] + [(f"ROLE {i % 2}", f"Line {i}.") for i in range(6)]
        table = document.add_table(rows=len(rows), cols=2)
        for row, values in zip(table.rows, rows):
            for cell, value in zip(row.cells, values):
                cell.text = value
        path = tmp_path / "table.docx"
        document.save(path)

        result = process_file(path)

        assert result.outcome.content_type is ContentType.TABULAR
        assert {c.normalized_name: c.replica_count for c in result.parse_result.characters} == {
            "ROLE 0": 3,
            "ROLE 1": 3,
        }

    def test_workbook(self, tmp_path: Path) -> None:
        workbook = Workbook()
        notes = workbook.active
        notes.title = "Notes"
        notes.append(["Foo", "Bar"])
        notes.append(["a", "b"])
        script = workbook.create_sheet("Script")
        script.append(["Character", "Dialogue"])
        script.append(["JOHN", "Hi."])
        script.append(["MARY", "Hello."])
        path = tmp_path / "script.xlsx"
        workbook.save(path)

        result = process_file(path)

        assert isinstance(result, FileSuccess)
        assert result.outcome.content_type is ContentType.TABULAR
        assert [line.role_name for line in result.script_lines] == ["JOHN", "MARY"]

    def test_workbook_without_role_column(self, tmp_path: Path) -> None:
        workbook = Workbook()
        workbook.active.append(["Foo", "Bar"])
        workbook.active.append(["a", "b"])
        path = tmp_path / "notes.xlsx"
        workbook.save(path)

        result = process_file(path)

        assert isinstance(result, FileFailure)
        assert result.outcome.error == "No role column is mapped"
        assert [d.message for d in result.diagnostics if d.severity is Severity.ERROR] == [
            "No role column is mapped"
        ]

        bundle = parse_script_files([path])
        assert bundle.files[0].status is FileStatus.ERROR
        assert "No role column is mapped" in [d.message for d in bundle.diagnostics]

    def test_tabular_text_without_role_falls_back(self) -> None:
        text = "\n".join(f"{i:02d}:00:00\tvalue {i}\tother {i}" for i in range(6))

        def extractor(path: Path, config: ParserConfig) -> ExtractedDocument:
            return ExtractedDocument(text=text)

        result = process_file(Path("virtual.txt"), extractor=extractor)

        assert isinstance(result, FileSuccess)
        assert result.outcome.content_type is ContentType.SCREENPLAY
        assert result.parse_result.characters == []
        assert any(d.message == "No role column is mapped" for d in result.diagnostics)

    def test_detect_document(self, screenplay_text: str) -> None:
        assert detect_document(ExtractedDocument(text=screenplay_text), ".txt") is (
            ContentType.SCREENPLAY
        )
        assert detect_document(ExtractedDocument(text=TAB_TABLE), ".txt") is ContentType.TABULAR
        assert detect_document(ExtractedDocument(), ".xlsx") is ContentType.TABULAR


class TestParseScriptFiles:
    def test_batch_with_a_bad_file(self, write_script, screenplay_text, two_scene_text) -> None:
        paths = [
            write_script("ep01.txt", screenplay_text),
            write_script("notes.rtf", "JOHN"),
            write_script("ep02.txt", two_scene_text),
        ]
        bundle = parse_script_files(paths)

        assert [f.status for f in bundle.files] == [
            FileStatus.SUCCESS,
            FileStatus.ERROR,
            FileStatus.SUCCESS,
        ]
        assert _counts(bundle) == {"JOHN": 4, "SARAH": 4, "MIKE": 1}
        assert bundle.parse_result.metadata.total_replicas == 9
        assert not bundle.verified
        assert bundle.verification is None

    def test_all_files_fail(self, write_script) -> None:
        bundle = parse_script_files([write_script("a.rtf", "x"), write_script("b.txt", " ")])

        assert [f.error for f in bundle.files] == [
            "Unsupported file format: .rtf",
            "File appears to be empty",
        ]
        assert bundle.parse_result.characters == []
        assert bundle.character_groups == []

    def test_similar_names_are_flagged(self, write_script) -> None:
        path = write_script("ep.txt", "SARAH\n    Hi.\nSARA\n    Hello.\n")
        bundle = parse_script_files([path])

        assert len(bundle.similarity_matches) == 1
        duplicates = [
            w for w in bundle.parse_result.warnings if w.type is WarningType.POSSIBLE_DUPLICATE
        ]
        assert duplicates[0].message == '"SARAH" and "SARA" are very similar (80% match)'

    def test_threshold_override(self, write_script) -> None:
        path = write_script("ep.txt", "SARAH\n    Hi.\nSARA\n    Hello.\n")
        bundle = parse_script_files([path], similarity_threshold=0.9)
        assert bundle.similarity_matches == []

    def test_groups(self, write_script) -> None:
        path = write_script("ep.txt", "JOHN\n    Hi.\nJOHN\n    Again.\nYOUNG JOHN\n    Hello.\n")
        bundle = parse_script_files([path])

        assert [(g.primary_name, g.members, g.total_replicas) for g in bundle.character_groups] == [
            ("JOHN", ["JOHN", "YOUNG JOHN"], 3)
        ]

    def test_script_lines_collected(self, write_script) -> None:
        bundle = parse_script_files([write_script("table.txt", TAB_TABLE)])

        assert len(bundle.script_lines) == 5
        assert _counts(bundle) == {"JOHN": 2, "MARY": 2, "MIKE": 1}


class TestVerification:
    @pytest.fixture
    def paths(self, write_script, screenplay_text, two_scene_text) -> list[Path]:
        return [write_script("a.txt", screenplay_text), write_script("b.txt", two_scene_text)]

    def test_verifier_receives_joined_text(self, paths, screenplay_text, two_scene_text) -> None:
        seen = {}

        def verifier(result, raw_text):
            seen["raw_text"] = raw_text
            seen["characters"] = len(result.characters)
            return _verification()

        bundle = parse_script_files(paths, verifier=verifier)

        assert seen["raw_text"] == screenplay_text + FILE_BREAK + two_scene_text
        assert seen["characters"] == 3
        assert bundle.verified
        assert bundle.verification.source == "test"

    def test_corrections_attached_but_not_applied(self, paths) -> None:
        bundle = parse_script_files(
            paths, verifier=lambda result, raw: _verification(removed_characters=["MIKE"])
        )

        assert "MIKE" in _counts(bundle)
        assert bundle.verification.removed_characters == ["MIKE"]

    def test_auto_apply(self, paths) -> None:
        bundle = parse_script_files(
            paths,
            verifier=lambda result, raw: _verification(
                removed_characters=["MIKE"], warnings=["Check SARAH"]
            ),
            auto_apply_verification=True,
        )

        assert _counts(bundle) == {"JOHN": 4, "SARAH": 4}
        assert bundle.parse_result.metadata.total_replicas == 8
        assert all("MIKE" not in g.members for g in bundle.character_groups)
        messages = [w.message for w in bundle.parse_result.warnings]
        assert "[Verification] Check SARAH" in messages

    def test_failing_verifier_is_a_warning(self, paths) -> None:
        def verifier(result, raw_text):
            raise RuntimeError("service down")

        bundle = parse_script_files(paths, verifier=verifier)

        assert not bundle.verified
        assert bundle.verification is None
        assert "Verification failed: service down" in bundle.extraction_warnings
        assert "MIKE" in _counts(bundle)

    def test_skipped_without_characters(self, write_script) -> None:
        calls = []
        parse_script_files(
            [write_script("a.rtf", "x")],
            verifier=lambda result, raw: calls.append(result) or _verification(),
        )
        assert calls == []


class TestCustomExtractor:
    def test_in_memory_document(self, screenplay_text: str) -> None:
        def extractor(path: Path, config: ParserConfig) -> ExtractedDocument:
            return ExtractedDocument(text=screenplay_text, warnings=["scanned copy"])

        bundle = parse_script_files([Path("virtual.txt")], extractor=extractor)

        assert _counts(bundle) == {"JOHN": 2, "SARAH": 2, "MIKE": 1}
        assert bundle.files[0].size == "0 B"
        assert bundle.extraction_warnings == ["virtual.txt: scanned copy"]
