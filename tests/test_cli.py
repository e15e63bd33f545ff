"""Tests for the scriptcast CLI (typer CliRunner)."""

from __future__ import annotations

import json

from openpyxl import Workbook
from typer.testing import CliRunner

from scriptcast.cli import app

runner = CliRunner()

TAB_TABLE = (
    "Timecode\tCharacter\tDialogue\n"
    "00:00:01\tJOHN\tHello there.\n"
    "00:00:03\tMARY\tHi John.\n"
    "00:00:05\tJOHN\tHow are you?\n"
    "00:00:08\tMARY\tFine.\n"
    "00:00:10\tMIKE\tMe too.\n"
)


class TestParseCommand:
    def test_table_output(self, write_script, screenplay_text) -> None:
        result = runner.invoke(app, ["parse", str(write_script("ep01.txt", screenplay_text))])

        assert result.exit_code == 0, result.output
        assert "Characters (3)" in result.output
        assert "JOHN" in result.output
        assert "Total replicas:" in result.output

    def test_json_output(self, write_script, screenplay_text) -> None:
        result = runner.invoke(
            app, ["parse", "--json", str(write_script("ep01.txt", screenplay_text))]
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        names = [c["normalized_name"] for c in data["parse_result"]["characters"]]
        assert names == ["JOHN", "SARAH", "MIKE"]
        assert data["files"][0]["status"] == "success"

    def test_every_file_failing_exits_nonzero(self, write_script) -> None:
        result = runner.invoke(app, ["parse", str(write_script("notes.rtf", "JOHN"))])
        assert result.exit_code == 1

    def test_bad_config(self, write_script, screenplay_text) -> None:
        config = write_script("config.json", "{oops")
        result = runner.invoke(
            app,
            ["parse", "--config", str(config), str(write_script("ep01.txt", screenplay_text))],
        )

        assert result.exit_code == 1
        assert "Error:" in result.output


class TestRolesCommand:
    def test_roles_json(self, write_script, screenplay_text) -> None:
        result = runner.invoke(app, ["roles", str(write_script("ep01.txt", screenplay_text))])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert sorted(r["role_name_normalized"] for r in data["roles"]) == [
            "JOHN",
            "MIKE",
            "SARAH",
        ]
        assert len(data["conflicts"]) == 2


class TestLinesCommand:
    def test_text_table(self, write_script) -> None:
        result = runner.invoke(app, ["lines", str(write_script("table.txt", TAB_TABLE))])

        assert result.exit_code == 0, result.output
        assert "Script Lines (5)" in result.output

    def test_transcript(self, write_script, transcript_text) -> None:
        result = runner.invoke(app, ["lines", str(write_script("pad.txt", transcript_text))])

        assert result.exit_code == 0, result.output
        assert "Script Lines (2)" in result.output
        assert "PADDINGTON" in result.output

    def test_sheet_out_of_range(self, tmp_path) -> None:
        workbook = Workbook()
        workbook.active.append(["Character", "Dialogue"])
        workbook.active.append(["JOHN", "Hi."])
        path = tmp_path / "script.xlsx"
        workbook.save(path)

        result = runner.invoke(app, ["lines", "--sheet", "3", str(path)])

        assert result.exit_code == 1
        assert "out of range" in result.output

    def test_unreadable_file(self, write_script) -> None:
        result = runner.invoke(app, ["lines", str(write_script("empty.txt", "   "))])

        assert result.exit_code == 1
        assert "File appears to be empty" in result.output


class TestDetectCommand:
    def test_screenplay(self, write_script, screenplay_text) -> None:
        result = runner.invoke(app, ["detect", str(write_script("ep01.txt", screenplay_text))])

        assert result.exit_code == 0, result.output
        assert "screenplay" in result.output

    def test_table(self, write_script) -> None:
        result = runner.invoke(app, ["detect", str(write_script("table.txt", TAB_TABLE))])

        assert result.exit_code == 0, result.output
        assert "tabular" in result.output
