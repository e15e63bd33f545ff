"""Exception hierarchy for scriptcast.

Core transforms never raise on bad input; these are only used at the
edges (file extraction, workbook routing and configuration loading).
"""

from __future__ import annotations

from scriptcast.diagnostics import Diagnostic


class ScriptcastError(Exception):
    """Base class for all scriptcast errors."""


class ExtractionError(ScriptcastError):
    """A file could not be read or decoded into text or rows."""


class UnsupportedFormatError(ExtractionError):
    """The file extension is not handled by any extractor."""

    def __init__(self, extension: str) -> None:
        self.extension = extension
        super().__init__(f"Unsupported file format: .{extension}")


class ConfigError(ScriptcastError):
    """A configuration file is malformed."""


class TableMappingError(ScriptcastError):
    """No table in a workbook could be mapped to script lines.

    ``diagnostics`` holds the column-mapping problems found on each sheet.
    """

    def __init__(self, message: str, diagnostics: list[Diagnostic] | None = None) -> None:
        self.diagnostics = list(diagnostics or [])
        super().__init__(message)
