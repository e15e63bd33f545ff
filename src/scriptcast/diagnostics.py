"""Structured diagnostics shared by every pipeline stage.

Each stage reports problems as ``Diagnostic`` records instead of raising, so
a caller (CLI, UI, log sink) can surface them uniformly:

    collector = DiagnosticCollector()
    collector.warn("normalizer", "Joined broken line", line=42)
    for diag in collector.all():  # errors first, then warnings, then info
        print(diag.format())
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


_SEVERITY_ORDER = {Severity.ERROR: 0, Severity.WARNING: 1, Severity.INFO: 2}


@dataclass(frozen=True)
class Diagnostic:
    """One problem found by a pipeline stage.

    Attributes:
        severity: error, warning or info.
        message: Human-readable description.
        source: Pipeline stage that produced it (e.g. "tokenizer", "validation").
        line: Optional 1-based line in the source file.
        column: Optional 1-based column.
        context: Optional snippet of the offending content.
    """

    severity: Severity
    message: str
    source: str
    line: int | None = None
    column: int | None = None
    context: str | None = None

    def format(self) -> str:
        loc = ""
        if self.line is not None:
            loc = f":{self.line}"
            if self.column is not None:
                loc += f":{self.column}"
        ctx = f' -> "{self.context}"' if self.context else ""
        return f"[{self.severity.value.upper()}] {self.source}{loc}: {self.message}{ctx}"


def sort_diagnostics(diagnostics: list[Diagnostic]) -> list[Diagnostic]:
    """Stable sort by severity: error, warning, info."""
    return sorted(diagnostics, key=lambda d: _SEVERITY_ORDER[d.severity])


class DiagnosticCollector:
    """Accumulates diagnostics across pipeline stages."""

    def __init__(self) -> None:
        self._items: list[Diagnostic] = []

    def add(self, diagnostic: Diagnostic) -> None:
        self._items.append(diagnostic)

    def add_all(self, diagnostics: list[Diagnostic]) -> None:
        self._items.extend(diagnostics)

    def error(
        self, source: str, message: str, line: int | None = None, context: str | None = None
    ) -> None:
        self._items.append(Diagnostic(Severity.ERROR, message, source, line, context=context))

    def warn(
        self, source: str, message: str, line: int | None = None, context: str | None = None
    ) -> None:
        self._items.append(Diagnostic(Severity.WARNING, message, source, line, context=context))

    def info(
        self, source: str, message: str, line: int | None = None, context: str | None = None
    ) -> None:
        self._items.append(Diagnostic(Severity.INFO, message, source, line, context=context))

    def all(self) -> list[Diagnostic]:
        """All diagnostics sorted by severity (error -> warning -> info)."""
        return sort_diagnostics(self._items)

    def errors(self) -> list[Diagnostic]:
        return [d for d in self._items if d.severity is Severity.ERROR]

    def warnings(self) -> list[Diagnostic]:
        return [d for d in self._items if d.severity is Severity.WARNING]

    def has_errors(self) -> bool:
        return any(d.severity is Severity.ERROR for d in self._items)

    def count(self) -> int:
        return len(self._items)

    def clear(self) -> None:
        self._items = []

    def format(self) -> str:
        """All diagnostics as one newline-separated string, for logging."""
        return "\n".join(d.format() for d in self.all())


def summarize_diagnostics(diagnostics: list[Diagnostic]) -> str:
    """Short summary like ``"2 errors, 5 warnings"`` for status lines."""
    counts = {severity: 0 for severity in Severity}
    for diag in diagnostics:
        counts[diag.severity] += 1

    labels = (
        (Severity.ERROR, "error", "errors"),
        (Severity.WARNING, "warning", "warnings"),
        (Severity.INFO, "note", "notes"),
    )
    parts = [
        f"{counts[sev]} {singular if counts[sev] == 1 else plural}"
        for sev, singular, plural in labels
        if counts[sev]
    ]
    return ", ".join(parts) or "no issues"
