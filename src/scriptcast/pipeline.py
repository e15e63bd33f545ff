"""Batch orchestration: extract, route, parse, merge and match.

Composes the extraction layer, content detector, normalizer, screenplay
parser, structured parser and fuzzy matcher into one call:

    bundle = parse_script_files([Path("ep01.pdf"), Path("ep02.docx")])

Files are processed sequentially by ``process_file``, a worker that never
raises: every failure becomes a ``FileFailure`` carrying the message, so one
bad file never aborts the batch.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from scriptcast.config import DEFAULT_CONFIG, ParserConfig
from scriptcast.detector import DetectionOptions, detect_content_type
from scriptcast.diagnostics import Diagnostic, Severity
from scriptcast.edits import apply_verification_corrections
from scriptcast.exceptions import ScriptcastError, TableMappingError
from scriptcast.extraction.tables import largest_table
from scriptcast.extraction.text import ExtractedDocument, extract_document, file_info
from scriptcast.matching.fuzzy import (
    find_similar_characters,
    generate_similarity_warnings,
    group_similar_characters,
)
from scriptcast.models import (
    ContentType,
    FileOutcome,
    FileStatus,
    ParsedScriptBundle,
    ScriptLineInput,
    ScriptParseResult,
    StructuredParseResult,
    TabularSource,
    VerificationResult,
)
from scriptcast.normalizer import normalize_text, split_lines, unicode_cleanup
from scriptcast.screenplay.parser import merge_parse_results, parse_script
from scriptcast.tabular.columns import auto_detect_columns
from scriptcast.tabular.structured import (
    characters_from_script_lines,
    parse_and_validate_structured_data,
    split_text_table,
)
from scriptcast.tokenizer import tokenize

logger = logging.getLogger(__name__)

FILE_BREAK = "\n\n--- FILE BREAK ---\n\n"

Extractor = Callable[[Path, ParserConfig], ExtractedDocument]
Verifier = Callable[[ScriptParseResult, str], VerificationResult]


@dataclass
class FileSuccess:
    """A file that was read and parsed."""

    outcome: FileOutcome
    parse_result: ScriptParseResult
    raw_text: str = ""
    warnings: list[str] = field(default_factory=list)
    script_lines: list[ScriptLineInput] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


@dataclass
class FileFailure:
    """A file that could not be processed; ``outcome.error`` says why."""

    outcome: FileOutcome
    diagnostics: list[Diagnostic] = field(default_factory=list)


FileResult = Union[FileSuccess, FileFailure]


@dataclass
class _Parsed:
    content_type: ContentType
    parse_result: ScriptParseResult
    script_lines: list[ScriptLineInput] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


def _default_extractor(path: Path, config: ParserConfig) -> ExtractedDocument:
    return extract_document(path, config)


def _parse_table(
    table: StructuredParseResult, config: ParserConfig
) -> tuple[ScriptParseResult | None, list[ScriptLineInput], list[Diagnostic]]:
    """Structured path: auto-map columns, validate rows, count roles.

    Returns a None parse result when no usable line came out of the table.
    """
    mapping = auto_detect_columns(table.headers)
    outcome = parse_and_validate_structured_data(table, mapping, config)
    if not outcome.lines:
        return None, [], outcome.diagnostics
    return characters_from_script_lines(outcome.lines, config), outcome.lines, outcome.diagnostics


def _parse_screenplay(text: str, config: ParserConfig) -> _Parsed:
    normalized = normalize_text(text, config)
    return _Parsed(
        content_type=ContentType.SCREENPLAY,
        parse_result=parse_script(normalized, config),
        diagnostics=tokenize(normalized).diagnostics,
    )


def _with_fallback(
    table: StructuredParseResult, text: str, content_type: ContentType, config: ParserConfig
) -> _Parsed:
    """Parse *table*; when it yields nothing, parse *text* as a screenplay."""
    result, lines, diagnostics = _parse_table(table, config)
    if result is not None:
        return _Parsed(content_type, result, lines, diagnostics)
    parsed = _parse_screenplay(text, config)
    parsed.content_type = ContentType.SCREENPLAY
    parsed.diagnostics = diagnostics + parsed.diagnostics
    return parsed


def detect_document(
    document: ExtractedDocument, extension: str, config: ParserConfig | None = None
) -> ContentType:
    """Classify an extracted document from its text and table signals.

    Workbooks are always tabular. Detection runs on the cleaned but
    un-normalized text, since normalization collapses column gaps.
    """
    if extension == ".xlsx":
        return ContentType.TABULAR
    table = largest_table(document.tables)
    options = DetectionOptions(
        text_lines=split_lines(unicode_cleanup(document.text)),
        pdf_aligned_columns=document.pdf_aligned_columns,
        pdf_row_count=document.pdf_row_count,
    )
    if table is not None and table.source is TabularSource.DOCX_TABLE:
        options.docx_has_tables = True
        options.docx_table_row_count = table.total_rows
    return detect_content_type(options, config)


def route_document(document: ExtractedDocument, extension: str, config: ParserConfig) -> _Parsed:
    """Pick the screenplay or structured path for one extracted document."""
    if extension == ".xlsx":
        problems: list[Diagnostic] = []
        for table in document.tables:
            result, lines, diagnostics = _parse_table(table, config)
            if result is not None:
                return _Parsed(ContentType.TABULAR, result, lines, diagnostics)
            problems.extend(diagnostics)
        errors = [d.message for d in problems if d.severity is Severity.ERROR]
        raise TableMappingError(
            errors[0] if errors else "No sheet with a recognizable role column was found",
            problems,
        )

    content_type = detect_document(document, extension, config)
    logger.debug("Detected %s content", content_type.value)
    if content_type is not ContentType.TABULAR:
        parsed = _parse_screenplay(document.text, config)
        parsed.content_type = content_type
        return parsed

    table = largest_table(document.tables)
    if table is None:
        table = split_text_table(unicode_cleanup(document.text))
    return _with_fallback(table, document.text, content_type, config)


def process_file(
    path: Path,
    config: ParserConfig | None = None,
    extractor: Extractor | None = None,
) -> FileResult:
    """Extract and parse one file. Never raises.

    Args:
        path: Script file (TXT, PDF, DOCX or XLSX).
        config: Thresholds and supported extensions.
        extractor: Replacement for ``extract_document`` (used by tests and
            callers that already hold the file contents).

    Returns:
        FileSuccess with the parse result, or FileFailure with the message.
    """
    config = config or DEFAULT_CONFIG
    extractor = extractor or _default_extractor
    path = Path(path)
    info = file_info(path, config)

    if not info.supported and info.extension != "doc":
        logger.warning("Skipping %s: unsupported format .%s", path.name, info.extension)
        return FileFailure(
            FileOutcome(
                name=path.name,
                size=info.size,
                status=FileStatus.ERROR,
                error=f"Unsupported file format: .{info.extension}",
            )
        )

    try:
        document = extractor(path, config)
        parsed = route_document(document, path.suffix.lower(), config)
    except ScriptcastError as e:
        logger.warning("Failed to process %s: %s", path.name, e)
        diagnostics = e.diagnostics if isinstance(e, TableMappingError) else []
        return FileFailure(
            FileOutcome(path.name, info.size, FileStatus.ERROR, error=str(e)),
            diagnostics=diagnostics,
        )
    except Exception as e:  # third-party decoders raise their own types
        logger.warning("Unexpected error processing %s: %s", path.name, e, exc_info=True)
        return FileFailure(
            FileOutcome(path.name, info.size, FileStatus.ERROR, error=str(e) or type(e).__name__)
        )

    logger.info(
        "Processed %s (%s): %d characters, %d lines",
        path.name,
        parsed.content_type.value,
        len(parsed.parse_result.characters),
        parsed.parse_result.metadata.total_lines,
    )
    return FileSuccess(
        outcome=FileOutcome(
            name=path.name,
            size=info.size,
            status=FileStatus.SUCCESS,
            content_type=parsed.content_type,
        ),
        parse_result=parsed.parse_result,
        raw_text=document.text,
        warnings=[f"{path.name}: {w}" for w in document.warnings],
        script_lines=parsed.script_lines,
        diagnostics=parsed.diagnostics,
    )


def parse_script_files(
    paths: Sequence[Path],
    *,
    config: ParserConfig | None = None,
    similarity_threshold: float | None = None,
    verifier: Verifier | None = None,
    auto_apply_verification: bool = False,
    extractor: Extractor | None = None,
) -> ParsedScriptBundle:
    """Run the full ingestion pipeline over a batch of files.

    Args:
        paths: Files to process, in order.
        config: Thresholds; defaults to ``DEFAULT_CONFIG``.
        similarity_threshold: Overrides ``config.similarity_threshold``.
        verifier: Optional ``verify(result, raw_text)`` hook that reviews
            the merged result, e.g. an external checking service.
        auto_apply_verification: Apply the verifier's corrections instead
            of only attaching them to the bundle.
        extractor: Replacement for the file extractor.

    Returns:
        ParsedScriptBundle with merged characters, groups, similarity
        matches and one FileOutcome per input path.
    """
    config = config or DEFAULT_CONFIG
    threshold = (
        similarity_threshold if similarity_threshold is not None else config.similarity_threshold
    )

    results: list[ScriptParseResult] = []
    outcomes: list[FileOutcome] = []
    extraction_warnings: list[str] = []
    diagnostics: list[Diagnostic] = []
    script_lines: list[ScriptLineInput] = []
    raw_texts: list[str] = []

    for path in paths:
        file_result = process_file(path, config, extractor)
        outcomes.append(file_result.outcome)
        diagnostics.extend(file_result.diagnostics)
        if isinstance(file_result, FileFailure):
            continue
        results.append(file_result.parse_result)
        extraction_warnings.extend(file_result.warnings)
        script_lines.extend(file_result.script_lines)
        raw_texts.append(file_result.raw_text)

    merged = merge_parse_results(results)
    matches = find_similar_characters(merged.characters, threshold)
    merged.warnings.extend(generate_similarity_warnings(matches))
    groups = group_similar_characters(merged.characters)

    verified = False
    verification: VerificationResult | None = None
    if verifier is not None and merged.characters:
        try:
            verification = verifier(merged, FILE_BREAK.join(raw_texts))
            verified = verification.success
            if auto_apply_verification and verification.success:
                merged = apply_verification_corrections(merged, verification)
                groups = group_similar_characters(merged.characters)
        except Exception as e:  # the hook is caller-supplied
            logger.warning("Verification step failed: %s", e)
            extraction_warnings.append(f"Verification failed: {e}")

    logger.info(
        "Parsed %d of %d file(s): %d characters, %d similar pair(s)",
        len(results),
        len(outcomes),
        len(merged.characters),
        len(matches),
    )
    return ParsedScriptBundle(
        parse_result=merged,
        character_groups=groups,
        similarity_matches=matches,
        extraction_warnings=extraction_warnings,
        files=outcomes,
        diagnostics=diagnostics,
        script_lines=script_lines,
        verified=verified,
        verification=verification,
    )
