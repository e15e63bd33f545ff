"""Text and table extraction from script files.

Byte-level decoding is delegated to pdfplumber (PDF), python-docx (DOCX)
and openpyxl (XLSX); this module only turns what those libraries hand back
into a plain-text body plus any tables, with advisory warnings.

Unlike the core transforms, extraction *does* raise: ``ExtractionError``
for unreadable files and ``UnsupportedFormatError`` for unknown
extensions. The pipeline turns both into per-file error records.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from zipfile import BadZipFile

import pdfplumber
from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from scriptcast.config import DEFAULT_CONFIG, ParserConfig
from scriptcast.exceptions import ExtractionError, UnsupportedFormatError
from scriptcast.extraction.tables import docx_tables, pdf_tables
from scriptcast.models import StructuredParseResult
from scriptcast.tabular.workbook import read_workbook, sheet_to_structured

logger = logging.getLogger(__name__)

TEXT_ENCODINGS = ("utf-8-sig", "cp1255")
FALLBACK_ENCODING = "latin-1"

# PDF layout: words within 5pt vertically share a line; Courier 12pt is 7.2pt wide
PDF_LINE_BUCKET = 5
PDF_CHAR_WIDTH = 7.2
PDF_WIDE_GAP = 20
PDF_WORD_GAP = 1
WIDE_GAP_FILL = "    "

DOCX_INDENT = " " * 20

MIN_PDF_TEXT_LENGTH = 100
MIN_UPPERCASE_LINES = 5

LOW_TEXT_WARNING = "PDF extraction resulted in very little text. The PDF may be image-based."
FEW_UPPERCASE_WARNING = (
    "Very few uppercase lines detected. Make sure this is a properly formatted screenplay."
)


@dataclass
class ExtractedDocument:
    """Text body, tables and layout signals for one file."""

    text: str = ""
    warnings: list[str] = field(default_factory=list)
    tables: list[StructuredParseResult] = field(default_factory=list)
    pdf_aligned_columns: int = 0
    pdf_row_count: int = 0


@dataclass
class FileInfo:
    name: str
    extension: str
    size: str
    supported: bool


def format_size(size_bytes: int) -> str:
    """Human-readable size: ``512 B``, ``1.5 KB``, ``2.0 MB``."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


def file_info(path: Path, config: ParserConfig = DEFAULT_CONFIG) -> FileInfo:
    path = Path(path)
    extension = path.suffix.lower()
    size = path.stat().st_size if path.exists() else 0
    return FileInfo(
        name=path.name,
        extension=extension.lstrip("."),
        size=format_size(size),
        supported=extension in config.supported_extensions,
    )


def read_text_file(path: Path) -> str:
    """Decode a text file, trying UTF-8 first, then Hebrew Windows-1255.

    Latin-1 maps every byte, so it is the last resort and never fails.
    """
    data = Path(path).read_bytes()
    for encoding in TEXT_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    return data.decode(FALLBACK_ENCODING)


def _pdf_page_lines(page: Any) -> list[str]:
    """Rebuild visual lines from word boxes, keeping relative indentation."""
    words = page.extract_words()
    if not words:
        return []

    buckets: dict[int, list[dict[str, Any]]] = defaultdict(list)
    for word in words:
        if word["text"].strip():
            buckets[round(word["top"] / PDF_LINE_BUCKET)].append(word)

    left = min(word["x0"] for word in words)
    lines = []
    for key in sorted(buckets):
        items = sorted(buckets[key], key=lambda w: w["x0"])
        indent = round((items[0]["x0"] - left) / PDF_CHAR_WIDTH)
        text = items[0]["text"]
        for previous, item in zip(items, items[1:]):
            gap = item["x0"] - previous["x1"]
            if gap > PDF_WIDE_GAP:
                text += WIDE_GAP_FILL
            elif gap > PDF_WORD_GAP:
                text += " "
            text += item["text"]
        lines.append(" " * indent + text)
    return lines


def extract_pdf(path: Path, config: ParserConfig = DEFAULT_CONFIG) -> ExtractedDocument:
    document = ExtractedDocument()
    parts: list[str] = []
    with pdfplumber.open(path) as pdf:
        pages = pdf.pages[: config.max_pdf_pages]
        if len(pdf.pages) > config.max_pdf_pages:
            document.warnings.append(
                f"Only the first {config.max_pdf_pages} of {len(pdf.pages)} pages were read."
            )
        for page in pages:
            parts.extend(_pdf_page_lines(page))
            parts.append("")  # page break
        document.tables = pdf_tables(pages)

    document.text = "\n".join(parts)
    if document.tables:
        document.pdf_aligned_columns = max(len(t.headers) for t in document.tables)
        document.pdf_row_count = max(t.total_rows for t in document.tables)
    if len(document.text.strip()) < MIN_PDF_TEXT_LENGTH:
        document.warnings.append(LOW_TEXT_WARNING)
    return document


def extract_docx(path: Path) -> ExtractedDocument:
    try:
        docx_document = Document(str(path))
    except (PackageNotFoundError, BadZipFile, KeyError) as e:
        raise ExtractionError(
            "Failed to extract text from DOCX. Try converting to TXT format."
        ) from e

    lines = []
    for paragraph in docx_document.paragraphs:
        raw = paragraph.text
        text = raw.replace("\t", " ").strip()
        if not text:
            lines.append("")
            continue
        indented = "\t" in raw or (paragraph.paragraph_format.left_indent or 0) > 0
        lines.append(DOCX_INDENT + text if indented else text)

    return ExtractedDocument(text="\n".join(lines), tables=docx_tables(docx_document))


def extract_xlsx(path: Path) -> ExtractedDocument:
    workbook = read_workbook(path)
    return ExtractedDocument(tables=[sheet_to_structured(sheet) for sheet in workbook.sheets])


def extract_document(path: Path, config: ParserConfig | None = None) -> ExtractedDocument:
    """Extract text, tables and layout signals from a supported file.

    Args:
        path: TXT, PDF, DOCX or XLSX file.
        config: Supported extensions and the PDF page cap.

    Returns:
        ExtractedDocument with advisory warnings.

    Raises:
        UnsupportedFormatError: Unknown extension.
        ExtractionError: Legacy ``.doc``, an empty file, or one that cannot
            be decoded.
    """
    config = config or DEFAULT_CONFIG
    path = Path(path)
    extension = path.suffix.lower()

    if extension == ".doc":
        raise ExtractionError("DOC format is not supported. Please convert to DOCX or TXT.")
    if extension not in config.supported_extensions:
        raise UnsupportedFormatError(extension.lstrip("."))

    if extension == ".xlsx":
        document = extract_xlsx(path)
        if not document.tables:
            raise ExtractionError("Workbook contains no data rows")
        return document

    if extension == ".pdf":
        document = extract_pdf(path, config)
    elif extension == ".docx":
        document = extract_docx(path)
    else:
        document = ExtractedDocument(text=read_text_file(path))

    if not document.text.strip() and not document.tables:
        raise ExtractionError("File appears to be empty")

    stripped = (line.strip() for line in document.text.split("\n"))
    uppercase = [line for line in stripped if line and line == line.upper()]
    if len(uppercase) < MIN_UPPERCASE_LINES and not document.tables:
        document.warnings.append(FEW_UPPERCASE_WARNING)

    logger.debug(
        "Extracted %s: %d chars, %d table(s)", path.name, len(document.text), len(document.tables)
    )
    return document


def extract_text(path: Path, config: ParserConfig | None = None) -> tuple[str, list[str]]:
    """Text body and warnings only, for callers that do not need tables."""
    document = extract_document(path, config)
    return document.text, document.warnings
