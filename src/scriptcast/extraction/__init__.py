"""Extraction subpackage: text and tables from TXT, PDF, DOCX and XLSX files."""

from scriptcast.extraction.tables import docx_tables, largest_table, pdf_tables, rows_to_structured
from scriptcast.extraction.text import (
    ExtractedDocument,
    extract_document,
    extract_text,
    file_info,
    format_size,
)

__all__ = [
    "ExtractedDocument",
    "extract_document",
    "extract_text",
    "file_info",
    "format_size",
    "rows_to_structured",
    "docx_tables",
    "pdf_tables",
    "largest_table",
]
