"""Tabular subpackage: column detection, row conversion and workbook reading."""

from scriptcast.tabular.columns import auto_detect_columns, auto_detect_columns_with_confidence
from scriptcast.tabular.dialogue import extract_dialogue_lines
from scriptcast.tabular.structured import (
    StructuredParseOutcome,
    characters_from_script_lines,
    parse_and_validate_structured_data,
    parse_script_lines_from_structured_data,
    split_text_table,
)
from scriptcast.tabular.workbook import (
    RoleColumnMapping,
    apply_role_mapping,
    read_workbook,
    sheet_to_structured,
)

__all__ = [
    "auto_detect_columns",
    "auto_detect_columns_with_confidence",
    "extract_dialogue_lines",
    "StructuredParseOutcome",
    "characters_from_script_lines",
    "parse_and_validate_structured_data",
    "parse_script_lines_from_structured_data",
    "split_text_table",
    "RoleColumnMapping",
    "apply_role_mapping",
    "read_workbook",
    "sheet_to_structured",
]
