"""Dubbing-studio script ingestion: roles, replica counts and scene conflicts."""

__version__ = "0.1.0"

from scriptcast.config import DEFAULT_CONFIG, ParserConfig, load_config
from scriptcast.edits import apply_user_edits
from scriptcast.export import convert_to_db_format
from scriptcast.models import (
    ExtractedCharacter,
    ParsedScriptBundle,
    ScriptLineInput,
    ScriptParseResult,
    UserEdit,
)
from scriptcast.pipeline import parse_script_files
from scriptcast.screenplay.parser import parse_script

__all__ = [
    "DEFAULT_CONFIG",
    "ParserConfig",
    "load_config",
    "parse_script",
    "parse_script_files",
    "apply_user_edits",
    "convert_to_db_format",
    "ExtractedCharacter",
    "ParsedScriptBundle",
    "ScriptLineInput",
    "ScriptParseResult",
    "UserEdit",
    "__version__",
]
