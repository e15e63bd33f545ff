"""Data models and enums shared by every pipeline stage.

All entities are value objects scoped to one pipeline invocation. Nothing
here touches storage; ``to_dict`` renders enums as plain values for JSON.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Union

from scriptcast.diagnostics import Diagnostic

# A tabular cell as handed back by a spreadsheet/table reader.
CellValue = Union[str, int, float, None]
Row = dict[str, CellValue]


def _plain(value: Any) -> Any:
    """Recursively convert enums inside asdict() output to their values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


class WarningType(str, Enum):
    """Kind of advisory warning attached to a parse result."""

    POSSIBLE_DUPLICATE = "possible_duplicate"
    POSSIBLE_GROUP = "possible_group"
    AMBIGUOUS_NAME = "ambiguous_name"
    INTERACTION = "interaction"
    COMBINED_ROLE = "combined_role"


class ContentType(str, Enum):
    """Classification of an extracted document."""

    SCREENPLAY = "screenplay"
    TABULAR = "tabular"
    HYBRID = "hybrid"


class TokenType(str, Enum):
    """Line classes produced by the tokenizer."""

    CHARACTER = "CHARACTER"
    DIALOGUE = "DIALOGUE"
    PARENTHETICAL = "PARENTHETICAL"
    SCENE_HEADING = "SCENE_HEADING"
    TRANSITION = "TRANSITION"
    ACTION = "ACTION"
    BLANK = "BLANK"
    SPEAKER_COLON = "SPEAKER_COLON"
    TIMECODE = "TIMECODE"


class RecStatus(str, Enum):
    """Recording status of a dialogue line, as the studio spreadsheets spell it."""

    RECORDED = "הוקלט"
    OPTIONAL = "Optional"
    NOT_RECORDED = "לא הוקלט"


class TabularSource(str, Enum):
    """Origin of a StructuredParseResult."""

    EXCEL = "excel"
    PDF_TABLE = "pdf-table"
    DOCX_TABLE = "docx-table"
    TEXT_TABULAR = "text-tabular"


class MatchReason(str, Enum):
    """Why the fuzzy matcher paired two character names."""

    COMBINED_ROLE = "combined_role"
    LEVENSHTEIN = "levenshtein"
    NICKNAME = "nickname"
    CONTAINS = "contains"
    TITLE_VARIANT = "title_variant"


class FileStatus(str, Enum):
    """Outcome of processing one file in a batch."""

    SUCCESS = "success"
    ERROR = "error"


class EditType(str, Enum):
    """Corrective edit a user can apply to a parsed bundle."""

    MERGE = "merge"
    RENAME = "rename"
    DELETE = "delete"
    MARK_GROUP = "mark_group"


# ---------------------------------------------------------------------------
# Script parser results
# ---------------------------------------------------------------------------


@dataclass
class ExtractedCharacter:
    """A speaking role extracted from a script."""

    name: str
    normalized_name: str
    replica_count: int = 1
    first_appearance: int = 1
    variants: list[str] = field(default_factory=list)
    possible_group: bool = False
    parent_name: str | None = None
    combined_role: list[str] | None = None

    def add_variant(self, raw_name: str) -> None:
        if raw_name not in self.variants:
            self.variants.append(raw_name)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Interaction:
    """Two characters speaking in the same scene."""

    character_a: str
    character_b: str
    line_number: int
    scene_reference: str | None = None

    @property
    def pair_key(self) -> frozenset[str]:
        return frozenset((self.character_a, self.character_b))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ParserWarning:
    """Advisory message; never blocks downstream processing."""

    type: WarningType
    message: str
    characters: list[str] = field(default_factory=list)
    line_reference: int | None = None

    @property
    def dedup_key(self) -> tuple[str, tuple[str, ...]]:
        return (self.type.value, tuple(sorted(self.characters)))

    def to_dict(self) -> dict[str, Any]:
        return _plain(asdict(self))


@dataclass
class ParseMetadata:
    total_lines: int = 0
    total_replicas: int = 0
    parse_time_ms: float = 0.0


@dataclass
class ScriptParseResult:
    """Characters, warnings and interactions found in one or more scripts."""

    characters: list[ExtractedCharacter] = field(default_factory=list)
    warnings: list[ParserWarning] = field(default_factory=list)
    interactions: list[Interaction] = field(default_factory=list)
    metadata: ParseMetadata = field(default_factory=ParseMetadata)

    def get_character(self, normalized_name: str) -> ExtractedCharacter | None:
        for character in self.characters:
            if character.normalized_name == normalized_name:
                return character
        return None

    def to_dict(self) -> dict[str, Any]:
        return _plain(asdict(self))


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Token:
    """One classified source line."""

    type: TokenType
    text: str
    line: int
    indent: int = 0
    character_name: str | None = None
    content: str | None = None


@dataclass
class DialogueLine:
    text: str
    line: int


@dataclass
class DialogueBlock:
    """A speaker cue and the dialogue lines attributed to it."""

    character_name: str
    character_line: int
    dialogue_lines: list[DialogueLine] = field(default_factory=list)


@dataclass
class TokenizeResult:
    tokens: list[Token] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Tabular data
# ---------------------------------------------------------------------------


@dataclass
class ScriptLineInput:
    """A flat dialogue row: the common currency of tabular sources."""

    line_number: int
    role_name: str
    timecode: str | None = None
    actor_id: str | None = None
    source_text: str | None = None
    translation: str | None = None
    rec_status: RecStatus | None = None
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _plain(asdict(self))


@dataclass
class StructuredParseResult:
    """Headers plus header-keyed rows, regardless of the source format."""

    headers: list[str]
    rows: list[Row]
    source: TabularSource
    sheet_name: str | None = None
    total_rows: int = 0

    def to_dict(self) -> dict[str, Any]:
        return _plain(asdict(self))


@dataclass
class ColumnMapping:
    """Which header feeds which ScriptLineInput field.

    An empty ``role_name_column`` means the role column was not detected.
    """

    role_name_column: str = ""
    timecode_column: str | None = None
    source_text_column: str | None = None
    translation_column: str | None = None
    rec_status_column: str | None = None
    notes_column: str | None = None
    skip_empty_role: bool = True
    sheet_index: int = 0

    def configured_columns(self) -> list[tuple[str, str]]:
        """Return (field label, header) pairs for every column that is set."""
        pairs = [
            ("role", self.role_name_column),
            ("timecode", self.timecode_column),
            ("source text", self.source_text_column),
            ("translation", self.translation_column),
            ("rec status", self.rec_status_column),
            ("notes", self.notes_column),
        ]
        return [(label, header) for label, header in pairs if header]


@dataclass
class ColumnDetection:
    mapping: ColumnMapping
    confidence: int
    detected_fields: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Fuzzy matching
# ---------------------------------------------------------------------------


@dataclass
class SimilarityMatch:
    character1: str
    character2: str
    similarity: float
    reason: MatchReason

    def to_dict(self) -> dict[str, Any]:
        return _plain(asdict(self))


@dataclass
class CharacterGroup:
    """Normalized names that should be cast as one role family."""

    primary_name: str
    members: list[str]
    total_replicas: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


@dataclass
class FileOutcome:
    """Per-file status row in a batch report."""

    name: str
    size: str
    status: FileStatus
    error: str | None = None
    content_type: ContentType | None = None

    def to_dict(self) -> dict[str, Any]:
        return _plain(asdict(self))


@dataclass
class RenamedCharacter:
    source: str
    target: str


@dataclass
class MergedCharacters:
    primary: str
    duplicates: list[str]


@dataclass
class SuggestedCharacter:
    name: str
    normalized_name: str
    estimated_replicas: int
    reason: str = ""


@dataclass
class VerificationResult:
    """Corrections proposed by an external verifier (e.g. a review service)."""

    success: bool
    source: str
    timestamp: str
    added_characters: list[SuggestedCharacter] = field(default_factory=list)
    removed_characters: list[str] = field(default_factory=list)
    renamed_characters: list[RenamedCharacter] = field(default_factory=list)
    merged_characters: list[MergedCharacters] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ParsedScriptBundle:
    """Everything the UI and persistence adapter receive from one batch."""

    parse_result: ScriptParseResult
    character_groups: list[CharacterGroup] = field(default_factory=list)
    similarity_matches: list[SimilarityMatch] = field(default_factory=list)
    extraction_warnings: list[str] = field(default_factory=list)
    files: list[FileOutcome] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    script_lines: list[ScriptLineInput] = field(default_factory=list)
    verified: bool = False
    verification: VerificationResult | None = None

    def to_dict(self) -> dict[str, Any]:
        return _plain(asdict(self))


@dataclass
class UserEdit:
    """A corrective edit. Which fields are used depends on ``type``."""

    type: EditType
    characters: list[str] = field(default_factory=list)
    new_name: str | None = None
    character: str | None = None


@dataclass
class RoleForDatabase:
    role_name: str
    role_name_normalized: str
    replicas_needed: int
    parent_role_id: str | None = None
    source: str = "script"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ConflictForDatabase:
    role_name_a: str
    role_name_b: str
    warning_type: str = "same_scene"
    scene_reference: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
