"""Configuration loading for the script ingestion pipeline.

All heuristic thresholds live on ``ParserConfig`` so a studio can tune them
from a JSON file without touching code. Core functions take an optional
``config`` argument and fall back to ``DEFAULT_CONFIG``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path

from scriptcast.exceptions import ConfigError


@dataclass(frozen=True)
class ParserConfig:
    """Tunable constants for every pipeline stage, with defaults."""

    # Fuzzy matcher
    similarity_threshold: float = 0.75

    # Normalizer
    header_repeat_ratio: float = 0.15
    header_min_repeats: int = 5
    header_min_lines: int = 30
    wrap_max_length: int = 60

    # Script parser
    max_cue_length: int = 60
    centered_indent: int = 10
    recent_characters_limit: int = 15
    scene_reference_length: int = 80

    # Content detector
    docx_min_table_rows: int = 5
    pdf_min_columns: int = 3
    pdf_min_rows: int = 10
    tabular_line_ratio: float = 0.5

    # Resource caps
    max_tabular_rows: int = 1000
    max_pdf_pages: int = 50
    max_conflicts: int = 100

    supported_extensions: frozenset[str] = field(
        default_factory=lambda: frozenset({".txt", ".pdf", ".docx", ".xlsx"})
    )


DEFAULT_CONFIG = ParserConfig()


def load_config(config_path: Path | None = None) -> ParserConfig:
    """Load parser configuration from JSON, merging with defaults.

    Unknown keys are ignored so older config files keep working. When
    *config_path* is ``None`` or does not exist, the defaults are returned.

    Args:
        config_path: Optional path to a scriptcast JSON config file.

    Returns:
        ParserConfig with values from file merged over defaults.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    if config_path is None or not Path(config_path).exists():
        return DEFAULT_CONFIG

    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a JSON object")

    field_names = {f.name for f in fields(ParserConfig)}
    kwargs: dict[str, object] = {k: v for k, v in data.items() if k in field_names}

    if "supported_extensions" in kwargs:
        kwargs["supported_extensions"] = frozenset(
            ext if ext.startswith(".") else f".{ext}"
            for ext in (str(e).lower() for e in kwargs["supported_extensions"])
        )

    return ParserConfig(**kwargs)
