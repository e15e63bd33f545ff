"""Text normalizer: cleans raw extracted text before tokenizing or parsing.

Steps, in order:
1. Unicode NFKC (ligatures, fullwidth forms)
2. Strip bidi/format control characters injected by PDF and DOCX extractors
3. Drop running headers/footers and page-number lines
4. Collapse interior whitespace (leading indent is kept, it marks centering)
5. Expand ``NAME: text`` into a name line plus an indented continuation
6. Repair mid-sentence line wraps

The steps repeat until the text stops changing.

The result is a fixed point: ``normalize_text(normalize_text(x)) == normalize_text(x)``.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from collections import Counter

from scriptcast.config import DEFAULT_CONFIG, ParserConfig

logger = logging.getLogger(__name__)

# ZWSP/ZWNJ/ZWJ, LRM/RLM, ALM, LRE..RLO, word joiner & invisible operators,
# LRI..PDI isolates, BOM, soft hyphen
CONTROL_CHARS_RE = re.compile(
    "[\u00ad\u061c\u200b-\u200f\u202a-\u202e\u2060-\u2064\u2066-\u2069\ufeff]"
)

LINE_SPLIT_RE = re.compile(r"\r\n?|\n")
PAGE_NUMBER_RE = re.compile(r"^\d{1,4}\.?$")
INTERIOR_WHITESPACE_RE = re.compile(r"[ \t]{2,}")
SPEAKER_COLON_RE = re.compile(r"^([A-Z][A-Z0-9 \-'.]{1,40}):\s+(.+)$")
LOWERCASE_START_RE = re.compile(r"^[a-z\u05d0-\u05ea]")

TERMINAL_PUNCTUATION = ".!?:;,\"')…"
CONTINUATION_INDENT = "    "
MAX_PASSES = 8


def unicode_cleanup(text: str) -> str:
    """NFKC-normalize and strip invisible bidi/format characters."""
    if not text:
        return ""
    return CONTROL_CHARS_RE.sub("", unicodedata.normalize("NFKC", text))


def split_lines(text: str) -> list[str]:
    return LINE_SPLIT_RE.split(text)


def _next_non_blank(lines: list[str]) -> list[str | None]:
    """For each index, the next non-blank line after it (or None)."""
    result: list[str | None] = [None] * len(lines)
    upcoming: str | None = None
    for i in range(len(lines) - 1, -1, -1):
        result[i] = upcoming
        if lines[i].strip():
            upcoming = lines[i]
    return result


def _looks_like_cue_block(follower: str | None) -> bool:
    if follower is None:
        return False
    return follower[:1] in (" ", "\t") or follower.strip().startswith("(")


def remove_headers_and_footers(
    lines: list[str], config: ParserConfig = DEFAULT_CONFIG
) -> list[str]:
    """Drop page numbers always, and frequently repeated lines on long inputs.

    A repeated line whose occurrences are mostly followed by indented
    dialogue is a speaker cue, not a running header, and is kept.
    """
    stripped = [line.strip() for line in lines]
    non_empty = [s for s in stripped if s]

    repeated: set[str] = set()
    if len(non_empty) >= config.header_min_lines:
        threshold = max(config.header_min_repeats, config.header_repeat_ratio * len(non_empty))
        candidates = {text for text, n in Counter(non_empty).items() if n >= threshold}
        if candidates:
            followers = _next_non_blank(lines)
            occurrences: Counter[str] = Counter()
            cue_like: Counter[str] = Counter()
            for i, text in enumerate(stripped):
                if text in candidates:
                    occurrences[text] += 1
                    if _looks_like_cue_block(followers[i]):
                        cue_like[text] += 1
            repeated = {t for t in candidates if cue_like[t] * 2 <= occurrences[t]}
            if repeated:
                logger.debug("Dropping %d running header/footer line(s)", len(repeated))

    return [
        line
        for line, text in zip(lines, stripped)
        if not (text and (PAGE_NUMBER_RE.match(text) or text in repeated))
    ]


def collapse_whitespace(line: str) -> str:
    """Collapse interior runs of spaces/tabs; keep the leading indent verbatim."""
    body = line.lstrip()
    if not body:
        return ""
    indent = line[: len(line) - len(body)]
    return indent + INTERIOR_WHITESPACE_RE.sub(" ", body.rstrip())


def expand_speaker_colon(lines: list[str]) -> list[str]:
    """Split ``NAME: text`` into ``NAME`` and an indented continuation line."""
    expanded: list[str] = []
    for line in lines:
        body = line.lstrip()
        match = SPEAKER_COLON_RE.match(body)
        if match:
            remainder = match.group(2).strip()
            if not SPEAKER_COLON_RE.match(remainder) and not PAGE_NUMBER_RE.match(remainder):
                indent = line[: len(line) - len(body)]
                expanded.append(indent + match.group(1).rstrip())
                expanded.append(indent + CONTINUATION_INDENT + remainder)
                continue
        expanded.append(line)
    return expanded


def _is_wrapped(previous: str, line: str, max_length: int) -> bool:
    head = previous.strip()
    if not head or len(head) >= max_length or head.endswith(tuple(TERMINAL_PUNCTUATION)):
        return False
    return bool(LOWERCASE_START_RE.match(line))


def repair_line_wraps(lines: list[str], config: ParserConfig = DEFAULT_CONFIG) -> list[str]:
    """Join short unterminated lines with a following lowercase-initial line."""
    repaired: list[str] = []
    for line in lines:
        if repaired and _is_wrapped(repaired[-1], line, config.wrap_max_length):
            repaired[-1] = f"{repaired[-1]} {line.strip()}"
        else:
            repaired.append(line)
    return repaired


def _normalize_pass(text: str, config: ParserConfig) -> str:
    lines = split_lines(unicode_cleanup(text))
    lines = remove_headers_and_footers(lines, config)
    lines = [collapse_whitespace(line) for line in lines]
    lines = expand_speaker_colon(lines)
    lines = repair_line_wraps(lines, config)
    return "\n".join(lines)


def normalize_text(raw_text: str, config: ParserConfig | None = None) -> str:
    """Clean raw extracted text. Pure; never raises.

    Speaker-colon expansion runs before line-wrap repair, so an expanded
    continuation line is indented and never joined back onto its name.
    The whole pass repeats until the text stops changing: dropping or
    splitting lines can expose a new running header or a new wrap, and
    repeating makes the result a fixed point of this function.

    Args:
        raw_text: Text as handed back by a TXT/PDF/DOCX extractor.
        config: Optional thresholds; defaults to ``DEFAULT_CONFIG``.

    Returns:
        Cleaned text joined with ``\\n``.
    """
    config = config or DEFAULT_CONFIG
    if not raw_text:
        return ""

    text = _normalize_pass(raw_text, config)
    for _ in range(MAX_PASSES - 1):
        cleaned = _normalize_pass(text, config)
        if cleaned == text:
            break
        text = cleaned
    else:
        logger.debug("Normalization did not settle after %d passes", MAX_PASSES)
    return text
