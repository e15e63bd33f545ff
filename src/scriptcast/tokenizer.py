"""Lightweight screenplay tokenizer.

Converts cleaned text into a stream of typed tokens in a single forward
pass (O(n) in line count, no backtracking). Line numbers are preserved so
every token can be traced back to its source line.

Classification order (first match wins):
    BLANK -> TIMECODE -> SCENE_HEADING -> TRANSITION -> PARENTHETICAL
    -> SPEAKER_COLON -> CHARACTER (indented) -> CHARACTER (bare, lookahead)
    -> DIALOGUE -> ACTION
"""

from __future__ import annotations

import logging
import re

from scriptcast.diagnostics import DiagnosticCollector
from scriptcast.models import DialogueBlock, DialogueLine, Token, TokenizeResult, TokenType
from scriptcast.screenplay.patterns import (
    PARENTHETICAL_LINE_RE,
    SCENE_HEADING_RE,
    TIMECODE_LINE_RE,
    TRANSITION_RE,
)

logger = logging.getLogger(__name__)

_NAME = r"[A-Zא-ת][A-Z0-9 \-'.א-ת]{0,40}"

# Centered cue: 5+ spaces, ALL-CAPS name, optional (V.O.)/(CONT'D)
CHARACTER_RE = re.compile(r"^(\s{5,})(" + _NAME + r")(\s*\(.*\))?\s*$")
SPEAKER_COLON_RE = re.compile(r"^(" + _NAME + r"):\s+(.+)$")
BARE_CHARACTER_RE = re.compile(r"^(" + _NAME + r")(\s*\(.*\))?\s*$")

LINE_SPLIT_RE = re.compile(r"\r?\n")
CHARACTER_INDENT = 5
DIALOGUE_INDENT = 3
BARE_NAME_MAX = 40

_SPEAKER_TYPES = (TokenType.CHARACTER, TokenType.PARENTHETICAL, TokenType.DIALOGUE)


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def _following_lines(lines: list[str]) -> list[str | None]:
    """For each index, the next non-blank line after it (or None)."""
    following: list[str | None] = [None] * len(lines)
    upcoming: str | None = None
    for i in range(len(lines) - 1, -1, -1):
        following[i] = upcoming
        if lines[i].strip():
            upcoming = lines[i]
    return following


def _bare_character(trimmed: str, following: str | None) -> re.Match[str] | None:
    """An unindented ALL-CAPS name is a cue only if indented text follows it."""
    match = BARE_CHARACTER_RE.match(trimmed)
    if not match:
        return None
    if trimmed != trimmed.upper() or not 2 <= len(trimmed) <= BARE_NAME_MAX:
        return None
    if trimmed.endswith((".", "!", "?")) or following is None:
        return None
    if following.startswith((" ", "\t")) or PARENTHETICAL_LINE_RE.match(following.strip()):
        return match
    return None


def tokenize(text: str) -> TokenizeResult:
    """Classify every line of *text* into a typed token.

    Args:
        text: Cleaned script text (see ``normalize_text``).

    Returns:
        TokenizeResult with one token per source line and diagnostics for
        speaker cues that never received dialogue.
    """
    lines = LINE_SPLIT_RE.split(text)
    following = _following_lines(lines)
    tokens: list[Token] = []
    collector = DiagnosticCollector()
    previous: Token | None = None  # most recent non-blank token
    open_cue: Token | None = None  # cue still waiting for its first dialogue line

    for index, raw in enumerate(lines):
        line_number = index + 1
        trimmed = raw.strip()
        indent = _indent_of(raw)

        if not trimmed:
            tokens.append(Token(TokenType.BLANK, raw, line_number, 0))
            continue

        token: Token
        timecode = TIMECODE_LINE_RE.match(trimmed)
        colon = SPEAKER_COLON_RE.match(trimmed)
        cue = CHARACTER_RE.match(raw)
        bare = None
        if indent < CHARACTER_INDENT:
            bare = _bare_character(trimmed, following[index])

        if timecode:
            token = Token(TokenType.TIMECODE, raw, line_number, indent, content=timecode.group(1))
        elif SCENE_HEADING_RE.match(trimmed):
            token = Token(TokenType.SCENE_HEADING, raw, line_number, indent, content=trimmed)
        elif TRANSITION_RE.match(trimmed):
            token = Token(TokenType.TRANSITION, raw, line_number, indent, content=trimmed)
        elif PARENTHETICAL_LINE_RE.match(trimmed) and indent >= CHARACTER_INDENT:
            token = Token(TokenType.PARENTHETICAL, raw, line_number, indent, content=trimmed)
        elif colon:
            token = Token(
                TokenType.SPEAKER_COLON,
                raw,
                line_number,
                indent,
                character_name=colon.group(1).strip(),
                content=colon.group(2).strip(),
            )
        elif cue:
            token = Token(
                TokenType.CHARACTER, raw, line_number, indent, character_name=cue.group(2).strip()
            )
        elif bare:
            token = Token(
                TokenType.CHARACTER, raw, line_number, indent, character_name=bare.group(1).strip()
            )
        elif indent >= DIALOGUE_INDENT and previous is not None and previous.type in _SPEAKER_TYPES:
            token = Token(TokenType.DIALOGUE, raw, line_number, indent, content=trimmed)
        else:
            token = Token(TokenType.ACTION, raw, line_number, indent, content=trimmed)

        if token.type is TokenType.CHARACTER:
            if open_cue is not None:
                collector.info(
                    "tokenizer",
                    f'Speaker cue "{open_cue.character_name}" has no dialogue',
                    open_cue.line,
                )
            open_cue = token
        elif token.type in (TokenType.DIALOGUE, TokenType.SPEAKER_COLON):
            open_cue = None
        elif token.type is not TokenType.PARENTHETICAL and open_cue is not None:
            collector.info(
                "tokenizer",
                f'Speaker cue "{open_cue.character_name}" has no dialogue',
                open_cue.line,
            )
            open_cue = None

        tokens.append(token)
        previous = token

    if open_cue is not None:
        collector.info(
            "tokenizer", f'Speaker cue "{open_cue.character_name}" has no dialogue', open_cue.line
        )

    logger.debug("Tokenized %d lines", len(lines))
    return TokenizeResult(tokens=tokens, diagnostics=collector.all())


def group_dialogue_blocks(tokens: list[Token]) -> list[DialogueBlock]:
    """Group tokens into speaker blocks: a cue plus its dialogue lines.

    A block starts at every CHARACTER or SPEAKER_COLON token and collects
    DIALOGUE content until a token other than dialogue, blank or
    parenthetical closes it.
    """
    blocks: list[DialogueBlock] = []
    current: DialogueBlock | None = None

    for token in tokens:
        if token.type in (TokenType.CHARACTER, TokenType.SPEAKER_COLON):
            if current is not None:
                blocks.append(current)
            current = DialogueBlock(
                character_name=token.character_name or token.text.strip(),
                character_line=token.line,
            )
            if token.type is TokenType.SPEAKER_COLON and token.content:
                current.dialogue_lines.append(DialogueLine(token.content, token.line))
        elif token.type is TokenType.DIALOGUE and current is not None and token.content:
            current.dialogue_lines.append(DialogueLine(token.content, token.line))
        elif token.type not in (TokenType.BLANK, TokenType.PARENTHETICAL) and current is not None:
            blocks.append(current)
            current = None

    if current is not None:
        blocks.append(current)
    return blocks
