"""Corrective edits on a parsed bundle.

Two sources of corrections exist: the user, through ``apply_user_edits``,
and an optional verifier hook, through ``apply_verification_corrections``.
Both work on deep copies; the input is never mutated.
"""

from __future__ import annotations

import copy
import logging

from scriptcast.models import (
    CharacterGroup,
    EditType,
    ExtractedCharacter,
    ParsedScriptBundle,
    ParserWarning,
    ScriptParseResult,
    UserEdit,
    VerificationResult,
    WarningType,
)

logger = logging.getLogger(__name__)

VERIFICATION_PREFIX = "[Verification]"


def _find(characters: list[ExtractedCharacter], normalized_name: str) -> ExtractedCharacter | None:
    for character in characters:
        if character.normalized_name == normalized_name:
            return character
    return None


def _merge(
    characters: list[ExtractedCharacter],
    groups: list[CharacterGroup],
    names: list[str],
    new_name: str,
) -> tuple[list[ExtractedCharacter], list[CharacterGroup]]:
    targets = [c for c in characters if c.normalized_name in names]
    if len(targets) < 2:
        return characters, groups

    merged = ExtractedCharacter(
        name=new_name,
        normalized_name=new_name.upper(),
        replica_count=sum(c.replica_count for c in targets),
        first_appearance=min(c.first_appearance for c in targets),
        possible_group=any(c.possible_group for c in targets),
    )
    for target in targets:
        for variant in target.variants:
            merged.add_variant(variant)

    characters = [c for c in characters if c.normalized_name not in names]
    characters.append(merged)
    groups = [g for g in groups if not any(member in names for member in g.members)]
    groups.append(
        CharacterGroup(merged.normalized_name, [merged.normalized_name], merged.replica_count)
    )
    return characters, groups


def _absorb(primary: ExtractedCharacter, duplicate: ExtractedCharacter) -> None:
    primary.replica_count += duplicate.replica_count
    for variant in duplicate.variants:
        primary.add_variant(variant)


def _rename(
    characters: list[ExtractedCharacter],
    groups: list[CharacterGroup],
    old_name: str,
    new_name: str,
) -> tuple[list[ExtractedCharacter], list[CharacterGroup]]:
    normalized = new_name.upper()
    if normalized != old_name and _find(characters, normalized) is not None:
        # Renaming onto an existing key folds the two entries together
        return _merge(characters, groups, [old_name, normalized], new_name)

    character = _find(characters, old_name)
    if character is not None:
        character.name = new_name
        character.normalized_name = normalized
    for group in groups:
        if old_name in group.members:
            group.members[group.members.index(old_name)] = normalized
            if group.primary_name == old_name:
                group.primary_name = normalized
    return characters, groups


def apply_user_edits(bundle: ParsedScriptBundle, edits: list[UserEdit]) -> ParsedScriptBundle:
    """Apply corrective edits in order and return a new bundle.

    Supported edits:
        merge: ``characters`` (at least two present) collapse into
            ``new_name``; counts sum, variants union, the earliest first
            appearance and any group flag carry over. Groups that held a
            merged character are replaced by one singleton group.
        rename: ``character`` becomes ``new_name`` in the list and in groups.
            When ``new_name`` is already taken by another character, the two
            are merged as above, keeping normalized names unique.
        delete: ``character`` and every group containing it are removed.
        mark_group: ``character`` gets ``possible_group = True``.

    Edits missing the fields they need are ignored. Afterwards characters
    are re-sorted by replica count and groups by total replicas.

    Args:
        bundle: Pipeline output; not modified.
        edits: Edits to apply, in order.

    Returns:
        A new ParsedScriptBundle.
    """
    result = copy.deepcopy(bundle)
    characters = result.parse_result.characters
    groups = result.character_groups

    for edit in edits:
        if edit.type == EditType.MERGE:
            if len(edit.characters) >= 2 and edit.new_name:
                characters, groups = _merge(characters, groups, edit.characters, edit.new_name)
        elif edit.type == EditType.RENAME:
            if edit.character and edit.new_name:
                characters, groups = _rename(
                    characters, groups, edit.character, edit.new_name
                )
        elif edit.type == EditType.DELETE:
            if edit.character:
                characters = [c for c in characters if c.normalized_name != edit.character]
                groups = [g for g in groups if edit.character not in g.members]
        elif edit.type == EditType.MARK_GROUP:
            character = _find(characters, edit.character or "")
            if character is not None:
                character.possible_group = True
        else:
            logger.debug("Ignoring unknown edit type %r", edit.type)

    characters.sort(key=lambda c: c.replica_count, reverse=True)
    groups.sort(key=lambda g: g.total_replicas, reverse=True)
    result.parse_result.characters = characters
    result.character_groups = groups
    return result


def apply_verification_corrections(
    result: ScriptParseResult, verification: VerificationResult
) -> ScriptParseResult:
    """Fold a verifier's suggestions into a parse result.

    Order: removals, renames (folded into the existing character when the
    target name is taken), additions (skipped when the name already
    exists), merges, then verifier warnings as ``ambiguous_name`` entries.
    """
    corrected = copy.deepcopy(result)
    removed = set(verification.removed_characters)
    characters = [c for c in corrected.characters if c.normalized_name not in removed]

    for rename in verification.renamed_characters:
        character = _find(characters, rename.source)
        if character is None:
            continue
        existing = _find(characters, rename.target.upper())
        if existing is not None and existing is not character:
            _absorb(existing, character)
            characters.remove(character)
        else:
            character.name = rename.target
            character.normalized_name = rename.target.upper()

    for suggestion in verification.added_characters:
        if _find(characters, suggestion.normalized_name) is None:
            characters.append(
                ExtractedCharacter(
                    name=suggestion.name,
                    normalized_name=suggestion.normalized_name,
                    replica_count=suggestion.estimated_replicas,
                    first_appearance=0,
                    variants=[suggestion.name],
                )
            )

    for merge in verification.merged_characters:
        primary = _find(characters, merge.primary)
        if primary is None:
            continue
        for duplicate_name in merge.duplicates:
            duplicate = _find(characters, duplicate_name)
            if duplicate is None or duplicate is primary:
                continue
            _absorb(primary, duplicate)
            characters.remove(duplicate)

    for message in verification.warnings:
        corrected.warnings.append(
            ParserWarning(
                type=WarningType.AMBIGUOUS_NAME,
                message=f"{VERIFICATION_PREFIX} {message}",
            )
        )

    characters.sort(key=lambda c: c.replica_count, reverse=True)
    corrected.characters = characters
    corrected.metadata.total_replicas = sum(c.replica_count for c in characters)
    return corrected
