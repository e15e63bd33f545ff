"""Projection of a parsed bundle onto database rows (roles and conflicts)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from scriptcast.config import DEFAULT_CONFIG, ParserConfig
from scriptcast.models import ConflictForDatabase, ParsedScriptBundle, RoleForDatabase

logger = logging.getLogger(__name__)


@dataclass
class DatabaseProjection:
    roles: list[RoleForDatabase] = field(default_factory=list)
    conflicts: list[ConflictForDatabase] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "roles": [role.to_dict() for role in self.roles],
            "conflicts": [conflict.to_dict() for conflict in self.conflicts],
        }


def convert_to_db_format(
    bundle: ParsedScriptBundle, config: ParserConfig | None = None
) -> DatabaseProjection:
    """Flatten character groups into role rows and interactions into conflicts.

    Each group yields its primary role followed by one child role per other
    member, with ``parent_role_id`` holding the primary's normalized name
    (the caller resolves it to a real id on insert). Members no longer in
    the character list are skipped. At most ``config.max_conflicts``
    interactions are exported.

    Roles come from groups only: a character outside every group is not
    projected. After a delete or merge edit has dropped the groups holding
    the affected names, regroup with ``group_similar_characters`` first if
    the remaining characters should still be exported.
    """
    config = config or DEFAULT_CONFIG
    by_name = {c.normalized_name: c for c in bundle.parse_result.characters}

    roles: list[RoleForDatabase] = []
    for group in bundle.character_groups:
        primary = by_name.get(group.primary_name)
        if primary is not None:
            roles.append(
                RoleForDatabase(
                    role_name=primary.name,
                    role_name_normalized=primary.normalized_name,
                    replicas_needed=primary.replica_count,
                )
            )
        for member_name in group.members:
            member = by_name.get(member_name)
            if member_name == group.primary_name or member is None:
                continue
            roles.append(
                RoleForDatabase(
                    role_name=member.name,
                    role_name_normalized=member.normalized_name,
                    replicas_needed=member.replica_count,
                    parent_role_id=group.primary_name,
                )
            )

    interactions = bundle.parse_result.interactions
    if len(interactions) > config.max_conflicts:
        logger.debug("Exporting %d of %d conflicts", config.max_conflicts, len(interactions))
    conflicts = [
        ConflictForDatabase(
            role_name_a=interaction.character_a,
            role_name_b=interaction.character_b,
            scene_reference=interaction.scene_reference,
        )
        for interaction in interactions[: config.max_conflicts]
    ]
    return DatabaseProjection(roles=roles, conflicts=conflicts)
