"""
Cross-entity predicates evaluated before mutations.

Each check only reads through the gateway and returns a bool; translating a
failed check into a domain error is the caller's job.
"""

from typing import Any
from uuid import UUID

from ..config import settings
from ..store.base import EntityGateway, EntityKind


async def name_is_exist(
    gateway: EntityGateway,
    kind: EntityKind,
    field_name: str,
    value: Any,
    exclude_id: UUID | None = None,
) -> bool:
    """True when another active ``kind`` record has ``field_name == value``."""
    return await gateway.exists(kind, {field_name: value}, exclude_id=exclude_id)


async def referential_block(gateway: EntityGateway, school_id: UUID) -> bool:
    """True while at least one active student has ``school_id`` as its school."""
    return await gateway.exists(EntityKind.STUDENT, {"school_id": school_id})


def role_is_protected(role: str) -> bool:
    return role in settings.protected_roles


def self_action_guard(actor_id: UUID | None, target_id: UUID) -> bool:
    """True when the actor targets itself."""
    return actor_id is not None and actor_id == target_id


async def exists_active(gateway: EntityGateway, kind: EntityKind, id: UUID) -> bool:
    return await gateway.exists(kind, {"id": id})
