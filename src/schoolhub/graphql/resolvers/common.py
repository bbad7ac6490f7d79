"""Helpers shared by the entity resolvers."""

import dataclasses
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from ...store.base import Status, Update


def input_to_dict(input: Any) -> dict[str, Any]:
    """Turn a strawberry input object into a dict, dropping unset fields."""
    data = dataclasses.asdict(input) if dataclasses.is_dataclass(input) else dict(input)
    return {key: value for key, value in data.items() if value is not None}


def soft_delete(actor_id: UUID) -> Update:
    """Patch moving a record to the terminal ``deleted`` status."""
    return Update(
        set_fields={
            "status": Status.DELETED.value,
            "deleted_by": actor_id,
            "deleted_at": datetime.now(UTC),
        }
    )
