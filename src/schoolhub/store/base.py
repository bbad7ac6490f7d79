"""Entity store gateway interface shared by every backend."""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import UUID

Record = dict[str, Any]


class EntityKind(str, Enum):
    """Entity collections known to the store."""

    USER = "user"
    SCHOOL = "school"
    STUDENT = "student"
    ERROR_LOG = "error_log"

    @property
    def soft_deletable(self) -> bool:
        return self is not EntityKind.ERROR_LOG


class Status(str, Enum):
    """Lifecycle status; ``DELETED`` is terminal."""

    ACTIVE = "active"
    DELETED = "deleted"


# Fields holding a set of values; equality filters on them test membership.
LIST_FIELDS: dict[EntityKind, frozenset[str]] = {
    EntityKind.USER: frozenset({"roles"}),
    EntityKind.SCHOOL: frozenset({"students"}),
    EntityKind.STUDENT: frozenset(),
    EntityKind.ERROR_LOG: frozenset(),
}


@dataclass
class Update:
    """Patch applied to a single record.

    ``add_to_set`` appends each value if absent, ``pull`` removes every
    occurrence. Both only apply to list-valued fields.
    """

    set_fields: dict[str, Any] = field(default_factory=dict)
    add_to_set: dict[str, Any] = field(default_factory=dict)
    pull: dict[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.set_fields or self.add_to_set or self.pull)


@dataclass
class UpdateOne:
    """One operation of a ``bulk_write`` batch."""

    filters: dict[str, Any]
    update: Update


def apply_update(record: Record, update: Update) -> Record:
    """Apply ``update`` to ``record`` in place and return it."""
    record.update(update.set_fields)
    for name, value in update.add_to_set.items():
        values = list(record.get(name) or [])
        if value not in values:
            values.append(value)
        record[name] = values
    for name, value in update.pull.items():
        record[name] = [item for item in record.get(name) or [] if item != value]
    return record


class EntityGateway(ABC):
    """Abstract document-style store for users, schools, students and error logs.

    Reads exclude soft-deleted records unless ``include_deleted`` is set.
    Implementations raise ``BackendUnavailable`` on I/O failure.
    """

    @abstractmethod
    async def find(
        self,
        kind: EntityKind,
        filters: dict[str, Any] | None = None,
        *,
        exclude_id: UUID | None = None,
        include_deleted: bool = False,
    ) -> list[Record]:
        """Return every record of ``kind`` matching ``filters``."""
        pass

    @abstractmethod
    async def find_many(
        self,
        kind: EntityKind,
        field_name: str,
        values: Sequence[Any],
        *,
        include_deleted: bool = False,
    ) -> list[Record]:
        """Return records whose ``field_name`` is in ``values``, in any order."""
        pass

    @abstractmethod
    async def create(self, kind: EntityKind, doc: Record) -> Record:
        """Insert a new record and return it with its generated id."""
        pass

    @abstractmethod
    async def update_one(
        self,
        kind: EntityKind,
        filters: dict[str, Any],
        update: Update,
        *,
        include_deleted: bool = False,
    ) -> Record | None:
        """Patch the first record matching ``filters``; return it or None."""
        pass

    @abstractmethod
    async def bulk_write(self, kind: EntityKind, ops: Iterable[UpdateOne]) -> None:
        """Apply several ``UpdateOne`` ops in a single round-trip (not atomic)."""
        pass

    @abstractmethod
    async def delete_one(self, kind: EntityKind, id: UUID) -> bool:
        """Remove a record permanently. Only used to compensate failed creates."""
        pass

    async def find_one(
        self,
        kind: EntityKind,
        filters: dict[str, Any] | None = None,
        *,
        exclude_id: UUID | None = None,
        include_deleted: bool = False,
    ) -> Record | None:
        records = await self.find(
            kind, filters, exclude_id=exclude_id, include_deleted=include_deleted
        )
        return records[0] if records else None

    async def exists(
        self,
        kind: EntityKind,
        filters: dict[str, Any] | None = None,
        *,
        exclude_id: UUID | None = None,
        include_deleted: bool = False,
    ) -> bool:
        record = await self.find_one(
            kind, filters, exclude_id=exclude_id, include_deleted=include_deleted
        )
        return record is not None

    async def find_by_ids(self, kind: EntityKind, ids: Sequence[UUID]) -> list[Record]:
        return await self.find_many(kind, "id", ids)

    async def close(self) -> None:
        """Release backend resources."""
        return None
