"""In-process entity store for development servers and tests."""

import asyncio
import copy
import uuid
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from ..logging import get_logger
from .base import (
    LIST_FIELDS,
    EntityGateway,
    EntityKind,
    Record,
    Status,
    Update,
    UpdateOne,
    apply_update,
)

logger = get_logger(__name__)


class MemoryEntityGateway(EntityGateway):
    """Dictionary-backed gateway.

    Records are deep-copied on the way in and out so callers never share
    state with the store. Insertion order is preserved for ``find``.
    """

    def __init__(self) -> None:
        self._collections: dict[EntityKind, dict[UUID, Record]] = {
            kind: {} for kind in EntityKind
        }
        self._lock = asyncio.Lock()

    def _matches(
        self,
        kind: EntityKind,
        record: Record,
        filters: dict[str, Any] | None,
        exclude_id: UUID | None,
        include_deleted: bool,
    ) -> bool:
        if kind.soft_deletable and not include_deleted:
            if record.get("status") == Status.DELETED.value:
                return False
        if exclude_id is not None and record["id"] == exclude_id:
            return False
        for name, expected in (filters or {}).items():
            value = record.get(name)
            if name in LIST_FIELDS[kind]:
                if expected not in (value or []):
                    return False
            elif value != expected:
                return False
        return True

    async def find(
        self,
        kind: EntityKind,
        filters: dict[str, Any] | None = None,
        *,
        exclude_id: UUID | None = None,
        include_deleted: bool = False,
    ) -> list[Record]:
        async with self._lock:
            return [
                copy.deepcopy(record)
                for record in self._collections[kind].values()
                if self._matches(kind, record, filters, exclude_id, include_deleted)
            ]

    async def find_many(
        self,
        kind: EntityKind,
        field_name: str,
        values: Sequence[Any],
        *,
        include_deleted: bool = False,
    ) -> list[Record]:
        wanted = set(values)
        async with self._lock:
            return [
                copy.deepcopy(record)
                for record in self._collections[kind].values()
                if record.get(field_name) in wanted
                and self._matches(kind, record, None, None, include_deleted)
            ]

    async def create(self, kind: EntityKind, doc: Record) -> Record:
        now = datetime.now(UTC)
        record = copy.deepcopy(doc)
        record.setdefault("id", uuid.uuid4())
        record.setdefault("created_at", now)
        if kind.soft_deletable:
            record.setdefault("status", Status.ACTIVE.value)
            record.setdefault("updated_at", now)
        async with self._lock:
            self._collections[kind][record["id"]] = record
        logger.debug("Record created", kind=kind.value, id=str(record["id"]))
        return copy.deepcopy(record)

    def _update_locked(
        self,
        kind: EntityKind,
        filters: dict[str, Any],
        update: Update,
        include_deleted: bool,
    ) -> Record | None:
        for record in self._collections[kind].values():
            if self._matches(kind, record, filters, None, include_deleted):
                apply_update(record, update)
                if kind.soft_deletable:
                    record["updated_at"] = datetime.now(UTC)
                return record
        return None

    async def update_one(
        self,
        kind: EntityKind,
        filters: dict[str, Any],
        update: Update,
        *,
        include_deleted: bool = False,
    ) -> Record | None:
        async with self._lock:
            record = self._update_locked(kind, filters, update, include_deleted)
            return copy.deepcopy(record) if record is not None else None

    async def bulk_write(self, kind: EntityKind, ops: Iterable[UpdateOne]) -> None:
        async with self._lock:
            for op in ops:
                self._update_locked(kind, op.filters, op.update, include_deleted=False)

    async def delete_one(self, kind: EntityKind, id: UUID) -> bool:
        async with self._lock:
            return self._collections[kind].pop(id, None) is not None
