"""PostgreSQL entity store built on async SQLAlchemy."""

from collections.abc import AsyncGenerator, Iterable, Sequence
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import ColumnElement, delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.connection import get_async_session
from ..database.models import Base, ErrorLogs, Schools, Students, Users, column_names, row_to_dict
from ..errors import BackendUnavailable, ConflictAlreadyExists
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

MODELS: dict[EntityKind, type[Base]] = {
    EntityKind.USER: Users,
    EntityKind.SCHOOL: Schools,
    EntityKind.STUDENT: Students,
    EntityKind.ERROR_LOG: ErrorLogs,
}

# JSONB list fields that hold entity ids
ID_LIST_FIELDS = frozenset({"students"})


def encode_list_value(value: Any) -> Any:
    return str(value) if isinstance(value, UUID) else value


def decode_record(kind: EntityKind, record: Record) -> Record:
    """Turn JSONB list columns back into Python values."""
    for name in LIST_FIELDS[kind]:
        values = record.get(name) or []
        if name in ID_LIST_FIELDS:
            values = [UUID(str(value)) for value in values]
        record[name] = list(values)
    return record


def encode_record(kind: EntityKind, record: Record) -> Record:
    """Keep only mapped columns and serialise list columns for JSONB."""
    names = set(column_names(MODELS[kind]))
    encoded = {name: value for name, value in record.items() if name in names}
    for name in LIST_FIELDS[kind]:
        if name in encoded:
            encoded[name] = [encode_list_value(value) for value in encoded[name] or []]
    return encoded


def build_conditions(
    kind: EntityKind,
    filters: dict[str, Any] | None,
    exclude_id: UUID | None = None,
    include_deleted: bool = False,
) -> list[ColumnElement[bool]]:
    """Translate equality filters into WHERE clauses.

    List-valued columns match on JSONB containment (``@>``). The active-status
    clause is added here and nowhere else.
    """
    model = MODELS[kind]
    conditions: list[ColumnElement[bool]] = []
    if kind.soft_deletable and not include_deleted:
        conditions.append(model.status != Status.DELETED.value)
    if exclude_id is not None:
        conditions.append(model.id != exclude_id)
    for name, value in (filters or {}).items():
        column = getattr(model, name)
        if name in LIST_FIELDS[kind]:
            conditions.append(column.contains([encode_list_value(value)]))
        else:
            conditions.append(column == value)
    return conditions


class SqlEntityGateway(EntityGateway):
    """Gateway over the shared async session pool."""

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with get_async_session() as session:
                yield session
        except IntegrityError as e:
            logger.warning("Uniqueness constraint violated", error=str(e.orig))
            raise ConflictAlreadyExists("Record already exists") from e
        except (SQLAlchemyError, OSError) as e:
            logger.error("Entity store unavailable", error=str(e))
            raise BackendUnavailable("Entity store unavailable") from e

    def _to_record(self, kind: EntityKind, row: Base) -> Record:
        return decode_record(kind, row_to_dict(row))

    async def find(
        self,
        kind: EntityKind,
        filters: dict[str, Any] | None = None,
        *,
        exclude_id: UUID | None = None,
        include_deleted: bool = False,
    ) -> list[Record]:
        model = MODELS[kind]
        stmt = (
            select(model)
            .where(*build_conditions(kind, filters, exclude_id, include_deleted))
            .order_by(model.created_at)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            return [self._to_record(kind, row) for row in result.scalars().all()]

    async def find_many(
        self,
        kind: EntityKind,
        field_name: str,
        values: Sequence[Any],
        *,
        include_deleted: bool = False,
    ) -> list[Record]:
        if not values:
            return []
        model = MODELS[kind]
        stmt = select(model).where(
            getattr(model, field_name).in_(list(values)),
            *build_conditions(kind, None, include_deleted=include_deleted),
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            return [self._to_record(kind, row) for row in result.scalars().all()]

    async def create(self, kind: EntityKind, doc: Record) -> Record:
        row = MODELS[kind](**encode_record(kind, doc))
        async with self._session() as session:
            session.add(row)
            await session.flush()
            await session.refresh(row)
            return self._to_record(kind, row)

    async def _update_in_session(
        self,
        session: AsyncSession,
        kind: EntityKind,
        filters: dict[str, Any],
        update: Update,
        include_deleted: bool,
    ) -> Record | None:
        model = MODELS[kind]
        stmt = (
            select(model)
            .where(*build_conditions(kind, filters, include_deleted=include_deleted))
            .limit(1)
            .with_for_update()
        )
        row = (await session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None

        record = apply_update(self._to_record(kind, row), update)
        encoded = encode_record(kind, record)
        touched = set(update.set_fields) | set(update.add_to_set) | set(update.pull)
        for name in touched:
            setattr(row, name, encoded[name])
        if kind.soft_deletable:
            row.updated_at = datetime.now(UTC)
        await session.flush()
        return self._to_record(kind, row)

    async def update_one(
        self,
        kind: EntityKind,
        filters: dict[str, Any],
        update: Update,
        *,
        include_deleted: bool = False,
    ) -> Record | None:
        async with self._session() as session:
            return await self._update_in_session(session, kind, filters, update, include_deleted)

    async def bulk_write(self, kind: EntityKind, ops: Iterable[UpdateOne]) -> None:
        async with self._session() as session:
            for op in ops:
                await self._update_in_session(session, kind, op.filters, op.update, False)

    async def delete_one(self, kind: EntityKind, id: UUID) -> bool:
        model = MODELS[kind]
        async with self._session() as session:
            result = await session.execute(delete(model).where(model.id == id))
            return bool(result.rowcount)

    async def close(self) -> None:
        from ..database.connection import dispose_database

        await dispose_database()
