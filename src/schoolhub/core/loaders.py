"""
Request-scoped batch loaders.

Every ``load`` issued during the same event-loop turn is coalesced by
strawberry's ``DataLoader`` into one ``find_many`` call. Duplicate keys are
collapsed by the loader cache, results are mapped back onto the requested key
order, and keys the store does not return (missing or soft-deleted) resolve
to ``None``.
"""

import asyncio
import contextlib
from collections.abc import Awaitable, Callable, Hashable, Sequence
from typing import Any
from uuid import UUID

from strawberry.dataloader import DataLoader

from ..errors import BackendUnavailable
from ..logging import get_logger
from ..store.base import EntityGateway, EntityKind, Record

logger = get_logger(__name__)

BatchFn = Callable[[list[Any]], Awaitable[list[Record | None]]]


def order_by_keys(
    keys: Sequence[Hashable], records: Sequence[Record], field_name: str = "id"
) -> list[Record | None]:
    """Align ``records`` with ``keys``; absent keys map to None."""
    records_map = {record[field_name]: record for record in records}
    return [records_map.get(key) for key in keys]


def make_batch_fn(
    gateway: EntityGateway,
    kind: EntityKind,
    field_name: str = "id",
    timeout: float | None = None,
) -> BatchFn:
    """Build a batch function fetching active ``kind`` records by ``field_name``.

    A gateway failure or timeout raises ``BackendUnavailable``, which the
    DataLoader propagates to every key of the batch.
    """

    async def batch(keys: list[Any]) -> list[Record | None]:
        logger.debug("Dispatching batch", kind=kind.value, field=field_name, size=len(keys))
        try:
            records = await asyncio.wait_for(
                gateway.find_many(kind, field_name, keys), timeout=timeout
            )
        except TimeoutError as e:
            logger.error("Batch load timed out", kind=kind.value, timeout=timeout)
            raise BackendUnavailable(f"Timed out loading {kind.value} records") from e
        return order_by_keys(keys, records, field_name)

    return batch


class Loaders:
    """One set of DataLoaders per incoming GraphQL operation.

    Never share an instance between requests: its cache would serve records
    that a concurrent mutation has since changed.
    """

    def __init__(self, gateway: EntityGateway, timeout: float | None = None):
        self.gateway = gateway
        self.user: DataLoader[UUID, Record | None] = DataLoader(
            load_fn=make_batch_fn(gateway, EntityKind.USER, timeout=timeout)
        )
        self.school: DataLoader[UUID, Record | None] = DataLoader(
            load_fn=make_batch_fn(gateway, EntityKind.SCHOOL, timeout=timeout)
        )
        self.student: DataLoader[UUID, Record | None] = DataLoader(
            load_fn=make_batch_fn(gateway, EntityKind.STUDENT, timeout=timeout)
        )
        self.student_by_user: DataLoader[UUID, Record | None] = DataLoader(
            load_fn=make_batch_fn(gateway, EntityKind.STUDENT, "user_id", timeout=timeout)
        )

    def for_kind(self, kind: EntityKind) -> DataLoader[UUID, Record | None]:
        if kind is EntityKind.USER:
            return self.user
        if kind is EntityKind.SCHOOL:
            return self.school
        if kind is EntityKind.STUDENT:
            return self.student
        raise ValueError(f"No loader for {kind.value}")

    def forget(self, kind: EntityKind, id: UUID) -> None:
        """Drop a cached record after it was mutated in this request.

        Keys that were never loaded are ignored.
        """
        with contextlib.suppress(KeyError):
            self.for_kind(kind).clear(id)
        if kind is EntityKind.STUDENT:
            self.student_by_user.clear_all()

    def prime(self, kind: EntityKind, record: Record) -> None:
        """Seed the cache with a record this request just wrote."""
        self.for_kind(kind).prime(record["id"], record, force=True)
