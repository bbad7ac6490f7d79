"""Tests for the request-scoped batch loaders."""

import asyncio
import uuid
from unittest.mock import AsyncMock, patch

import pytest

from schoolhub.core.loaders import Loaders, make_batch_fn, order_by_keys
from schoolhub.errors import BackendUnavailable
from schoolhub.store.base import EntityKind, Update


def test_order_by_keys_preserves_request_order():
    a, b, c = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    records = [{"id": c}, {"id": a}]

    ordered = order_by_keys([a, b, c, a], records)

    assert ordered == [{"id": a}, None, {"id": c}, {"id": a}]


async def _create_students(gateway, count):
    return [
        await gateway.create(EntityKind.STUDENT, {"email": f"s{i}@example.com"})
        for i in range(count)
    ]


class TestLoaders:
    @pytest.mark.asyncio
    async def test_load_many_matches_key_order_with_unknowns(self, gateway):
        students = await _create_students(gateway, 3)
        unknown = uuid.uuid4()
        keys = [students[2]["id"], unknown, students[0]["id"], students[1]["id"]]

        results = await Loaders(gateway).student.load_many(keys)

        assert len(results) == len(keys)
        assert results[0]["id"] == students[2]["id"]
        assert results[1] is None
        assert results[2]["id"] == students[0]["id"]
        assert results[3]["id"] == students[1]["id"]

    @pytest.mark.asyncio
    async def test_loads_in_same_turn_are_coalesced(self, gateway):
        students = await _create_students(gateway, 2)
        loaders = Loaders(gateway)

        with patch.object(gateway, "find_many", wraps=gateway.find_many) as find_many:
            first, second = await asyncio.gather(
                loaders.student.load(students[0]["id"]),
                loaders.student.load(students[1]["id"]),
            )

        assert find_many.await_count == 1
        _, field_name, values = find_many.await_args.args
        assert field_name == "id"
        assert set(values) == {students[0]["id"], students[1]["id"]}
        assert first["id"] == students[0]["id"]
        assert second["id"] == students[1]["id"]

    @pytest.mark.asyncio
    async def test_duplicate_keys_fetched_once(self, gateway):
        (student,) = await _create_students(gateway, 1)
        loaders = Loaders(gateway)

        with patch.object(gateway, "find_many", wraps=gateway.find_many) as find_many:
            results = await loaders.student.load_many([student["id"]] * 3)

        assert find_many.await_count == 1
        assert list(find_many.await_args.args[2]) == [student["id"]]
        assert results[0] is results[1] is results[2]

    @pytest.mark.asyncio
    async def test_soft_deleted_record_loads_as_none(self, gateway):
        (student,) = await _create_students(gateway, 1)
        await gateway.update_one(
            EntityKind.STUDENT, {"id": student["id"]}, Update(set_fields={"status": "deleted"})
        )

        assert await Loaders(gateway).student.load(student["id"]) is None

    @pytest.mark.asyncio
    async def test_gateway_failure_rejects_whole_batch(self, gateway):
        loaders = Loaders(gateway)
        failing = AsyncMock(side_effect=BackendUnavailable("down"))

        with patch.object(gateway, "find_many", failing):
            results = await asyncio.gather(
                loaders.school.load(uuid.uuid4()),
                loaders.school.load(uuid.uuid4()),
                return_exceptions=True,
            )

        assert failing.await_count == 1
        assert all(isinstance(result, BackendUnavailable) for result in results)

    @pytest.mark.asyncio
    async def test_timeout_surfaces_backend_unavailable(self, gateway):
        async def slow_find_many(*args, **kwargs):
            await asyncio.sleep(1)
            return []

        loaders = Loaders(gateway, timeout=0.01)
        with patch.object(gateway, "find_many", side_effect=slow_find_many):
            with pytest.raises(BackendUnavailable, match="Timed out"):
                await loaders.user.load(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_scopes_do_not_share_cache(self, gateway):
        (student,) = await _create_students(gateway, 1)
        first_scope = Loaders(gateway)
        assert (await first_scope.student.load(student["id"]))["email"] == "s0@example.com"

        await gateway.update_one(
            EntityKind.STUDENT,
            {"id": student["id"]},
            Update(set_fields={"email": "changed@example.com"}),
        )

        second_scope = Loaders(gateway)
        assert (await second_scope.student.load(student["id"]))["email"] == "changed@example.com"
        # The first scope keeps what it already served
        assert (await first_scope.student.load(student["id"]))["email"] == "s0@example.com"

    @pytest.mark.asyncio
    async def test_forget_reloads_from_store(self, gateway):
        (student,) = await _create_students(gateway, 1)
        loaders = Loaders(gateway)
        await loaders.student.load(student["id"])

        await gateway.update_one(
            EntityKind.STUDENT, {"id": student["id"]}, Update(set_fields={"status": "deleted"})
        )
        loaders.forget(EntityKind.STUDENT, student["id"])

        assert await loaders.student.load(student["id"]) is None

    @pytest.mark.asyncio
    async def test_forget_ignores_keys_never_loaded(self, gateway):
        (student,) = await _create_students(gateway, 1)
        loaders = Loaders(gateway)

        loaders.forget(EntityKind.STUDENT, student["id"])
        loaders.forget(EntityKind.SCHOOL, uuid.uuid4())

        assert (await loaders.student.load(student["id"]))["id"] == student["id"]

    @pytest.mark.asyncio
    async def test_prime_seeds_uncached_key(self, gateway):
        record = {"id": uuid.uuid4(), "email": "primed@example.com"}
        loaders = Loaders(gateway)

        with patch.object(gateway, "find_many", AsyncMock(return_value=[])) as find_many:
            loaders.prime(EntityKind.STUDENT, record)
            loaded = await loaders.student.load(record["id"])

        assert loaded == record
        find_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_prime_replaces_cached_record(self, gateway):
        (student,) = await _create_students(gateway, 1)
        loaders = Loaders(gateway)
        await loaders.student.load(student["id"])

        loaders.prime(EntityKind.STUDENT, {**student, "email": "fresh@example.com"})

        assert (await loaders.student.load(student["id"]))["email"] == "fresh@example.com"

    @pytest.mark.asyncio
    async def test_student_by_user(self, gateway):
        user_id = uuid.uuid4()
        student = await gateway.create(
            EntityKind.STUDENT, {"email": "a@example.com", "user_id": user_id}
        )
        loaders = Loaders(gateway)

        found, missing = await asyncio.gather(
            loaders.student_by_user.load(user_id), loaders.student_by_user.load(uuid.uuid4())
        )

        assert found["id"] == student["id"]
        assert missing is None

    def test_for_kind_rejects_error_logs(self, gateway):
        with pytest.raises(ValueError):
            Loaders(gateway).for_kind(EntityKind.ERROR_LOG)


@pytest.mark.asyncio
async def test_batch_fn_queries_requested_field(gateway):
    batch = make_batch_fn(gateway, EntityKind.STUDENT, "user_id")
    user_id = uuid.uuid4()
    await gateway.create(EntityKind.STUDENT, {"user_id": user_id})

    results = await batch([uuid.uuid4(), user_id])

    assert results[0] is None
    assert results[1]["user_id"] == user_id
