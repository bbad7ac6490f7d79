"""Tests for keeping school student lists in step with students."""

import uuid
from unittest.mock import AsyncMock, patch

import pytest

from schoolhub.core.relationships import RelationshipMaintainer
from schoolhub.errors import BackendUnavailable, ReferenceNotFound
from schoolhub.store.base import EntityKind, Update


async def _student(gateway, school_id):
    return await gateway.create(
        EntityKind.STUDENT, {"email": f"{uuid.uuid4().hex}@example.com", "school_id": school_id}
    )


async def _school_students(gateway, school_id):
    record = await gateway.find_one(EntityKind.SCHOOL, {"id": school_id}, include_deleted=True)
    return record["students"]


class TestRelationshipMaintainer:
    @pytest.mark.asyncio
    async def test_attach_adds_once(self, gateway, school):
        maintainer = RelationshipMaintainer(gateway)
        student = await _student(gateway, school["id"])

        await maintainer.attach_student(student["id"], school["id"])
        await maintainer.attach_student(student["id"], school["id"])

        assert await _school_students(gateway, school["id"]) == [student["id"]]

    @pytest.mark.asyncio
    async def test_attach_requires_active_school(self, gateway, school):
        await gateway.update_one(
            EntityKind.SCHOOL, {"id": school["id"]}, Update(set_fields={"status": "deleted"})
        )

        with pytest.raises(ReferenceNotFound, match="School does not exist"):
            await RelationshipMaintainer(gateway).attach_student(uuid.uuid4(), school["id"])

    @pytest.mark.asyncio
    async def test_move_updates_both_schools_in_one_bulk_write(
        self, gateway, school, other_school
    ):
        maintainer = RelationshipMaintainer(gateway)
        student = await _student(gateway, school["id"])
        await maintainer.attach_student(student["id"], school["id"])

        with patch.object(gateway, "bulk_write", wraps=gateway.bulk_write) as bulk_write:
            await maintainer.move_student(student["id"], school["id"], other_school["id"])

        assert bulk_write.await_count == 1
        assert await _school_students(gateway, school["id"]) == []
        assert await _school_students(gateway, other_school["id"]) == [student["id"]]

    @pytest.mark.asyncio
    async def test_move_to_same_school_is_noop(self, gateway, school):
        maintainer = RelationshipMaintainer(gateway)
        with patch.object(gateway, "bulk_write", AsyncMock()) as bulk_write:
            await maintainer.move_student(uuid.uuid4(), school["id"], school["id"])
        bulk_write.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_move_to_missing_school_writes_nothing(self, gateway, school):
        maintainer = RelationshipMaintainer(gateway)
        with patch.object(gateway, "bulk_write", AsyncMock()) as bulk_write:
            with pytest.raises(ReferenceNotFound):
                await maintainer.move_student(uuid.uuid4(), school["id"], uuid.uuid4())
        bulk_write.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_detach_scans_every_listing_school(self, gateway, school, other_school):
        maintainer = RelationshipMaintainer(gateway)
        student = await _student(gateway, school["id"])
        # A stale entry left behind in another school is cleaned up as well
        for school_id in (school["id"], other_school["id"]):
            await gateway.update_one(
                EntityKind.SCHOOL, {"id": school_id}, Update(add_to_set={"students": student["id"]})
            )

        affected = await maintainer.detach_student(student["id"])

        assert set(affected) == {school["id"], other_school["id"]}
        assert await _school_students(gateway, school["id"]) == []
        assert await _school_students(gateway, other_school["id"]) == []

    @pytest.mark.asyncio
    async def test_detach_unlisted_student(self, gateway):
        assert await RelationshipMaintainer(gateway).detach_student(uuid.uuid4()) == []

    @pytest.mark.asyncio
    async def test_errors_propagate(self, gateway, school):
        failing = AsyncMock(side_effect=BackendUnavailable("down"))
        with patch.object(gateway, "update_one", failing):
            with pytest.raises(BackendUnavailable):
                await RelationshipMaintainer(gateway).attach_student(uuid.uuid4(), school["id"])


class TestReconcile:
    @pytest.mark.asyncio
    async def test_reconcile_school_rebuilds_from_students(self, gateway, school):
        kept = await _student(gateway, school["id"])
        gone = await _student(gateway, school["id"])
        await gateway.update_one(
            EntityKind.STUDENT, {"id": gone["id"]}, Update(set_fields={"status": "deleted"})
        )
        stray = uuid.uuid4()
        await gateway.update_one(
            EntityKind.SCHOOL,
            {"id": school["id"]},
            Update(set_fields={"students": [stray, gone["id"], stray]}),
        )

        record = await RelationshipMaintainer(gateway).reconcile_school(school["id"])

        assert record["students"] == [kept["id"]]

    @pytest.mark.asyncio
    async def test_reconcile_school_leaves_consistent_index(self, gateway, school):
        maintainer = RelationshipMaintainer(gateway)
        student = await _student(gateway, school["id"])
        await maintainer.attach_student(student["id"], school["id"])

        with patch.object(gateway, "update_one", wraps=gateway.update_one) as update_one:
            record = await maintainer.reconcile_school(school["id"])

        update_one.assert_not_awaited()
        assert record["students"] == [student["id"]]

    @pytest.mark.asyncio
    async def test_reconcile_all_counts_repairs(self, gateway, school, other_school):
        maintainer = RelationshipMaintainer(gateway)
        student = await _student(gateway, school["id"])
        await maintainer.attach_student(student["id"], school["id"])
        await gateway.update_one(
            EntityKind.SCHOOL,
            {"id": other_school["id"]},
            Update(set_fields={"students": [uuid.uuid4()]}),
        )

        assert await maintainer.reconcile_all() == 1
        assert await _school_students(gateway, other_school["id"]) == []
        assert await maintainer.reconcile_all() == 0
