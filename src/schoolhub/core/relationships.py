"""
Keeps ``school.students`` in step with ``student.school_id``.

``student.school_id`` is authoritative; the school-side array is a derived
index written alongside every student create, move and delete. The pair of
writes on a move is batched into one ``bulk_write`` but is not transactional,
so a crash in between can leave the index stale until ``reconcile_school``
runs.
"""

from uuid import UUID

from ..errors import ReferenceNotFound
from ..logging import get_logger
from ..store.base import EntityGateway, EntityKind, Record, Update, UpdateOne

logger = get_logger(__name__)


class RelationshipMaintainer:
    """Two-sided writes between students and their school."""

    def __init__(self, gateway: EntityGateway):
        self.gateway = gateway

    async def require_active_school(self, school_id: UUID) -> Record:
        """Return the active school or raise ``ReferenceNotFound``."""
        school = await self.gateway.find_one(EntityKind.SCHOOL, {"id": school_id})
        if school is None:
            raise ReferenceNotFound("School does not exist")
        return school

    async def attach_student(self, student_id: UUID, school_id: UUID) -> None:
        """Add ``student_id`` to the school's index (no-op if already present)."""
        await self.require_active_school(school_id)
        await self.gateway.update_one(
            EntityKind.SCHOOL,
            {"id": school_id},
            Update(add_to_set={"students": student_id}),
        )
        logger.info(
            "Student attached to school", student_id=str(student_id), school_id=str(school_id)
        )

    async def move_student(
        self, student_id: UUID, old_school_id: UUID | None, new_school_id: UUID
    ) -> None:
        """Pull the student from the old school's index and push it to the new one."""
        await self.require_active_school(new_school_id)
        if old_school_id == new_school_id:
            return

        ops = []
        if old_school_id is not None:
            ops.append(
                UpdateOne(
                    filters={"id": old_school_id}, update=Update(pull={"students": student_id})
                )
            )
        ops.append(
            UpdateOne(
                filters={"id": new_school_id}, update=Update(add_to_set={"students": student_id})
            )
        )
        await self.gateway.bulk_write(EntityKind.SCHOOL, ops)
        logger.info(
            "Student moved between schools",
            student_id=str(student_id),
            old_school_id=str(old_school_id) if old_school_id else None,
            new_school_id=str(new_school_id),
        )

    async def detach_student(self, student_id: UUID) -> list[UUID]:
        """Remove the student from every school listing it.

        Scans the index instead of trusting ``student.school_id`` so that a
        previously stale entry is cleaned up too. Returns the affected school ids.
        """
        schools = await self.gateway.find(EntityKind.SCHOOL, {"students": student_id})
        if not schools:
            return []
        await self.gateway.bulk_write(
            EntityKind.SCHOOL,
            [
                UpdateOne(
                    filters={"id": school["id"]}, update=Update(pull={"students": student_id})
                )
                for school in schools
            ],
        )
        school_ids = [school["id"] for school in schools]
        logger.info(
            "Student detached from schools",
            student_id=str(student_id),
            school_ids=[str(school_id) for school_id in school_ids],
        )
        return school_ids

    async def _reconcile(self, school: Record) -> Record | None:
        students = await self.gateway.find(EntityKind.STUDENT, {"school_id": school["id"]})
        expected = [student["id"] for student in students]
        current = school.get("students", [])
        if set(expected) == set(current) and len(current) == len(set(current)):
            return None

        updated = await self.gateway.update_one(
            EntityKind.SCHOOL, {"id": school["id"]}, Update(set_fields={"students": expected})
        )
        logger.warning(
            "School student index repaired",
            school_id=str(school["id"]),
            before=len(current),
            after=len(expected),
        )
        return updated

    async def reconcile_school(self, school_id: UUID) -> Record:
        """Rebuild one school's index from the active students referencing it."""
        school = await self.require_active_school(school_id)
        return await self._reconcile(school) or school

    async def reconcile_all(self) -> int:
        """Reconcile every active school; return how many were repaired."""
        repaired = 0
        for school in await self.gateway.find(EntityKind.SCHOOL):
            if await self._reconcile(school) is not None:
                repaired += 1
        return repaired
