"""
Tests for school GraphQL resolvers
"""

import uuid

import pytest

from schoolhub.errors import ConflictAlreadyExists, ReferenceNotFound, ReferentialBlock
from schoolhub.graphql.mutations.root import (
    CreateSchoolInput,
    CreateStudentInput,
    UpdateSchoolInput,
)
from schoolhub.graphql.resolvers.school import (
    create_school,
    delete_school,
    reconcile_school,
    resolve_school_by_id,
    resolve_school_students,
    resolve_schools,
    update_school,
)
from schoolhub.graphql.resolvers.student import create_student, delete_student
from schoolhub.store.base import EntityKind, Update


class TestCreateSchool:
    @pytest.mark.asyncio
    async def test_creates_school(self, admin, make_info):
        school = await create_school(
            make_info(admin["id"]),
            CreateSchoolInput(
                brand_name="Eastside",
                long_name="eastside  college",
                address="1 College Road, Eastside",
                city="lyon",
                country="france",
                zipcode="69001",
            ),
        )

        assert school.long_name == "Eastside College"
        assert school.city == "Lyon"
        assert school.student_ids == []
        assert school.created_by_id == admin["id"]

    @pytest.mark.asyncio
    async def test_duplicate_long_name(self, school, admin, make_info):
        with pytest.raises(ConflictAlreadyExists, match="long name"):
            await create_school(
                make_info(admin["id"]),
                CreateSchoolInput(brand_name="Other", long_name="northside high school"),
            )

    @pytest.mark.asyncio
    async def test_duplicate_brand_name(self, school, admin, make_info):
        with pytest.raises(ConflictAlreadyExists, match="brand name"):
            await create_school(
                make_info(admin["id"]),
                CreateSchoolInput(brand_name="Northside", long_name="Another School"),
            )

    @pytest.mark.asyncio
    async def test_name_of_deleted_school_can_be_reused(self, gateway, school, admin, make_info):
        await delete_school(make_info(admin["id"]), str(school["id"]))

        created = await create_school(
            make_info(admin["id"]),
            CreateSchoolInput(brand_name="Northside", long_name="Northside High School"),
        )
        assert created.id != school["id"]


class TestUpdateSchool:
    @pytest.mark.asyncio
    async def test_updates_school(self, school, admin, make_info):
        updated = await update_school(
            make_info(admin["id"]), UpdateSchoolInput(id=str(school["id"]), city="berlin")
        )
        assert updated.city == "Berlin"
        assert updated.long_name == school["long_name"]

    @pytest.mark.asyncio
    async def test_conflicting_rename(self, school, other_school, admin, make_info):
        with pytest.raises(ConflictAlreadyExists):
            await update_school(
                make_info(admin["id"]),
                UpdateSchoolInput(id=str(other_school["id"]), long_name=school["long_name"]),
            )

    @pytest.mark.asyncio
    async def test_missing_school(self, admin, make_info):
        with pytest.raises(ReferenceNotFound):
            await update_school(
                make_info(admin["id"]), UpdateSchoolInput(id=str(uuid.uuid4()), city="Rome")
            )


class TestDeleteSchool:
    @pytest.mark.asyncio
    async def test_blocked_while_active_student_references_it(self, school, admin, make_info):
        info = make_info(admin["id"])
        student = await create_student(
            info,
            CreateStudentInput(
                first_name="Tim",
                last_name="Smith",
                email="tim@example.com",
                school_id=str(school["id"]),
            ),
        )

        with pytest.raises(ReferentialBlock):
            await delete_school(info, str(school["id"]))

        await delete_student(info, str(student.id))
        assert await delete_school(info, str(school["id"])) is True
        assert await resolve_school_by_id(info, str(school["id"])) is None

    @pytest.mark.asyncio
    async def test_missing_school(self, admin, make_info):
        with pytest.raises(ReferenceNotFound, match="doesn't exist"):
            await delete_school(make_info(admin["id"]), str(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_deleted_school_not_listed(self, school, other_school, admin, make_info):
        info = make_info(admin["id"])
        await delete_school(info, str(school["id"]))

        assert [s.id for s in await resolve_schools(info)] == [other_school["id"]]


class TestReconcileSchool:
    @pytest.mark.asyncio
    async def test_repairs_stale_index(self, gateway, school, admin, make_info):
        stray = uuid.uuid4()
        await gateway.update_one(
            EntityKind.SCHOOL, {"id": school["id"]}, Update(set_fields={"students": [stray]})
        )

        repaired = await reconcile_school(make_info(admin["id"]), str(school["id"]))

        assert repaired.student_ids == []


class TestSchoolStudents:
    @pytest.mark.asyncio
    async def test_lists_enrolled_students(self, school, admin, make_info):
        info = make_info(admin["id"])
        student = await create_student(
            info,
            CreateStudentInput(
                first_name="Ann",
                last_name="Lee",
                email="ann@example.com",
                school_id=str(school["id"]),
            ),
        )

        listed = await resolve_school_students(
            await resolve_school_by_id(make_info(), str(school["id"])), make_info()
        )

        assert [s.id for s in listed] == [student.id]

    @pytest.mark.asyncio
    async def test_skips_student_moved_away_with_stale_index(
        self, gateway, school, other_school, admin, make_info
    ):
        info = make_info(admin["id"])
        student = await create_student(
            info,
            CreateStudentInput(
                first_name="Ann",
                last_name="Lee",
                email="ann@example.com",
                school_id=str(school["id"]),
            ),
        )
        # Only the student side of the move landed
        await gateway.update_one(
            EntityKind.STUDENT,
            {"id": student.id},
            Update(set_fields={"school_id": other_school["id"]}),
        )

        fresh = make_info()
        stale = await resolve_school_by_id(fresh, str(school["id"]))

        assert stale.student_ids == [student.id]
        assert await resolve_school_students(stale, fresh) == []
