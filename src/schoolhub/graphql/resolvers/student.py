from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

import strawberry

from ...core.compensation import CompensationStack
from ...core.invariants import name_is_exist
from ...core.passwords import hash_password_async
from ...core.relationships import RelationshipMaintainer
from ...core.validation import (
    CreateStudentInput,
    CreateStudentWithUserInput,
    UpdateStudentInput,
    parse_id,
    parse_input,
)
from ...errors import ConflictAlreadyExists, ReferenceNotFound
from ...logging import get_logger
from ...store.base import EntityKind, Record, Update
from ..context import get_gateway, get_loaders, report_errors, require_admin
from .common import input_to_dict, soft_delete

if TYPE_CHECKING:
    from ..mutations.root import CreateStudentInput as CreateStudentGQLInput
    from ..mutations.root import CreateStudentWithUserInput as CreateStudentWithUserGQLInput
    from ..mutations.root import UpdateStudentInput as UpdateStudentGQLInput
    from ..types.student import Student
    from ..types.user import User

logger = get_logger(__name__)


def _to_student(record: Record) -> Student:
    from ..types.student import Student as StudentType

    return StudentType.from_record(record)


def _student_doc(
    data: CreateStudentInput, actor_id: UUID, user_id: UUID | None = None
) -> Record:
    return {
        "first_name": data.first_name,
        "last_name": data.last_name,
        "email": data.email,
        "date_of_birth": data.date_of_birth,
        "school_id": data.school_id,
        "user_id": user_id,
        "created_by": actor_id,
    }


# Query resolvers
@report_errors("students")
async def resolve_students(info: strawberry.Info) -> list[Student]:
    """Resolve every active student."""
    records = await get_gateway(info).find(EntityKind.STUDENT)
    loaders = get_loaders(info)
    for record in records:
        loaders.prime(EntityKind.STUDENT, record)
    return [_to_student(record) for record in records]


@report_errors("student")
async def resolve_student_by_id(info: strawberry.Info, id: str) -> Student | None:
    record = await get_loaders(info).student.load(parse_id(id))
    return _to_student(record) if record is not None else None


async def resolve_user_student(user: User, info: strawberry.Info) -> Student | None:
    """Resolve the active student whose ``user_id`` is this user."""
    record = await get_loaders(info).student_by_user.load(user.id)
    return _to_student(record) if record is not None else None


# Mutation resolvers
@report_errors("createStudent")
async def create_student(info: strawberry.Info, input: CreateStudentGQLInput) -> Student:
    data = parse_input(CreateStudentInput, input_to_dict(input))
    actor = await require_admin(info)
    gateway = get_gateway(info)
    maintainer = RelationshipMaintainer(gateway)

    if await name_is_exist(gateway, EntityKind.STUDENT, "email", data.email):
        raise ConflictAlreadyExists("Email already exist")
    await maintainer.require_active_school(data.school_id)

    async with CompensationStack("create_student") as undo:
        record = await gateway.create(EntityKind.STUDENT, _student_doc(data, actor["id"]))
        undo.push(
            "delete student", lambda: gateway.delete_one(EntityKind.STUDENT, record["id"])
        )
        await maintainer.attach_student(record["id"], data.school_id)

    loaders = get_loaders(info)
    loaders.forget(EntityKind.SCHOOL, data.school_id)
    loaders.prime(EntityKind.STUDENT, record)
    logger.info("Student created", student_id=str(record["id"]))
    return _to_student(record)


@report_errors("createStudentWithUser")
async def create_student_with_user(
    info: strawberry.Info, input: CreateStudentWithUserGQLInput
) -> Student:
    """
    Create a login account and its student profile together.

    Without a multi-record transaction, every completed write records an undo
    step; if a later step fails the earlier records are removed again and the
    original error is surfaced.
    """
    data = parse_input(CreateStudentWithUserInput, input_to_dict(input))
    actor = await require_admin(info)
    gateway = get_gateway(info)
    maintainer = RelationshipMaintainer(gateway)

    if await name_is_exist(gateway, EntityKind.USER, "email", data.email):
        raise ConflictAlreadyExists("Email already exist")
    if await name_is_exist(gateway, EntityKind.STUDENT, "email", data.email):
        raise ConflictAlreadyExists("Email already exist")
    await maintainer.require_active_school(data.school_id)

    async with CompensationStack("create_student_with_user") as undo:
        user = await gateway.create(
            EntityKind.USER,
            {
                "first_name": data.first_name,
                "last_name": data.last_name,
                "email": data.email,
                "password_hash": await hash_password_async(data.password),
                "roles": ["user"],
                "created_by": actor["id"],
            },
        )
        undo.push("delete user", lambda: gateway.delete_one(EntityKind.USER, user["id"]))

        student = await gateway.create(
            EntityKind.STUDENT, _student_doc(data, actor["id"], user_id=user["id"])
        )
        undo.push(
            "delete student", lambda: gateway.delete_one(EntityKind.STUDENT, student["id"])
        )

        await maintainer.attach_student(student["id"], data.school_id)

    loaders = get_loaders(info)
    loaders.forget(EntityKind.SCHOOL, data.school_id)
    loaders.prime(EntityKind.USER, user)
    loaders.prime(EntityKind.STUDENT, student)
    logger.info(
        "Student created with user",
        student_id=str(student["id"]),
        user_id=str(user["id"]),
    )
    return _to_student(student)


@report_errors("updateStudent")
async def update_student(info: strawberry.Info, input: UpdateStudentGQLInput) -> Student:
    data = parse_input(UpdateStudentInput, input_to_dict(input))
    await require_admin(info)
    gateway = get_gateway(info)
    maintainer = RelationshipMaintainer(gateway)
    loaders = get_loaders(info)

    current = await loaders.student.load(data.id)
    if current is None:
        raise ReferenceNotFound("Student does not exist")

    changes = data.changes()
    if "email" in changes and changes["email"] != current["email"]:
        if await name_is_exist(
            gateway, EntityKind.STUDENT, "email", changes["email"], exclude_id=data.id
        ):
            raise ConflictAlreadyExists("Email already exist")

    old_school_id = current["school_id"]
    new_school_id = changes.get("school_id")
    school_changed = new_school_id is not None and new_school_id != old_school_id
    if school_changed:
        await maintainer.require_active_school(new_school_id)
    if not changes:
        return _to_student(current)

    record = await gateway.update_one(
        EntityKind.STUDENT, {"id": data.id}, Update(set_fields=changes)
    )
    if record is None:
        raise ReferenceNotFound("Student does not exist")

    if school_changed:
        await maintainer.move_student(data.id, old_school_id, new_school_id)
        loaders.forget(EntityKind.SCHOOL, old_school_id)
        loaders.forget(EntityKind.SCHOOL, new_school_id)

    loaders.prime(EntityKind.STUDENT, record)
    loaders.student_by_user.clear_all()
    logger.info("Student updated", student_id=str(data.id), fields=sorted(changes))
    return _to_student(record)


@report_errors("deleteStudent")
async def delete_student(info: strawberry.Info, id: str) -> bool:
    student_id = parse_id(id)
    actor = await require_admin(info)
    gateway = get_gateway(info)
    loaders = get_loaders(info)

    if await loaders.student.load(student_id) is None:
        raise ReferenceNotFound("Student does not exist")

    record = await gateway.update_one(
        EntityKind.STUDENT, {"id": student_id}, soft_delete(actor["id"])
    )
    if record is None:
        raise ReferenceNotFound("Student does not exist")

    school_ids = await RelationshipMaintainer(gateway).detach_student(student_id)
    loaders.forget(EntityKind.STUDENT, student_id)
    for school_id in school_ids:
        loaders.forget(EntityKind.SCHOOL, school_id)
    logger.info("Student deleted", student_id=str(student_id))
    return True
