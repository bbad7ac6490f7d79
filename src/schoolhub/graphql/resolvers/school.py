from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

import strawberry

from ...core.invariants import name_is_exist, referential_block
from ...core.relationships import RelationshipMaintainer
from ...core.validation import CreateSchoolInput, UpdateSchoolInput, parse_id, parse_input
from ...errors import ConflictAlreadyExists, ReferenceNotFound, ReferentialBlock
from ...logging import get_logger
from ...store.base import EntityGateway, EntityKind, Record, Update
from ..context import get_gateway, get_loaders, report_errors, require_admin
from .common import input_to_dict, soft_delete

if TYPE_CHECKING:
    from ..mutations.root import CreateSchoolInput as CreateSchoolGQLInput
    from ..mutations.root import UpdateSchoolInput as UpdateSchoolGQLInput
    from ..types.school import School
    from ..types.student import Student

logger = get_logger(__name__)

UNIQUE_FIELDS = {
    "long_name": "School long name already exist",
    "brand_name": "School brand name already exist",
}


def _to_school(record: Record) -> School:
    from ..types.school import School as SchoolType

    return SchoolType.from_record(record)


async def _check_unique_names(
    gateway: EntityGateway, values: dict, exclude_id: UUID | None = None
) -> None:
    for field_name, message in UNIQUE_FIELDS.items():
        value = values.get(field_name)
        if value is None:
            continue
        if await name_is_exist(
            gateway, EntityKind.SCHOOL, field_name, value, exclude_id=exclude_id
        ):
            raise ConflictAlreadyExists(message)


# Query resolvers
@report_errors("schools")
async def resolve_schools(info: strawberry.Info) -> list[School]:
    """Resolve every active school."""
    records = await get_gateway(info).find(EntityKind.SCHOOL)
    loaders = get_loaders(info)
    for record in records:
        loaders.prime(EntityKind.SCHOOL, record)
    return [_to_school(record) for record in records]


@report_errors("school")
async def resolve_school_by_id(info: strawberry.Info, id: str) -> School | None:
    record = await get_loaders(info).school.load(parse_id(id))
    return _to_school(record) if record is not None else None


async def resolve_school_ref(info: strawberry.Info, school_id: UUID) -> School | None:
    """Resolve the school a student points at; null if it was deleted."""
    record = await get_loaders(info).school.load(school_id)
    return _to_school(record) if record is not None else None


async def resolve_school_students(school: School, info: strawberry.Info) -> list[Student]:
    """
    Resolve the students listed in a school's index.

    Ids whose student is missing or deleted are skipped, as are students whose
    own ``school_id`` now points elsewhere.
    """
    from ..types.student import Student as StudentType

    records = await get_loaders(info).student.load_many(school.student_ids)
    return [
        StudentType.from_record(record)
        for record in records
        if record is not None and record.get("school_id") == school.id
    ]


# Mutation resolvers
@report_errors("createSchool")
async def create_school(info: strawberry.Info, input: CreateSchoolGQLInput) -> School:
    data = parse_input(CreateSchoolInput, input_to_dict(input))
    actor = await require_admin(info)
    gateway = get_gateway(info)

    await _check_unique_names(gateway, data.changes())

    record = await gateway.create(
        EntityKind.SCHOOL,
        {**data.model_dump(), "students": [], "created_by": actor["id"]},
    )
    get_loaders(info).prime(EntityKind.SCHOOL, record)
    logger.info("School created", school_id=str(record["id"]))
    return _to_school(record)


@report_errors("updateSchool")
async def update_school(info: strawberry.Info, input: UpdateSchoolGQLInput) -> School:
    data = parse_input(UpdateSchoolInput, input_to_dict(input))
    await require_admin(info)
    gateway = get_gateway(info)

    current = await get_loaders(info).school.load(data.id)
    if current is None:
        raise ReferenceNotFound("School does not exist")

    changes = data.changes()
    await _check_unique_names(gateway, changes, exclude_id=data.id)
    if not changes:
        return _to_school(current)

    record = await gateway.update_one(
        EntityKind.SCHOOL, {"id": data.id}, Update(set_fields=changes)
    )
    if record is None:
        raise ReferenceNotFound("School does not exist")
    get_loaders(info).prime(EntityKind.SCHOOL, record)
    logger.info("School updated", school_id=str(data.id), fields=sorted(changes))
    return _to_school(record)


@report_errors("deleteSchool")
async def delete_school(info: strawberry.Info, id: str) -> bool:
    school_id = parse_id(id)
    actor = await require_admin(info)
    gateway = get_gateway(info)

    if await get_loaders(info).school.load(school_id) is None:
        raise ReferenceNotFound("School doesn't exist or already deleted")
    if await referential_block(gateway, school_id):
        raise ReferentialBlock("School that is referenced by Student cannot be deleted")

    record = await gateway.update_one(
        EntityKind.SCHOOL, {"id": school_id}, soft_delete(actor["id"])
    )
    if record is None:
        raise ReferenceNotFound("School doesn't exist or already deleted")
    get_loaders(info).forget(EntityKind.SCHOOL, school_id)
    logger.info("School deleted", school_id=str(school_id))
    return True


@report_errors("reconcileSchool")
async def reconcile_school(info: strawberry.Info, id: str) -> School:
    """Rebuild a school's student index from the students referencing it."""
    school_id = parse_id(id)
    await require_admin(info)
    record = await RelationshipMaintainer(get_gateway(info)).reconcile_school(school_id)
    get_loaders(info).prime(EntityKind.SCHOOL, record)
    return _to_school(record)
