from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

import strawberry

from ...core.invariants import name_is_exist, role_is_protected, self_action_guard
from ...core.passwords import hash_password_async
from ...core.validation import (
    CreateUserInput,
    RoleInput,
    UpdateUserInput,
    parse_id,
    parse_input,
)
from ...errors import ConflictAlreadyExists, InvalidArgument, ReferenceNotFound, Unauthorized
from ...logging import get_logger
from ...store.base import EntityKind, Record, Update
from ..context import get_gateway, get_loaders, report_errors, require_admin
from .common import input_to_dict, soft_delete

if TYPE_CHECKING:
    from ..mutations.root import CreateUserInput as CreateUserGQLInput
    from ..mutations.root import RoleInput as RoleGQLInput
    from ..mutations.root import UpdateUserInput as UpdateUserGQLInput
    from ..types.user import User

logger = get_logger(__name__)


def _to_user(record: Record) -> User:
    from ..types.user import User as UserType

    return UserType.from_record(record)


async def _require_user(info: strawberry.Info, user_id: UUID) -> Record:
    record = await get_loaders(info).user.load(user_id)
    if record is None:
        raise ReferenceNotFound("User does not exist")
    return record


# Query resolvers
@report_errors("users")
async def resolve_users(info: strawberry.Info) -> list[User]:
    """Resolve every active user."""
    records = await get_gateway(info).find(EntityKind.USER)
    loaders = get_loaders(info)
    for record in records:
        loaders.prime(EntityKind.USER, record)
    return [_to_user(record) for record in records]


@report_errors("user")
async def resolve_user_by_id(info: strawberry.Info, id: str) -> User | None:
    """Resolve a user by id; deleted users resolve to null."""
    record = await get_loaders(info).user.load(parse_id(id))
    return _to_user(record) if record is not None else None


async def resolve_user_ref(info: strawberry.Info, user_id: UUID) -> User | None:
    """Resolve a user reference held by another object."""
    record = await get_loaders(info).user.load(user_id)
    return _to_user(record) if record is not None else None


# Mutation resolvers
@report_errors("createUser")
async def create_user(info: strawberry.Info, input: CreateUserGQLInput) -> User:
    data = parse_input(CreateUserInput, input_to_dict(input))
    actor = await require_admin(info)
    gateway = get_gateway(info)

    if await name_is_exist(gateway, EntityKind.USER, "email", data.email):
        raise ConflictAlreadyExists("Email already exist")

    password_hash = await hash_password_async(data.password) if data.password else None
    record = await gateway.create(
        EntityKind.USER,
        {
            "first_name": data.first_name,
            "last_name": data.last_name,
            "email": data.email,
            "password_hash": password_hash,
            "roles": ["user"],
            "created_by": actor["id"],
        },
    )
    get_loaders(info).prime(EntityKind.USER, record)
    logger.info("User created", user_id=str(record["id"]))
    return _to_user(record)


@report_errors("updateUser")
async def update_user(info: strawberry.Info, input: UpdateUserGQLInput) -> User:
    data = parse_input(UpdateUserInput, input_to_dict(input))
    await require_admin(info)
    gateway = get_gateway(info)
    current = await _require_user(info, data.id)

    changes = data.changes()
    if "email" in changes and changes["email"] != current["email"]:
        if await name_is_exist(
            gateway, EntityKind.USER, "email", changes["email"], exclude_id=data.id
        ):
            raise ConflictAlreadyExists("Email already exist")
    if "password" in changes:
        changes["password_hash"] = await hash_password_async(changes.pop("password"))
    if not changes:
        return _to_user(current)

    record = await gateway.update_one(
        EntityKind.USER, {"id": data.id}, Update(set_fields=changes)
    )
    if record is None:
        raise ReferenceNotFound("User does not exist")
    get_loaders(info).prime(EntityKind.USER, record)
    logger.info("User updated", user_id=str(data.id), fields=sorted(changes))
    return _to_user(record)


@report_errors("addRole")
async def add_role(info: strawberry.Info, input: RoleGQLInput) -> User:
    data = parse_input(RoleInput, input_to_dict(input))
    await require_admin(info)
    current = await _require_user(info, data.user_id)

    if data.role in current.get("roles", []):
        raise ConflictAlreadyExists("User already has the role")

    record = await get_gateway(info).update_one(
        EntityKind.USER, {"id": data.user_id}, Update(add_to_set={"roles": data.role})
    )
    if record is None:
        raise ReferenceNotFound("User does not exist")
    get_loaders(info).prime(EntityKind.USER, record)
    logger.info("Role added", user_id=str(data.user_id), role=data.role)
    return _to_user(record)


@report_errors("deleteRole")
async def delete_role(info: strawberry.Info, input: RoleGQLInput) -> User:
    data = parse_input(RoleInput, input_to_dict(input))
    # Protected roles are refused before anything else, whoever the actor is.
    if role_is_protected(data.role):
        raise Unauthorized("Role cannot be removed")

    await require_admin(info)
    current = await _require_user(info, data.user_id)
    if data.role not in current.get("roles", []):
        raise InvalidArgument("User does not have the role")

    record = await get_gateway(info).update_one(
        EntityKind.USER, {"id": data.user_id}, Update(pull={"roles": data.role})
    )
    if record is None:
        raise ReferenceNotFound("User does not exist")
    get_loaders(info).prime(EntityKind.USER, record)
    logger.info("Role removed", user_id=str(data.user_id), role=data.role)
    return _to_user(record)


@report_errors("deleteUser")
async def delete_user(info: strawberry.Info, id: str) -> bool:
    user_id = parse_id(id)
    actor = await require_admin(info)

    if self_action_guard(actor["id"], user_id):
        raise Unauthorized("You cannot delete yourself")
    await _require_user(info, user_id)

    record = await get_gateway(info).update_one(
        EntityKind.USER, {"id": user_id}, soft_delete(actor["id"])
    )
    if record is None:
        raise ReferenceNotFound("User does not exist")
    get_loaders(info).forget(EntityKind.USER, user_id)
    logger.info("User deleted", user_id=str(user_id))
    return True
