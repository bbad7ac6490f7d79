"""
User GraphQL type definitions
"""

from datetime import datetime
from typing import TYPE_CHECKING, Annotated
from uuid import UUID

import strawberry

from ...store.base import Record
from .common import EntityStatus

if TYPE_CHECKING:
    from .student import Student


@strawberry.type
class User:
    """User type for GraphQL API."""

    id: UUID
    first_name: str
    last_name: str
    email: str
    roles: list[str]
    status: EntityStatus
    created_at: datetime
    updated_at: datetime
    created_by_id: strawberry.Private[UUID | None] = None
    deleted_at: datetime | None = None
    deleted_by_id: strawberry.Private[UUID | None] = None

    @classmethod
    def from_record(cls, record: Record) -> "User":
        return cls(
            id=record["id"],
            first_name=record["first_name"],
            last_name=record["last_name"],
            email=record["email"],
            roles=list(record.get("roles") or []),
            status=EntityStatus(record["status"]),
            created_at=record["created_at"],
            updated_at=record["updated_at"],
            created_by_id=record.get("created_by"),
            deleted_at=record.get("deleted_at"),
            deleted_by_id=record.get("deleted_by"),
        )

    @strawberry.field
    async def created_by(self, info: strawberry.Info) -> "User | None":
        """Get the admin who created this user."""
        if self.created_by_id is None:
            return None
        from ..resolvers.user import resolve_user_ref

        return await resolve_user_ref(info, self.created_by_id)

    @strawberry.field
    async def student(
        self, info: strawberry.Info
    ) -> Annotated["Student", strawberry.lazy(".student")] | None:
        """Get the student profile linked to this user, if any."""
        from ..resolvers.student import resolve_user_student

        return await resolve_user_student(self, info)

    @strawberry.field
    async def deleted_by(self, info: strawberry.Info) -> "User | None":
        """Get the admin who deleted this user."""
        if self.deleted_by_id is None:
            return None
        from ..resolvers.user import resolve_user_ref

        return await resolve_user_ref(info, self.deleted_by_id)
