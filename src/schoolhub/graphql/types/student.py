"""
Student GraphQL type definitions
"""

from datetime import date, datetime
from typing import TYPE_CHECKING, Annotated
from uuid import UUID

import strawberry

from ...store.base import Record
from .common import EntityStatus

if TYPE_CHECKING:
    from .school import School
    from .user import User


@strawberry.type
class Student:
    """Student type for GraphQL API."""

    id: UUID
    first_name: str
    last_name: str
    email: str
    date_of_birth: date | None
    school_id: UUID
    user_id: UUID | None
    status: EntityStatus
    created_at: datetime
    updated_at: datetime
    created_by_id: strawberry.Private[UUID | None] = None
    deleted_at: datetime | None = None
    deleted_by_id: strawberry.Private[UUID | None] = None

    @classmethod
    def from_record(cls, record: Record) -> "Student":
        return cls(
            id=record["id"],
            first_name=record["first_name"],
            last_name=record["last_name"],
            email=record["email"],
            date_of_birth=record.get("date_of_birth"),
            school_id=record["school_id"],
            user_id=record.get("user_id"),
            status=EntityStatus(record["status"]),
            created_at=record["created_at"],
            updated_at=record["updated_at"],
            created_by_id=record.get("created_by"),
            deleted_at=record.get("deleted_at"),
            deleted_by_id=record.get("deleted_by"),
        )

    @strawberry.field
    async def school(
        self, info: strawberry.Info
    ) -> Annotated["School", strawberry.lazy(".school")] | None:
        """Get the school this student belongs to."""
        from ..resolvers.school import resolve_school_ref

        return await resolve_school_ref(info, self.school_id)

    @strawberry.field
    async def user(
        self, info: strawberry.Info
    ) -> Annotated["User", strawberry.lazy(".user")] | None:
        """Get the login account linked to this student."""
        if self.user_id is None:
            return None
        from ..resolvers.user import resolve_user_ref

        return await resolve_user_ref(info, self.user_id)

    @strawberry.field
    async def created_by(
        self, info: strawberry.Info
    ) -> Annotated["User", strawberry.lazy(".user")] | None:
        """Get the admin who created this student."""
        if self.created_by_id is None:
            return None
        from ..resolvers.user import resolve_user_ref

        return await resolve_user_ref(info, self.created_by_id)

    @strawberry.field
    async def deleted_by(
        self, info: strawberry.Info
    ) -> Annotated["User", strawberry.lazy(".user")] | None:
        """Get the admin who deleted this student."""
        if self.deleted_by_id is None:
            return None
        from ..resolvers.user import resolve_user_ref

        return await resolve_user_ref(info, self.deleted_by_id)
