"""
School GraphQL type definitions
"""

from datetime import datetime
from typing import TYPE_CHECKING, Annotated
from uuid import UUID

import strawberry

from ...store.base import Record
from .common import EntityStatus

if TYPE_CHECKING:
    from .student import Student
    from .user import User


@strawberry.type
class School:
    """School type for GraphQL API."""

    id: UUID
    brand_name: str
    long_name: str
    address: str | None
    country: str | None
    city: str | None
    zipcode: str | None
    status: EntityStatus
    created_at: datetime
    updated_at: datetime
    student_ids: strawberry.Private[list[UUID]]
    created_by_id: strawberry.Private[UUID | None] = None
    deleted_at: datetime | None = None
    deleted_by_id: strawberry.Private[UUID | None] = None

    @classmethod
    def from_record(cls, record: Record) -> "School":
        return cls(
            id=record["id"],
            brand_name=record["brand_name"],
            long_name=record["long_name"],
            address=record.get("address"),
            country=record.get("country"),
            city=record.get("city"),
            zipcode=record.get("zipcode"),
            status=EntityStatus(record["status"]),
            created_at=record["created_at"],
            updated_at=record["updated_at"],
            student_ids=list(record.get("students") or []),
            created_by_id=record.get("created_by"),
            deleted_at=record.get("deleted_at"),
            deleted_by_id=record.get("deleted_by"),
        )

    @strawberry.field
    async def students(
        self, info: strawberry.Info
    ) -> list[Annotated["Student", strawberry.lazy(".student")]]:
        """Get the active students enrolled in this school."""
        from ..resolvers.school import resolve_school_students

        return await resolve_school_students(self, info)

    @strawberry.field
    async def created_by(
        self, info: strawberry.Info
    ) -> Annotated["User", strawberry.lazy(".user")] | None:
        """Get the admin who created this school."""
        if self.created_by_id is None:
            return None
        from ..resolvers.user import resolve_user_ref

        return await resolve_user_ref(info, self.created_by_id)

    @strawberry.field
    async def deleted_by(
        self, info: strawberry.Info
    ) -> Annotated["User", strawberry.lazy(".user")] | None:
        """Get the admin who deleted this school."""
        if self.deleted_by_id is None:
            return None
        from ..resolvers.user import resolve_user_ref

        return await resolve_user_ref(info, self.deleted_by_id)
