"""
Root GraphQL query definitions
"""

import strawberry

from ..types.school import School
from ..types.student import Student
from ..types.user import User


@strawberry.type
class Query:
    """Root GraphQL query type."""

    @strawberry.field
    async def users(self, info: strawberry.Info) -> list[User]:
        """Get all active users."""
        from ..resolvers.user import resolve_users

        return await resolve_users(info)

    @strawberry.field
    async def user(self, info: strawberry.Info, id: strawberry.ID) -> User | None:
        """Get a user by ID."""
        from ..resolvers.user import resolve_user_by_id

        return await resolve_user_by_id(info, id)

    @strawberry.field
    async def schools(self, info: strawberry.Info) -> list[School]:
        """Get all active schools."""
        from ..resolvers.school import resolve_schools

        return await resolve_schools(info)

    @strawberry.field
    async def school(self, info: strawberry.Info, id: strawberry.ID) -> School | None:
        """Get a school by ID."""
        from ..resolvers.school import resolve_school_by_id

        return await resolve_school_by_id(info, id)

    @strawberry.field
    async def students(self, info: strawberry.Info) -> list[Student]:
        """Get all active students."""
        from ..resolvers.student import resolve_students

        return await resolve_students(info)

    @strawberry.field
    async def student(self, info: strawberry.Info, id: strawberry.ID) -> Student | None:
        """Get a student by ID."""
        from ..resolvers.student import resolve_student_by_id

        return await resolve_student_by_id(info, id)
