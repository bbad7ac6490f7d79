"""
Root GraphQL mutation definitions
"""

import strawberry

from ..types.school import School
from ..types.student import Student
from ..types.user import User


# Input types for mutations. Ids arrive as strings and are validated by the
# resolvers so that a malformed id surfaces as INVALID_ARGUMENT.
@strawberry.input
class CreateUserInput:
    """Input for creating a new user."""

    first_name: str
    last_name: str
    email: str
    password: str | None = None


@strawberry.input
class UpdateUserInput:
    """Input for updating a user."""

    id: strawberry.ID
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    password: str | None = None


@strawberry.input
class RoleInput:
    """Input for adding or removing a role."""

    user_id: strawberry.ID
    role: str


@strawberry.input
class CreateSchoolInput:
    """Input for creating a new school."""

    brand_name: str
    long_name: str
    address: str | None = None
    country: str | None = None
    city: str | None = None
    zipcode: str | None = None


@strawberry.input
class UpdateSchoolInput:
    """Input for updating a school."""

    id: strawberry.ID
    brand_name: str | None = None
    long_name: str | None = None
    address: str | None = None
    country: str | None = None
    city: str | None = None
    zipcode: str | None = None


@strawberry.input
class CreateStudentInput:
    """Input for creating a new student. ``date_of_birth`` is DD-MM-YYYY."""

    first_name: str
    last_name: str
    email: str
    school_id: strawberry.ID
    date_of_birth: str | None = None


@strawberry.input
class CreateStudentWithUserInput:
    """Input for creating a student together with its login account."""

    first_name: str
    last_name: str
    email: str
    password: str
    school_id: strawberry.ID
    date_of_birth: str | None = None


@strawberry.input
class UpdateStudentInput:
    """Input for updating a student."""

    id: strawberry.ID
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    school_id: strawberry.ID | None = None
    date_of_birth: str | None = None


@strawberry.type
class Mutation:
    """Root GraphQL mutation type."""

    # User mutations
    @strawberry.mutation(name="createUser")
    async def create_user(self, info: strawberry.Info, input: CreateUserInput) -> User:
        """Create a new user with the default role."""
        from ..resolvers.user import create_user

        return await create_user(info, input)

    @strawberry.mutation(name="updateUser")
    async def update_user(self, info: strawberry.Info, input: UpdateUserInput) -> User:
        """Update an existing user."""
        from ..resolvers.user import update_user

        return await update_user(info, input)

    @strawberry.mutation(name="addRole")
    async def add_role(self, info: strawberry.Info, input: RoleInput) -> User:
        """Grant a role to a user."""
        from ..resolvers.user import add_role

        return await add_role(info, input)

    @strawberry.mutation(name="deleteRole")
    async def delete_role(self, info: strawberry.Info, input: RoleInput) -> User:
        """Remove a role from a user."""
        from ..resolvers.user import delete_role

        return await delete_role(info, input)

    @strawberry.mutation(name="deleteUser")
    async def delete_user(self, info: strawberry.Info, id: strawberry.ID) -> bool:
        """Soft-delete a user."""
        from ..resolvers.user import delete_user

        return await delete_user(info, id)

    # School mutations
    @strawberry.mutation(name="createSchool")
    async def create_school(self, info: strawberry.Info, input: CreateSchoolInput) -> School:
        """Create a new school."""
        from ..resolvers.school import create_school

        return await create_school(info, input)

    @strawberry.mutation(name="updateSchool")
    async def update_school(self, info: strawberry.Info, input: UpdateSchoolInput) -> School:
        """Update an existing school."""
        from ..resolvers.school import update_school

        return await update_school(info, input)

    @strawberry.mutation(name="deleteSchool")
    async def delete_school(self, info: strawberry.Info, id: strawberry.ID) -> bool:
        """Soft-delete a school that no active student references."""
        from ..resolvers.school import delete_school

        return await delete_school(info, id)

    @strawberry.mutation(name="reconcileSchool")
    async def reconcile_school(self, info: strawberry.Info, id: strawberry.ID) -> School:
        """Rebuild a school's student list from its students."""
        from ..resolvers.school import reconcile_school

        return await reconcile_school(info, id)

    # Student mutations
    @strawberry.mutation(name="createStudent")
    async def create_student(self, info: strawberry.Info, input: CreateStudentInput) -> Student:
        """Create a new student in an existing school."""
        from ..resolvers.student import create_student

        return await create_student(info, input)

    @strawberry.mutation(name="createStudentWithUser")
    async def create_student_with_user(
        self, info: strawberry.Info, input: CreateStudentWithUserInput
    ) -> Student:
        """Create a student and its login account together."""
        from ..resolvers.student import create_student_with_user

        return await create_student_with_user(info, input)

    @strawberry.mutation(name="updateStudent")
    async def update_student(self, info: strawberry.Info, input: UpdateStudentInput) -> Student:
        """Update a student, moving it between schools if needed."""
        from ..resolvers.student import update_student

        return await update_student(info, input)

    @strawberry.mutation(name="deleteStudent")
    async def delete_student(self, info: strawberry.Info, id: strawberry.ID) -> bool:
        """Soft-delete a student and remove it from its school."""
        from ..resolvers.student import delete_student

        return await delete_student(info, id)
