"""Domain error taxonomy shared by the store, core and GraphQL layers."""


class SchoolHubError(Exception):
    """Base class for every error surfaced to API clients."""

    code = "INTERNAL"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgument(SchoolHubError):
    """Malformed id or input field, detected before any I/O."""

    code = "INVALID_ARGUMENT"


class ReferenceNotFound(SchoolHubError):
    """Referenced user, school or student is missing or soft-deleted."""

    code = "REFERENCE_NOT_FOUND"


class ConflictAlreadyExists(SchoolHubError):
    """A uniqueness rule (email, long name, brand name, role) was violated."""

    code = "CONFLICT_ALREADY_EXISTS"


class ReferentialBlock(SchoolHubError):
    """Deletion refused while another active entity still references the target."""

    code = "REFERENTIAL_BLOCK"


class Unauthorized(SchoolHubError):
    """Actor lacks the required role or attempted a forbidden self-action."""

    code = "UNAUTHORIZED"


class BackendUnavailable(SchoolHubError):
    """The entity store could not be reached or timed out."""

    code = "BACKEND_UNAVAILABLE"
