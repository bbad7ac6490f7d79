"""
Input validation and normalisation.

Format rules are plain functions so they can be reused outside the pydantic
models. ``parse_input`` builds a typed input model and turns any
``ValidationError`` into ``InvalidArgument`` carrying the first message.
"""

import re
from datetime import date
from typing import Any, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..config import settings
from ..errors import InvalidArgument

PERSON_NAME_PATTERN = re.compile(r"^(?:[^\W\d_]|[\s'-])+$")
SCHOOL_NAME_PATTERN = re.compile(r"^(?:[^\W_]|[\s'-])+$")
ADDRESS_PATTERN = re.compile(r"^(?:[^\W_]|[\s,'./\-#()]){10,50}$")
PLACE_PATTERN = re.compile(r"^(?:[^\W\d_]|[\s'-]){2,30}$")
ZIPCODE_PATTERN = re.compile(r"^[A-Za-z0-9\s-]{4,15}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).{8,}$")
BIRTH_DATE_PATTERN = re.compile(r"^(\d{2})-(\d{2})-(\d{4})$")


def is_valid_person_name(value: str) -> bool:
    return bool(PERSON_NAME_PATTERN.match(value))


def is_valid_school_name(value: str) -> bool:
    return bool(SCHOOL_NAME_PATTERN.match(value))


def is_valid_address(value: str) -> bool:
    return bool(ADDRESS_PATTERN.match(value))


def is_valid_place(value: str) -> bool:
    """City or country name."""
    return bool(PLACE_PATTERN.match(value))


def is_valid_zipcode(value: str) -> bool:
    return bool(ZIPCODE_PATTERN.match(value))


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def is_strong_password(value: str) -> bool:
    return bool(PASSWORD_PATTERN.match(value))


def to_title_case(value: str) -> str:
    """Collapse inner whitespace and capitalise each word."""
    return " ".join(word.capitalize() for word in value.split())


def parse_birth_date(value: str | date | None, today: date | None = None) -> date | None:
    """Parse a ``DD-MM-YYYY`` date of birth.

    An empty string means "not provided". Future dates are rejected.
    """
    if value is None:
        return None
    if isinstance(value, date):
        parsed = value
    else:
        text = value.strip()
        if not text:
            return None
        match = BIRTH_DATE_PATTERN.match(text)
        if not match:
            raise ValueError("date of birth should be in DD-MM-YYYY format")
        day, month, year = (int(part) for part in match.groups())
        try:
            parsed = date(year, month, day)
        except ValueError as e:
            raise ValueError("Invalid date format") from e
    if parsed > (today or date.today()):
        raise ValueError("Date of birth cannot be in the future")
    return parsed


def parse_id(value: Any, field_name: str = "id") -> UUID:
    """Parse an id argument, raising ``InvalidArgument`` if malformed."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except (TypeError, ValueError, AttributeError) as e:
        raise InvalidArgument(f"Invalid {field_name}") from e


def normalize_role(value: str) -> str:
    role = value.strip().lower()
    if not role:
        raise ValueError("role is required")
    if role not in settings.valid_roles:
        raise ValueError("Invalid role")
    return role


def _check_person_name(value: str | None, label: str) -> str | None:
    if value is None:
        return None
    if not value:
        raise ValueError(f"{label} is required")
    if not is_valid_person_name(value):
        raise ValueError(f"{label} contains invalid characters")
    return to_title_case(value)


def _check_email(value: str | None) -> str | None:
    if value is None:
        return None
    if not value:
        raise ValueError("email is required")
    if not is_valid_email(value):
        raise ValueError("email format is invalid")
    return value.lower()


def _check_password(value: str | None) -> str | None:
    if value is None:
        return None
    if not is_strong_password(value):
        raise ValueError(
            "password must be at least 8 characters and contain at least one uppercase "
            "letter, one lowercase letter, and one number"
        )
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class InputModel(BaseModel):
    """Base for mutation inputs: strings are trimmed, unknown keys rejected."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    def changes(self) -> dict[str, Any]:
        """Fields explicitly provided, minus the target id."""
        return self.model_dump(exclude_none=True, exclude={"id"})


class PersonFields(InputModel):
    @field_validator("first_name", "last_name", check_fields=False)
    @classmethod
    def validate_names(cls, v: str | None, info: Any) -> str | None:
        return _check_person_name(v, info.field_name.replace("_", " "))

    @field_validator("email", check_fields=False)
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        return _check_email(v)

    @field_validator("password", check_fields=False)
    @classmethod
    def validate_password(cls, v: str | None) -> str | None:
        return _check_password(v)


class CreateUserInput(PersonFields):
    first_name: str
    last_name: str
    email: str
    password: str | None = None


class UpdateUserInput(PersonFields):
    id: UUID
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    password: str | None = None


class RoleInput(InputModel):
    user_id: UUID
    role: str

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        return normalize_role(v)


class SchoolFields(InputModel):
    @field_validator("brand_name", "long_name", check_fields=False)
    @classmethod
    def validate_school_name(cls, v: str | None, info: Any) -> str | None:
        if v is None:
            return None
        label = info.field_name.replace("_", " ")
        if not v:
            raise ValueError(f"{label} is required")
        if not is_valid_school_name(v):
            raise ValueError(f"{label} contains invalid characters")
        return to_title_case(v) if info.field_name == "long_name" else v

    @field_validator("address", "country", "city", "zipcode", mode="before", check_fields=False)
    @classmethod
    def blank_optional(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("address", check_fields=False)
    @classmethod
    def validate_address(cls, v: str | None) -> str | None:
        if v is not None and not is_valid_address(v):
            raise ValueError("address contains invalid characters")
        return v

    @field_validator("country", "city", check_fields=False)
    @classmethod
    def validate_place(cls, v: str | None, info: Any) -> str | None:
        if v is not None and not is_valid_place(v):
            raise ValueError(f"{info.field_name} contains invalid characters")
        return to_title_case(v) if v is not None else None

    @field_validator("zipcode", check_fields=False)
    @classmethod
    def validate_zipcode(cls, v: str | None) -> str | None:
        if v is not None and not is_valid_zipcode(v):
            raise ValueError("zipcode contains invalid characters")
        return v


class CreateSchoolInput(SchoolFields):
    brand_name: str
    long_name: str
    address: str | None = None
    country: str | None = None
    city: str | None = None
    zipcode: str | None = None


class UpdateSchoolInput(SchoolFields):
    id: UUID
    brand_name: str | None = None
    long_name: str | None = None
    address: str | None = None
    country: str | None = None
    city: str | None = None
    zipcode: str | None = None


class StudentFields(PersonFields):
    @field_validator("date_of_birth", mode="before", check_fields=False)
    @classmethod
    def validate_date_of_birth(cls, v: Any) -> date | None:
        return parse_birth_date(v)


class CreateStudentInput(StudentFields):
    first_name: str
    last_name: str
    email: str
    school_id: UUID
    date_of_birth: date | None = None


class CreateStudentWithUserInput(CreateStudentInput):
    password: str


class UpdateStudentInput(StudentFields):
    id: UUID
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    school_id: UUID | None = None
    date_of_birth: date | None = None


ModelT = TypeVar("ModelT", bound=BaseModel)


def _format_error(error: dict[str, Any]) -> str:
    field_name = ".".join(str(part) for part in error.get("loc", ())) or "input"
    if error["type"] == "value_error":
        return str(error["ctx"]["error"])
    if error["type"] == "missing" or error.get("input") is None:
        return f"{field_name} is required"
    if error["type"].startswith("uuid"):
        return f"Invalid {field_name}"
    return f"{field_name}: {error['msg']}"


def parse_input(model: type[ModelT], data: dict[str, Any]) -> ModelT:
    """Validate ``data`` into ``model`` or raise ``InvalidArgument``."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidArgument(_format_error(e.errors()[0])) from e
