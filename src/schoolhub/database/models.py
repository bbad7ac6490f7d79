"""
Database models for SchoolHub (authoritative ORM definitions).

Users, schools and students are soft-deleted through ``status``; uniqueness of
emails and school names is enforced only among active rows via partial indexes.
"""

from datetime import date, datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    Date,
    DateTime,
    Index,
    MetaData,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

ACTIVE_ONLY = text("status = 'active'")


class Base(DeclarativeBase):
    """Base class for all database models."""

    metadata = MetaData(naming_convention=naming_convention)


class Users(Base):
    __tablename__ = "users"
    __table_args__ = (
        Index("users_active_email_key", "email", unique=True, postgresql_where=ACTIVE_ONLY),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(Text)
    roles: Mapped[list[str]] = mapped_column(JSONB, server_default=text("'[\"user\"]'::jsonb"))
    status: Mapped[str] = mapped_column(String(20), server_default=text("'active'"))
    created_by: Mapped[UUID | None] = mapped_column(Uuid)
    deleted_by: Mapped[UUID | None] = mapped_column(Uuid)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(True), server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True), server_default=text("CURRENT_TIMESTAMP")
    )


class Schools(Base):
    __tablename__ = "schools"
    __table_args__ = (
        Index(
            "schools_active_long_name_key", "long_name", unique=True, postgresql_where=ACTIVE_ONLY
        ),
        Index("schools_students_idx", "students", postgresql_using="gin"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    brand_name: Mapped[str] = mapped_column(String(255), nullable=False)
    long_name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(String(255))
    country: Mapped[str | None] = mapped_column(String(100))
    city: Mapped[str | None] = mapped_column(String(100))
    zipcode: Mapped[str | None] = mapped_column(String(20))
    # Derived index of student ids; students.school_id is authoritative
    students: Mapped[list[str]] = mapped_column(JSONB, server_default=text("'[]'::jsonb"))
    status: Mapped[str] = mapped_column(String(20), server_default=text("'active'"))
    created_by: Mapped[UUID | None] = mapped_column(Uuid)
    deleted_by: Mapped[UUID | None] = mapped_column(Uuid)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(True), server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True), server_default=text("CURRENT_TIMESTAMP")
    )


class Students(Base):
    __tablename__ = "students"
    __table_args__ = (
        Index("students_active_email_key", "email", unique=True, postgresql_where=ACTIVE_ONLY),
        Index("students_school_id_idx", "school_id"),
        Index("students_user_id_idx", "user_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    first_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date)
    school_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    user_id: Mapped[UUID | None] = mapped_column(Uuid)
    status: Mapped[str] = mapped_column(String(20), server_default=text("'active'"))
    created_by: Mapped[UUID | None] = mapped_column(Uuid)
    deleted_by: Mapped[UUID | None] = mapped_column(Uuid)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(True), server_default=text("CURRENT_TIMESTAMP")
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(True), server_default=text("CURRENT_TIMESTAMP")
    )


class ErrorLogs(Base):
    __tablename__ = "error_logs"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    error_stack: Mapped[str] = mapped_column(Text, nullable=False)
    function_name: Mapped[str] = mapped_column(String(255), nullable=False)
    path: Mapped[str] = mapped_column(String(255), nullable=False)
    parameter_input: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(True), server_default=text("CURRENT_TIMESTAMP")
    )


def column_names(model: type[Base]) -> list[str]:
    """Column attribute names of a mapped model."""
    return [column.key for column in model.__table__.columns]


def row_to_dict(row: Base) -> dict[str, Any]:
    """Convert an ORM instance into a plain record."""
    return {name: getattr(row, name) for name in column_names(type(row))}
