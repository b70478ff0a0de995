"""SQLAlchemy ORM models — single source of truth for the database schema.

SQLAlchemy 2.0 declarative style (Mapped[] + mapped_column). Column types
are the portable ones (Uuid, DateTime(timezone=True)) so the same models
run on PostgreSQL in deployment and SQLite in the test suite.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

USER_ROLES = ("user", "admin")
TASK_PRIORITIES = ("low", "medium", "high")
DEFAULT_TASK_STATUS = "open"

# Column sizes; request schemas reuse them so over-long input is a 400.
NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 255
TITLE_MAX_LENGTH = 500
STATUS_MAX_LENGTH = 50


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class User(Base):
    """A registered account. Immutable after registration."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)
    email: Mapped[str] = mapped_column(
        String(EMAIL_MAX_LENGTH), unique=True, nullable=False
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="user"
    )  # user, admin
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )


class Task(Base):
    """A unit of work created by one user and assigned to another (or self).

    created_by_id is set once from the authenticated requester and never
    changes. status is free-form; there is no transition graph.
    """

    __tablename__ = "tasks"
    __table_args__ = (
        Index("idx_tasks_created_by", "created_by_id"),
        Index("idx_tasks_assigned_to", "assigned_to_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=new_uuid
    )
    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    due_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    priority: Mapped[str] = mapped_column(String(20), nullable=False)  # low, medium, high
    status: Mapped[str] = mapped_column(
        String(STATUS_MAX_LENGTH), nullable=False, default=DEFAULT_TASK_STATUS
    )
    assigned_to_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    created_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # Relationships
    assigned_to: Mapped["User"] = relationship(foreign_keys=[assigned_to_id])
