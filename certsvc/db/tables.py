"""SQLAlchemy table definitions.

These map to the frozen dataclass domain models in certsvc/models/.
Repos convert between SQLAlchemy rows and domain dataclasses.

Two groups:
  - read-only source tables owned by the course/progress collaborator
    (marked ``info={"external": True}``; Alembic never migrates them)
  - tables this service owns: certificates, notifications
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import (
    Boolean,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from certsvc.db.engine import Base

_EXTERNAL = {"external": True}

# --- Collaborator-owned source tables (read-only here) ---


class CourseRow(Base):
    __tablename__ = "courses"
    __table_args__ = {"info": _EXTERNAL}

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    category: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")


class CourseProgressRow(Base):
    """One row per (user, course); completed flips when every item is done."""

    __tablename__ = "course_progress"
    __table_args__ = {"info": _EXTERNAL}

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    course_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class CourseWritingRow(Base):
    """A submitted writing task; existence of the row means submitted."""

    __tablename__ = "course_writings"
    __table_args__ = {"info": _EXTERNAL}

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    course_id: Mapped[str] = mapped_column(String(64), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[int] = mapped_column(Integer, nullable=False)


# --- Owned by this service ---


class CertificateRow(Base):
    __tablename__ = "certificates"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False)
    issued_at: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_outdated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Stored sorted so equality comparisons in compare-and-set are stable.
    completed_course_ids: Mapped[list[str]] = mapped_column(
        ARRAY(String(64)), nullable=False, default=[]
    )

    __table_args__ = (
        UniqueConstraint("user_id", "category", name="uq_certificates_user_category"),
    )


class NotificationRow(Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(
        String(32), nullable=False
    )  # course_added|certificate_issued|certificate_updated|generic
    related_data: Mapped[dict[str, Any]] = mapped_column(
        JSONB, nullable=False, default=dict
    )
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False)
    pending_delete: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    delete_at: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("ix_notifications_user_created", "user_id", "created_at"),
        Index("ix_notifications_pending_delete_at", "pending_delete", "delete_at"),
    )
