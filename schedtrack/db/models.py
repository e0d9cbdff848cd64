"""SQLAlchemy async database models for SchedTrack.

One row per saved project, keyed by the resolved project id, plus an audit
table holding one row per field change applied by an update.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class ProjectModel(Base):
    """Saved project record.

    The business key columns are broken out for lookup; the full record
    (including change annotations) lives in ``data``. ``order`` is a reserved
    word in SQL and is stored as ``order_number``.
    """

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    pmo_id: Mapped[str] = mapped_column(Text, nullable=False, default="")
    order_number: Mapped[str] = mapped_column(Text, nullable=False, default="")
    project_name: Mapped[str | None] = mapped_column(Text)

    data: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    is_changed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_projects_pmo_id", "pmo_id"),
        Index("idx_projects_order_number", "order_number"),
    )


class ProjectChangeModel(Base):
    """Audit trail entry for one changed field of a saved project."""

    __tablename__ = "project_changes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("projects.id"), nullable=False
    )
    field_name: Mapped[str] = mapped_column(Text, nullable=False)
    old_value: Mapped[str | None] = mapped_column(Text)
    new_value: Mapped[str | None] = mapped_column(Text)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_project_changes_project_changed", "project_id", "changed_at"),
    )
