"""SQL-backed project store (async SQLAlchemy, SQLite by default).

Every update of an existing project bumps its version and writes one audit row
per changed field. Deleting a project removes its audit rows first.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from schedtrack.config import StoreConfig
from schedtrack.db.connection import create_engine, create_session_factory, init_db
from schedtrack.db.models import ProjectChangeModel, ProjectModel
from schedtrack.exceptions import (
    ProjectExistsError,
    ProjectNotFoundError,
    StoreOperationError,
)
from schedtrack.models import Project, ProjectChange
from schedtrack.reconcile.merge import iter_field_changes
from schedtrack.store.base import KeyedLocks

logger = logging.getLogger(__name__)

# Stored as dedicated columns rather than inside the JSON payload
_COLUMN_KEYS = ("id", "order")


def _audit_value(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def row_to_project(row: ProjectModel) -> Project:
    data = dict(row.data or {})
    data["id"] = row.id
    data["order"] = row.order_number
    return Project.model_validate(data)


class SqlProjectStore:
    """Project store over an async SQLAlchemy engine."""

    def __init__(self, engine: AsyncEngine):
        """Initialize store with an engine it will own.

        Args:
            engine: Async engine; disposed by close()
        """
        self.engine = engine
        self._session_factory = create_session_factory(engine)
        self._locks = KeyedLocks()

    @classmethod
    def from_config(cls, config: StoreConfig) -> SqlProjectStore:
        return cls(create_engine(config))

    async def init(self, drop: bool = False) -> None:
        await init_db(self.engine, drop=drop)

    async def close(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def _transaction(
        self, action: str, project_id: int | None = None
    ) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as e:
            logger.error("Store %s failed for project %s: %s", action, project_id, e)
            raise StoreOperationError(f"{action} failed: {e}", project_id) from e

    async def get_all(self) -> list[Project]:
        async with self._transaction("list") as session:
            result = await session.execute(select(ProjectModel).order_by(ProjectModel.id))
            return [row_to_project(row) for row in result.scalars().all()]

    async def get(self, project_id: int) -> Project | None:
        async with self._transaction("get", project_id) as session:
            row = await session.get(ProjectModel, project_id)
            return row_to_project(row) if row else None

    async def add(self, project: Project) -> None:
        """Insert the project, or update it (with audit rows) if it exists."""
        async with self._locks(project.id):
            async with self._transaction("save", project.id) as session:
                row = await session.get(ProjectModel, project.id)
                if row is None:
                    session.add(self._new_row(project))
                    logger.debug("Inserted project %s", project.id)
                else:
                    self._apply_update(session, row, project)

    async def insert(self, project: Project) -> None:
        """Insert only.

        Raises:
            ProjectExistsError: If the id is already stored
        """
        async with self._locks(project.id):
            async with self._transaction("insert", project.id) as session:
                if await session.get(ProjectModel, project.id) is not None:
                    raise ProjectExistsError(
                        f"Project {project.id} already exists", project.id
                    )
                session.add(self._new_row(project))

    async def update(self, project: Project) -> list[str]:
        """Update an existing project.

        Returns:
            Names of the fields that changed

        Raises:
            ProjectNotFoundError: If the id is not stored
        """
        async with self._locks(project.id):
            async with self._transaction("update", project.id) as session:
                row = await session.get(ProjectModel, project.id)
                if row is None:
                    raise ProjectNotFoundError(
                        f"Project {project.id} not found", project.id
                    )
                return self._apply_update(session, row, project)

    async def delete(self, project_id: int) -> bool:
        async with self._locks(project_id):
            async with self._transaction("delete", project_id) as session:
                # Change history goes first
                await session.execute(
                    delete(ProjectChangeModel).where(
                        ProjectChangeModel.project_id == project_id
                    )
                )
                result = await session.execute(
                    delete(ProjectModel).where(ProjectModel.id == project_id)
                )
                deleted = result.rowcount > 0

        if deleted:
            logger.debug("Deleted project %s", project_id)
        return deleted

    async def get_changes(self, project_id: int) -> list[ProjectChange]:
        async with self._transaction("changes", project_id) as session:
            result = await session.execute(
                select(ProjectChangeModel)
                .where(ProjectChangeModel.project_id == project_id)
                .order_by(ProjectChangeModel.changed_at.desc(), ProjectChangeModel.id.desc())
            )
            return [
                ProjectChange(
                    id=change.id,
                    project_id=change.project_id,
                    field_name=change.field_name,
                    old_value=change.old_value,
                    new_value=change.new_value,
                    changed_at=change.changed_at,
                )
                for change in result.scalars().all()
            ]

    def _new_row(self, project: Project) -> ProjectModel:
        row = ProjectModel(id=project.id, version=1)
        self._copy_fields(row, project)
        return row

    def _copy_fields(self, row: ProjectModel, project: Project) -> None:
        record = project.to_record()
        row.pmo_id = project.pmo_id
        row.order_number = project.order
        row.project_name = project.project_name or None
        row.is_changed = bool(project.is_changed)
        row.data = {k: v for k, v in record.items() if k not in _COLUMN_KEYS}

    def _apply_update(
        self, session: AsyncSession, row: ProjectModel, project: Project
    ) -> list[str]:
        now = datetime.now(timezone.utc)
        changed = []
        for field_name, old, new in iter_field_changes(row_to_project(row), project):
            session.add(
                ProjectChangeModel(
                    project_id=project.id,
                    field_name=field_name,
                    old_value=_audit_value(old),
                    new_value=_audit_value(new),
                    changed_at=now,
                )
            )
            changed.append(field_name)

        row.version = (row.version or 0) + 1
        row.updated_at = now
        self._copy_fields(row, project)

        logger.debug(
            "Updated project %s to version %s (%d fields changed)",
            project.id,
            row.version,
            len(changed),
        )
        return changed
