"""Project CRUD routes.

Handles the saved-project collection and its per-field change history.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import ValidationError

from schedtrack.exceptions import ProjectExistsError, ProjectNotFoundError
from schedtrack.models import Project, ProjectChange
from schedtrack.reconcile.merge import utc_timestamp
from schedtrack.store.sql_store import SqlProjectStore
from schedtrack.web.dependencies import get_store

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("")
async def list_projects(store: SqlProjectStore = Depends(get_store)) -> list[dict[str, Any]]:
    """List all saved projects."""
    return [project.to_record() for project in await store.get_all()]


@router.get("/{project_id}")
async def get_project(
    project_id: int, store: SqlProjectStore = Depends(get_store)
) -> dict[str, Any]:
    project = await store.get(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project.to_record()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    project: Project, store: SqlProjectStore = Depends(get_store)
) -> dict[str, Any]:
    """Save a new project. Fails with 409 if the id is already saved."""
    try:
        await store.insert(project)
    except ProjectExistsError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return {"success": True, "id": project.id}


@router.put("/{project_id}")
async def update_project(
    project_id: int,
    payload: dict[str, Any] = Body(...),
    store: SqlProjectStore = Depends(get_store),
) -> dict[str, Any]:
    """Update a saved project.

    Only the keys present in the body are applied; unsent fields keep their
    saved values. Bumps the version, marks the project changed and records one
    change row per modified field.
    """
    existing = await store.get(project_id)
    if existing is None:
        raise HTTPException(status_code=404, detail="Project not found")

    try:
        project = Project.model_validate(
            {
                **existing.to_record(),
                **payload,
                "id": project_id,
                "is_changed": True,
                "last_updated": utc_timestamp(),
            }
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    try:
        changed = await store.update(project)
    except ProjectNotFoundError as e:
        raise HTTPException(status_code=404, detail="Project not found") from e
    return {"success": True, "id": project_id, "changed_fields": changed}


@router.delete("/{project_id}")
async def delete_project(
    project_id: int, store: SqlProjectStore = Depends(get_store)
) -> dict[str, Any]:
    """Delete a saved project together with its change history."""
    if not await store.delete(project_id):
        raise HTTPException(status_code=404, detail="Project not found")
    return {"success": True, "id": project_id}


@router.get("/{project_id}/changes")
async def list_project_changes(
    project_id: int, store: SqlProjectStore = Depends(get_store)
) -> list[ProjectChange]:
    """Change history for one project, newest first."""
    return await store.get_changes(project_id)
