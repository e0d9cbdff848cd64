"""Import preview route.

Runs an uploaded schedule through the import pipeline against the saved
projects and returns the triaged result. Nothing is persisted.
"""

from __future__ import annotations

import io

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from schedtrack.config import AppConfig
from schedtrack.exceptions import ParseError, StoreOperationError
from schedtrack.fields import ProjectField
from schedtrack.pipeline.importer import ImportPipeline
from schedtrack.store.sql_store import SqlProjectStore
from schedtrack.web.dependencies import get_config, get_store

router = APIRouter(prefix="/imports", tags=["imports"])


@router.post("/preview")
async def preview_import(
    file: UploadFile = File(...),
    date_field: ProjectField | None = None,
    config: AppConfig = Depends(get_config),
    store: SqlProjectStore = Depends(get_store),
):
    """Upload a schedule (XLSX/XLS/CSV) and preview the merged working set.

    The saved projects serve as both the diff baseline and the working set,
    so re-imported saved projects come back with their field changes.
    """
    content = await file.read()
    pipeline = ImportPipeline(config, store)

    try:
        saved = await store.get_all()
        result = await pipeline.run(
            io.BytesIO(content),
            filename=file.filename,
            working=saved,
            date_field=date_field,
            raise_on_error=True,
        )
    except ParseError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except StoreOperationError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e

    return {
        "status": result.status.value,
        "message": result.message,
        "records_read": result.records_read,
        "records_inserted": result.records_inserted,
        "records_updated": result.records_updated,
        "records_changed": result.records_changed,
        "warnings": result.warnings,
        "collisions": result.collisions,
        "projects": [
            project.model_dump(mode="json", by_alias=True) for project in result.projects
        ],
    }
