"""Health check API routes."""

from fastapi import APIRouter, Depends, status

from schedtrack.exceptions import StoreOperationError
from schedtrack.store.sql_store import SqlProjectStore
from schedtrack.web.dependencies import get_store

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", status_code=status.HTTP_200_OK)
async def health_check(store: SqlProjectStore = Depends(get_store)):
    """Check application health.

    Verifies the store can be read.
    """
    try:
        await store.get(0)
        return {"status": "ok", "database": "connected"}
    except StoreOperationError as e:
        return {"status": "error", "database": "disconnected", "detail": str(e)}
