"""Shared dependencies for SchedTrack web routes.

The config and the store are created once by create_app() and kept on
``app.state``; route handlers receive them through Depends().

Usage:
    from fastapi import Depends
    from schedtrack.web.dependencies import get_store

    @router.get("/projects")
    async def list_projects(store: SqlProjectStore = Depends(get_store)):
        ...
"""

from __future__ import annotations

from fastapi import Request

from schedtrack.config import AppConfig
from schedtrack.store.sql_store import SqlProjectStore


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def get_store(request: Request) -> SqlProjectStore:
    return request.app.state.store
