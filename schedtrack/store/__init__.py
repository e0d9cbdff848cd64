"""Persistent project stores.

build_store() is called once at startup; the returned handle is passed to the
pipeline, CLI commands and web dependencies, and closed at shutdown.
"""

from __future__ import annotations

from schedtrack.config import AppConfig
from schedtrack.integration.remote_api import RemoteProjectApi
from schedtrack.store.base import ProjectStore
from schedtrack.store.http_store import HttpProjectStore
from schedtrack.store.sql_store import SqlProjectStore


def build_store(config: AppConfig) -> ProjectStore:
    """Create the store selected by ``config.store_backend``."""
    if config.store_backend == "http":
        return HttpProjectStore(RemoteProjectApi.from_config(config.remote_api))
    return SqlProjectStore.from_config(config.store)


__all__ = [
    "HttpProjectStore",
    "ProjectStore",
    "SqlProjectStore",
    "build_store",
]
