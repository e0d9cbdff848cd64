"""Database layer for SchedTrack with async SQLAlchemy."""

from schedtrack.db.connection import create_engine, create_session_factory, init_db
from schedtrack.db.models import Base, ProjectChangeModel, ProjectModel

__all__ = [
    "Base",
    "ProjectModel",
    "ProjectChangeModel",
    "create_engine",
    "create_session_factory",
    "init_db",
]
