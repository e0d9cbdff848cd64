"""Persistent store contract consumed by the import pipeline, CLI and API."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol, runtime_checkable

from schedtrack.models import Project, ProjectChange


@runtime_checkable
class ProjectStore(Protocol):
    """Durable collection of saved projects keyed by project id.

    ``add`` has upsert semantics. ``delete`` also removes the project's change
    history and returns False when nothing was stored under the id.
    """

    async def get_all(self) -> list[Project]: ...

    async def get(self, project_id: int) -> Project | None: ...

    async def add(self, project: Project) -> None: ...

    async def delete(self, project_id: int) -> bool: ...

    async def get_changes(self, project_id: int) -> list[ProjectChange]: ...

    async def close(self) -> None: ...


class KeyedLocks:
    """One asyncio.Lock per project id, so writes to one id never interleave.

    A lock lives only while some task holds it or waits for it.
    """

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = {}

    @asynccontextmanager
    async def __call__(self, project_id: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(project_id, asyncio.Lock())
        self._users[project_id] = self._users.get(project_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[project_id] -= 1
            if not self._users[project_id]:
                del self._users[project_id]
                del self._locks[project_id]

    def __len__(self) -> int:
        return len(self._locks)
