"""Project store backed by the remote CRUD API."""

from __future__ import annotations

from schedtrack.exceptions import RemoteApiError
from schedtrack.integration.remote_api import RemoteProjectApi
from schedtrack.models import Project, ProjectChange
from schedtrack.store.base import KeyedLocks


class HttpProjectStore:
    """ProjectStore adapter over RemoteProjectApi.

    ``add`` upserts: it tries PUT and falls back to POST when the server
    answers 404.
    """

    def __init__(self, api: RemoteProjectApi):
        self.api = api
        self._locks = KeyedLocks()

    async def get_all(self) -> list[Project]:
        return await self.api.get_projects()

    async def get(self, project_id: int) -> Project | None:
        try:
            return await self.api.get_project(project_id)
        except RemoteApiError as e:
            if e.status_code == 404:
                return None
            raise

    async def add(self, project: Project) -> None:
        async with self._locks(project.id):
            try:
                await self.api.update_project(project)
            except RemoteApiError as e:
                if e.status_code != 404:
                    raise
                await self.api.add_project(project)

    async def delete(self, project_id: int) -> bool:
        async with self._locks(project_id):
            try:
                await self.api.delete_project(project_id)
            except RemoteApiError as e:
                if e.status_code == 404:
                    return False
                raise
        return True

    async def get_changes(self, project_id: int) -> list[ProjectChange]:
        return await self.api.get_project_changes(project_id)

    async def close(self) -> None:
        await self.api.close()
