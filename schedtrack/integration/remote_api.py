"""Client for the remote project CRUD API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from schedtrack.config import RemoteApiConfig
from schedtrack.exceptions import RemoteApiError, StoreOperationError
from schedtrack.models import Project, ProjectChange

logger = logging.getLogger(__name__)


class RemoteProjectApi:
    """Async client for the /projects endpoints.

    Any non-2xx response raises RemoteApiError carrying the status code and
    the server's reason phrase. Transport failures raise StoreOperationError.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_config(cls, config: RemoteApiConfig) -> RemoteProjectApi:
        return cls(config.base_url, timeout=config.timeout_seconds)

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> RemoteProjectApi:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        project_id: int | None = None,
        json: Any = None,
    ) -> httpx.Response:
        try:
            response = await self.client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.error("API error: %s %s: %s", method, path, e)
            raise StoreOperationError(f"{method} {path} failed: {e}", project_id) from e

        if response.is_error:
            logger.error(
                "API error: %s %s -> %s %s",
                method,
                path,
                response.status_code,
                response.reason_phrase,
            )
            raise RemoteApiError(
                response.status_code,
                response.reason_phrase,
                str(response.url),
                project_id=project_id,
            )
        return response

    async def get_projects(self) -> list[Project]:
        response = await self._request("GET", "/projects")
        return [Project.model_validate(item) for item in response.json()]

    async def get_project(self, project_id: int) -> Project:
        response = await self._request("GET", f"/projects/{project_id}", project_id)
        return Project.model_validate(response.json())

    async def add_project(self, project: Project) -> None:
        await self._request("POST", "/projects", project.id, json=project.to_record())

    async def update_project(self, project: Project) -> None:
        await self._request(
            "PUT", f"/projects/{project.id}", project.id, json=project.to_record()
        )

    async def delete_project(self, project_id: int) -> None:
        await self._request("DELETE", f"/projects/{project_id}", project_id)

    async def get_project_changes(self, project_id: int) -> list[ProjectChange]:
        response = await self._request(
            "GET", f"/projects/{project_id}/changes", project_id
        )
        return [ProjectChange.model_validate(item) for item in response.json()]
