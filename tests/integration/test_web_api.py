"""Integration tests for the project API served by create_app().

The app runs its lifespan (store creation and table setup) against a
temporary SQLite database.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from schedtrack.web.app import create_app

XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture
def client(app_config):
    with TestClient(create_app(app_config)) as test_client:
        yield test_client


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_project_lifecycle(client):
    created = client.post(
        "/api/projects",
        json={"id": 42, "pmoId": "P42", "order": "O42", "mob": "01/15/2024"},
    )
    assert created.status_code == 201

    duplicate = client.post("/api/projects", json={"id": 42})
    assert duplicate.status_code == 409

    assert client.get("/api/projects/42").json()["order"] == "O42"

    updated = client.put(
        "/api/projects/42",
        json={"mob": "02/01/2024"},
    )
    assert updated.status_code == 200
    assert updated.json()["changed_fields"] == ["mob"]

    project = client.get("/api/projects/42").json()
    assert project["mob"] == "02/01/2024"
    assert project["is_changed"] is True
    assert project["last_updated"].endswith("Z")

    changes = client.get("/api/projects/42/changes").json()
    assert [(c["field_name"], c["old_value"], c["new_value"]) for c in changes] == [
        ("mob", "01/15/2024", "02/01/2024")
    ]

    assert client.delete("/api/projects/42").status_code == 200
    assert client.get("/api/projects/42").status_code == 404
    assert client.get("/api/projects/42/changes").json() == []
    assert client.delete("/api/projects/42").status_code == 404


def test_update_missing_project(client):
    response = client.put("/api/projects/7", json={"mob": "02/01/2024"})

    assert response.status_code == 404


def test_list_projects(client):
    for project_id in (3, 1, 2):
        client.post("/api/projects", json={"id": project_id})

    response = client.get("/api/projects")

    assert [p["id"] for p in response.json()] == [1, 2, 3]


def test_preview_uses_saved_projects(client, write_schedule):
    client.post(
        "/api/projects",
        json={"id": 75387182, "pmoId": "P1", "order": "O1", "mob": "01/15/2024"},
    )
    path = write_schedule([{"PMO ID": "P1", "Order": "O1", "MOB": "02/01/2024"}])

    with path.open("rb") as f:
        response = client.post(
            "/api/imports/preview", files={"file": ("schedule.xlsx", f, XLSX_TYPE)}
        )

    assert response.status_code == 200
    (project,) = response.json()["projects"]
    assert project["changes"] == {"mob": "01/15/2024"}

    # Preview never persists
    assert client.get("/api/projects/75387182").json()["mob"] == "01/15/2024"


def test_custom_api_prefix(app_config):
    with TestClient(create_app(app_config, api_prefix="/v2")) as test_client:
        assert test_client.get("/v2/projects").status_code == 200
        assert test_client.get("/api/projects").status_code == 404


def test_partial_update_keeps_unsent_fields(client):
    client.post(
        "/api/projects",
        json={
            "id": 5,
            "pmoId": "P5",
            "order": "O5",
            "projectName": "Main St",
            "mob": "01/15/2024",
        },
    )

    response = client.put("/api/projects/5", json={"mob": "02/01/2024"})

    assert response.json()["changed_fields"] == ["mob"]
    project = client.get("/api/projects/5").json()
    assert project["pmoId"] == "P5"
    assert project["order"] == "O5"
    assert project["projectName"] == "Main St"
    assert project["mob"] == "02/01/2024"
    changes = client.get("/api/projects/5/changes").json()
    assert [c["field_name"] for c in changes] == ["mob"]
