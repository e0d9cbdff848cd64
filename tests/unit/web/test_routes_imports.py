"""Tests for schedtrack.web.routes.imports - Import preview route."""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from schedtrack.config import AppConfig
from schedtrack.models import Project
from schedtrack.web.routes import imports

XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture
def store():
    """Mocked project store holding one saved project."""
    mock = AsyncMock()
    mock.get_all.return_value = [
        Project(id=75387182, pmo_id="P1", order="O1", mob="01/15/2024")
    ]
    return mock


@pytest.fixture
def client(store):
    """Create test client for an app with the imports router."""
    test_app = FastAPI()
    test_app.include_router(imports.router, prefix="/api")
    test_app.state.store = store
    test_app.state.config = AppConfig()
    return TestClient(test_app)


class TestPreviewImport:
    """Tests for POST /api/imports/preview."""

    def test_preview_diffs_against_saved_projects(self, client, store, write_schedule):
        path = write_schedule(
            [
                {"PMO ID": "P1", "Order": "O1", "MOB": "02/01/2024"},
                {"PMO ID": "P2", "Order": "O2", "MOB": "03/01/2024"},
            ]
        )

        with path.open("rb") as f:
            response = client.post(
                "/api/imports/preview",
                files={"file": ("schedule.xlsx", f, XLSX_TYPE)},
            )

        assert response.status_code == 200
        body = response.json()
        assert body["records_read"] == 2
        assert body["records_inserted"] == 1
        assert body["records_changed"] == 1

        by_id = {p["id"]: p for p in body["projects"]}
        assert by_id[75387182]["changes"] == {"mob": "01/15/2024"}
        assert by_id[75387182]["is_changed"] is True
        assert by_id[75387182]["dateCategory"] is not None
        store.add.assert_not_awaited()

    def test_date_field_query_parameter(self, client, write_schedule):
        path = write_schedule([{"PMO ID": "P9", "Order": "O9", "NTP": "01/15/2024"}])

        with path.open("rb") as f:
            response = client.post(
                "/api/imports/preview?date_field=ntp",
                files={"file": ("schedule.xlsx", f, XLSX_TYPE)},
            )

        assert response.status_code == 200

    def test_unreadable_upload_is_422(self, client):
        response = client.post(
            "/api/imports/preview",
            files={"file": ("schedule.xlsx", b"not a workbook", XLSX_TYPE)},
        )

        assert response.status_code == 422
        assert "Could not open workbook" in response.json()["detail"]

    def test_missing_sheet_is_422(self, client, write_schedule):
        path = write_schedule([{"PMO ID": "P1"}], sheet_name="Sheet1")

        with path.open("rb") as f:
            response = client.post(
                "/api/imports/preview",
                files={"file": ("schedule.xlsx", f, XLSX_TYPE)},
            )

        assert response.status_code == 422
        assert "not found in workbook" in response.json()["detail"]
