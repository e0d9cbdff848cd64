"""Pytest configuration and fixtures for SchedTrack tests.

Provides project factories and builders for small schedule workbooks.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any, Callable

import pytest
from openpyxl import Workbook

from schedtrack.config import AppConfig, StoreConfig
from schedtrack.fields import FIELD_SPECS
from schedtrack.models import Project

SHEET_NAME = "Estimating Schedule"

# Header-label layout columns used by the workbook builder
SCHEDULE_HEADERS = [
    "Row",
    "PMO ID",
    "Order",
    "Project Name",
    "Project Manager",
    "Engr Plan Year",
    "NTP",
    "MOB",
]

# Rows above the header row (header row index 3)
PREAMBLE = [
    ["Estimating Schedule"],
    ["Exported from scheduling system"],
    ["", "Project", "", "", "", "", "Construction Milestones"],
]


@pytest.fixture
def reference_date() -> date:
    """Fixed 'today' used for categorization (a Monday)."""
    return date(2024, 1, 1)


@pytest.fixture
def make_project() -> Callable[..., Project]:
    """Factory for Project records; keyword arguments use JSON names."""

    def _make(id: int = 1, **fields: Any) -> Project:
        return Project.model_validate({"id": id, **fields})

    return _make


@pytest.fixture
def sample_project(make_project) -> Project:
    return make_project(
        75387182,
        pmoId="P1",
        order="O1",
        projectName="Main St Relocation",
        projectManager="Dana",
        engrPlanYear=2024,
        mob="01/15/2024",
    )


@pytest.fixture
def write_schedule(tmp_path: Path) -> Callable[..., Path]:
    """Build a header-label layout workbook.

    Each row is a dict keyed by header label; missing cells are left blank.
    """

    def _write(
        rows: list[dict[str, Any]],
        name: str = "schedule.xlsx",
        sheet_name: str = SHEET_NAME,
        headers: list[str] | None = None,
    ) -> Path:
        headers = headers or SCHEDULE_HEADERS
        wb = Workbook()
        ws = wb.active
        ws.title = sheet_name
        for line in PREAMBLE:
            ws.append(line)
        ws.append(headers)
        for position, row in enumerate(rows, start=1):
            values = {"Row": position, **row}
            ws.append([values.get(h) for h in headers])
        path = tmp_path / name
        wb.save(path)
        return path

    return _write


@pytest.fixture
def write_positional_schedule(tmp_path: Path) -> Callable[..., Path]:
    """Build a legacy positional layout workbook (group labels only in the header)."""

    width = max(spec.offset for spec in FIELD_SPECS.values()) + 1

    def _write(rows: list[dict[str, Any]], name: str = "legacy.xlsx") -> Path:
        wb = Workbook()
        ws = wb.active
        ws.title = SHEET_NAME
        for line in PREAMBLE:
            ws.append(line)

        header = [""] * width
        header[1] = "Estimating Milestone"
        header[40] = "Construction Milestones"
        ws.append(header)

        # Nested header row repeating the column labels
        nested = ["Row"] + [""] * (width - 1)
        for spec in FIELD_SPECS.values():
            nested[spec.offset] = spec.header
        ws.append(nested)

        for position, row in enumerate(rows, start=1):
            cells: list[Any] = [position] + [None] * (width - 1)
            for spec in FIELD_SPECS.values():
                if spec.header in row:
                    cells[spec.offset] = row[spec.header]
            ws.append(cells)

        path = tmp_path / name
        wb.save(path)
        return path

    return _write


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """Config with a file-backed SQLite store and working set under tmp_path."""
    return AppConfig(
        working_set_path=tmp_path / "working_set.json",
        store=StoreConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'schedtrack.db'}"),
    )
