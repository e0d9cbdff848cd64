"""Unit tests for schedtrack.ingestion.parser - workbook reading."""

from __future__ import annotations

import io
from datetime import datetime

import pytest
from openpyxl import Workbook

from schedtrack.exceptions import ParseError
from schedtrack.ingestion.parser import (
    HeaderLabelMapper,
    PositionalMapper,
    clean_cell,
    detect_layout,
    parse_workbook,
)


class TestCleanCell:
    @pytest.mark.parametrize("value", [None, float("nan"), "#N/A", " #REF! ", "   "])
    def test_blank_values(self, value):
        assert clean_cell(value) == ""

    def test_keeps_values(self):
        assert clean_cell("  P1 ") == "P1"
        assert clean_cell(45000) == 45000


class TestDetectLayout:
    def test_header_label_layout(self):
        mapper = detect_layout(["Row", "PMO ID", "Order", "MOB"])
        assert isinstance(mapper, HeaderLabelMapper)

    def test_positional_layout_when_keys_missing(self):
        mapper = detect_layout(["", "Estimating Milestone", "", "Construction Milestones"])
        assert isinstance(mapper, PositionalMapper)


class _UnreadableCell(str):
    def strip(self, chars=None):
        raise ValueError("unreadable cell")


class TestRowMapping:
    def test_malformed_cell_becomes_blank_and_row_is_kept(self):
        mapper = HeaderLabelMapper(["Row", "PMO ID", "Order", "Project Name"])

        row = mapper.map_row([1, "P1", _UnreadableCell("O1"), "Alpha"])

        assert row == {"Row": 1, "PMO ID": "P1", "Order": "", "Project Name": "Alpha"}

    def test_positional_malformed_cell_becomes_blank(self):
        cells = [1] * 46
        cells[10] = "P1"
        cells[11] = _UnreadableCell("O1")

        row = PositionalMapper().map_row(cells)

        assert row["PMO ID"] == "P1"
        assert row["Order"] == ""

    def test_short_rows_are_padded(self):
        mapper = HeaderLabelMapper(["Row", "PMO ID", "Order"])

        assert mapper.map_row([1]) == {"Row": 1, "PMO ID": "", "Order": ""}


class TestParseWorkbook:
    def test_reads_header_label_layout(self, write_schedule):
        path = write_schedule(
            [
                {"PMO ID": "P1", "Order": "O1", "Project Name": "Alpha", "MOB": 45000},
                {"PMO ID": "P2", "Order": "O2", "Project Name": "Beta"},
            ]
        )

        rows = list(parse_workbook(path))

        assert len(rows) == 2
        assert rows[0]["PMO ID"] == "P1"
        assert rows[0]["MOB"] == 45000
        assert rows[1]["Project Name"] == "Beta"
        assert rows[1]["MOB"] == ""

    def test_datetime_cells_are_returned_as_datetimes(self, write_schedule):
        path = write_schedule(
            [{"PMO ID": "P1", "Order": "O1", "MOB": datetime(2024, 1, 15)}]
        )
        (row,) = parse_workbook(path)
        assert row["MOB"] == datetime(2024, 1, 15)

    def test_skips_blank_and_repeated_header_rows(self, write_schedule):
        path = write_schedule(
            [
                {"PMO ID": "P1", "Order": "O1"},
                {"Row": None},
                {"Row": "Row", "PMO ID": "PMO ID", "Order": "Order"},
                {"PMO ID": "P2", "Order": "O2"},
            ]
        )

        rows = list(parse_workbook(path))

        assert [r["PMO ID"] for r in rows] == ["P1", "P2"]

    def test_reads_positional_layout(self, write_positional_schedule):
        path = write_positional_schedule(
            [
                {"PMO ID": "P1", "Order": "O1", "MOB": "02/01/2024", "NTP": 45000},
                {"PMO ID": "P2", "Order": "O2", "Engr Plan Year": 2025},
            ]
        )

        rows = list(parse_workbook(path))

        assert len(rows) == 2
        assert rows[0]["MOB"] == "02/01/2024"
        assert rows[0]["NTP"] == 45000
        assert rows[1]["Engr Plan Year"] == 2025

    def test_accepts_a_stream_with_filename(self, write_schedule):
        path = write_schedule([{"PMO ID": "P1", "Order": "O1"}])
        stream = io.BytesIO(path.read_bytes())

        rows = list(parse_workbook(stream, filename="upload.xlsx"))

        assert rows[0]["Order"] == "O1"

    def test_reads_csv(self, tmp_path):
        path = tmp_path / "schedule.csv"
        path.write_text("PMO ID,Order,MOB\nP1,O1,01/15/2024\nP2,O2,\n", encoding="utf-8")

        rows = list(parse_workbook(path, header_row=0))

        assert [r["PMO ID"] for r in rows] == ["P1", "P2"]
        assert rows[0]["MOB"] == "01/15/2024"

    def test_missing_sheet(self, write_schedule):
        path = write_schedule([{"PMO ID": "P1"}], sheet_name="Other")

        with pytest.raises(ParseError, match='Sheet "Estimating Schedule" not found'):
            parse_workbook(path)

    def test_first_sheet_when_no_sheet_name(self, write_schedule):
        path = write_schedule([{"PMO ID": "P1", "Order": "O1"}], sheet_name="Other")
        rows = list(parse_workbook(path, sheet_name=None))
        assert rows[0]["PMO ID"] == "P1"

    def test_too_few_rows_for_header(self, tmp_path):
        wb = Workbook()
        ws = wb.active
        ws.title = "Estimating Schedule"
        ws.append(["only one row"])
        path = tmp_path / "short.xlsx"
        wb.save(path)

        with pytest.raises(ParseError, match="does not contain enough rows"):
            parse_workbook(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ParseError, match="not found"):
            parse_workbook(tmp_path / "nope.xlsx")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "schedule.txt"
        path.write_text("hello", encoding="utf-8")

        with pytest.raises(ParseError, match="Unsupported file format"):
            parse_workbook(path)

    def test_corrupt_workbook(self, tmp_path):
        path = tmp_path / "broken.xlsx"
        path.write_bytes(b"not a zip file")

        with pytest.raises(ParseError, match="Could not open workbook"):
            parse_workbook(path)

    def test_row_limit(self, write_schedule):
        path = write_schedule([{"PMO ID": f"P{i}", "Order": "O"} for i in range(5)])

        with pytest.raises(ParseError, match="Too many rows"):
            list(parse_workbook(path, max_rows=3))
