"""Estimating schedule spreadsheet parser.

Reads a workbook sheet (XLSX via openpyxl in streaming read-only mode, XLS and
CSV via pandas) and yields one mapping per data row, keyed by the canonical
header label of each known column.

Two layouts exist in the wild:
- header-label layout: the header row names every column ("PMO ID", "Order")
- legacy positional layout: the header row only carries group labels
  ("Estimating Milestone", "Construction Milestones") and columns are
  identified by their offset

The layout is chosen by inspecting the header row (see detect_layout).
"""

from __future__ import annotations

import logging
import zipfile
from collections.abc import Callable, Iterator, Sequence
from pathlib import Path
from typing import IO, Any, Protocol

import pandas as pd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from schedtrack.exceptions import ParseError
from schedtrack.fields import FIELD_SPECS, ProjectField, spec_for_header

logger = logging.getLogger(__name__)

DEFAULT_SHEET_NAME = "Estimating Schedule"
DEFAULT_HEADER_ROW = 3
MAX_FILE_SIZE_MB = 50
MAX_ROWS = 50_000

EXCEL_ERROR_VALUES = frozenset(
    {"#N/A", "#REF!", "#VALUE!", "#DIV/0!", "#NAME?", "#NULL!", "#NUM!"}
)

Row = dict[str, Any]


def clean_cell(value: Any) -> Any:
    """Blank, NaN and spreadsheet error cells all become ""."""
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    if isinstance(value, str):
        stripped = value.strip()
        if stripped in EXCEL_ERROR_VALUES:
            return ""
        return stripped
    return value


def cell_at(cells: Sequence[Any], index: int) -> Any:
    """Cleaned cell at ``index``. Missing and malformed cells become ""."""
    if index >= len(cells):
        return ""
    try:
        return clean_cell(cells[index])
    except (TypeError, ValueError) as e:
        logger.warning("Malformed cell in column %d read as blank: %s", index, e)
        return ""


class RowMapper(Protocol):
    """Turns a raw cell tuple into a row mapping for one layout."""

    name: str

    def is_nested_header(self, cells: Sequence[Any]) -> bool: ...

    def map_row(self, cells: Sequence[Any]) -> Row: ...


class HeaderLabelMapper:
    """Columns identified by the labels in the header row."""

    name = "header-label"

    def __init__(self, header_cells: Sequence[Any]):
        self.columns: list[tuple[int, str]] = []
        for index, label in enumerate(header_cells):
            label = clean_cell(label)
            if label == "":
                continue
            spec = spec_for_header(label)
            self.columns.append((index, spec.header if spec else str(label)))

        self._key_columns = [
            (index, key)
            for index, key in self.columns
            if key
            in (
                FIELD_SPECS[ProjectField.PMO_ID].header,
                FIELD_SPECS[ProjectField.ORDER].header,
            )
        ]

    def is_nested_header(self, cells: Sequence[Any]) -> bool:
        # A repeated header row carries the key labels in the key columns
        for index, key in self._key_columns:
            if cell_at(cells, index) == key:
                return True
        return False

    def map_row(self, cells: Sequence[Any]) -> Row:
        row: Row = {}
        for index, key in self.columns:
            row[key] = cell_at(cells, index)
        return row


class PositionalMapper:
    """Legacy layout: fixed column offsets, column 0 holds a row number."""

    name = "positional"

    _ROW_LABEL = "Row"
    _NTP_OFFSET = FIELD_SPECS[ProjectField.NTP].offset
    _FIRST_OFFSET = FIELD_SPECS[ProjectField.COST_ESTIMATOR].offset

    def is_nested_header(self, cells: Sequence[Any]) -> bool:
        return (
            cell_at(cells, 0) == self._ROW_LABEL
            or cell_at(cells, self._NTP_OFFSET) == "NTP"
            or cell_at(cells, self._FIRST_OFFSET)
            == FIELD_SPECS[ProjectField.COST_ESTIMATOR].header
        )

    def map_row(self, cells: Sequence[Any]) -> Row:
        row: Row = {}
        for spec in FIELD_SPECS.values():
            row[spec.header] = cell_at(cells, spec.offset)
        return row


def detect_layout(header_cells: Sequence[Any]) -> RowMapper:
    """Pick the row mapper for a sheet from its header row.

    The header-label layout is used whenever the header row names both
    business key columns; otherwise the legacy positional layout applies.
    """
    found = {spec.field for spec in map(spec_for_header, header_cells) if spec}
    if {ProjectField.PMO_ID, ProjectField.ORDER} <= found:
        return HeaderLabelMapper(header_cells)
    return PositionalMapper()


def _open_xlsx(
    source: Path | IO[bytes], sheet_name: str | None
) -> tuple[Iterator[tuple[Any, ...]], Callable[[], None], int | None]:
    try:
        workbook = load_workbook(source, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise ParseError(f"Could not open workbook: {e}") from e

    if sheet_name:
        if sheet_name not in workbook.sheetnames:
            workbook.close()
            raise ParseError(f'Sheet "{sheet_name}" not found in workbook')
        worksheet = workbook[sheet_name]
    else:
        worksheet = workbook.worksheets[0]

    return worksheet.iter_rows(values_only=True), workbook.close, worksheet.max_row


def _open_with_pandas(
    source: Path | IO[bytes], suffix: str, sheet_name: str | None
) -> tuple[Iterator[tuple[Any, ...]], Callable[[], None], int | None]:
    try:
        if suffix == ".csv":
            df = pd.read_csv(source, header=None, dtype=object, keep_default_na=False)
        else:
            df = pd.read_excel(
                source, sheet_name=sheet_name or 0, header=None, dtype=object
            )
    except ValueError as e:
        # pandas reports a missing sheet as ValueError
        raise ParseError(f"Could not read {suffix} file: {e}") from e
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ParseError(f"Could not read {suffix} file: {e}") from e

    rows = (tuple(values) for values in df.itertuples(index=False, name=None))
    return rows, lambda: None, len(df)


def _suffix_of(source: Path | str | IO[bytes], filename: str | None) -> str:
    name = filename or (str(source) if isinstance(source, (str, Path)) else "")
    return Path(name).suffix.lower() or ".xlsx"


def parse_workbook(
    source: Path | str | IO[bytes],
    *,
    filename: str | None = None,
    sheet_name: str | None = DEFAULT_SHEET_NAME,
    header_row: int = DEFAULT_HEADER_ROW,
    layout: RowMapper | None = None,
    max_file_mb: int = MAX_FILE_SIZE_MB,
    max_rows: int = MAX_ROWS,
) -> Iterator[Row]:
    """Open a schedule workbook and return a lazy iterator of row mappings.

    Structural problems are reported eagerly: this function raises before
    returning when the file, sheet or header row is missing. The returned
    iterator is single-use.

    Args:
        source: Path or binary file object
        filename: Original file name, used for the format when source is a stream
        sheet_name: Sheet to read (None = first sheet)
        header_row: 0-based index of the header row
        layout: Force a row mapper instead of detecting one
        max_file_mb: Maximum accepted file size
        max_rows: Maximum accepted number of data rows

    Raises:
        ParseError: If the workbook structure is missing or limits are exceeded
    """
    suffix = _suffix_of(source, filename)

    if isinstance(source, (str, Path)):
        source = Path(source)
        if not source.exists():
            raise ParseError(f"Schedule file not found: {source}")
        file_size_mb = source.stat().st_size / (1024 * 1024)
        if file_size_mb > max_file_mb:
            raise ParseError(
                f"File too large ({file_size_mb:.1f}MB). Maximum allowed: {max_file_mb}MB"
            )

    if suffix in (".xlsx", ".xlsm"):
        rows, close, total_rows = _open_xlsx(source, sheet_name)
    elif suffix in (".xls", ".csv"):
        rows, close, total_rows = _open_with_pandas(source, suffix, sheet_name)
    else:
        raise ParseError(f"Unsupported file format: {suffix}. Use XLSX, XLS or CSV.")

    if total_rows is not None and total_rows - header_row - 1 > max_rows:
        close()
        raise ParseError(
            f"Too many rows ({total_rows:,}). Maximum allowed: {max_rows:,}"
        )

    header_cells: tuple[Any, ...] | None = None
    for index, cells in enumerate(rows):
        if index == header_row:
            header_cells = cells
            break

    if header_cells is None:
        close()
        raise ParseError(
            f"Sheet does not contain enough rows (header expected at row {header_row + 1})"
        )

    mapper = layout or detect_layout(header_cells)
    logger.info("Parsing schedule with %s layout", mapper.name)

    return _iter_data_rows(rows, mapper, close, header_row, max_rows)


def _iter_data_rows(
    rows: Iterator[tuple[Any, ...]],
    mapper: RowMapper,
    close: Callable[[], None],
    header_row: int,
    max_rows: int,
) -> Iterator[Row]:
    yielded = 0
    try:
        for line_no, cells in enumerate(rows, start=header_row + 2):
            if all(cell_at(cells, i) == "" for i in range(len(cells))):
                continue
            if mapper.is_nested_header(cells):
                logger.debug("Skipping nested header at line %d", line_no)
                continue
            row = mapper.map_row(cells)
            yielded += 1
            if yielded > max_rows:
                raise ParseError(f"Too many rows. Maximum allowed: {max_rows:,}")
            yield row
    finally:
        close()
