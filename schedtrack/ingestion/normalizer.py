"""Map raw spreadsheet rows onto Project records.

Each field is coerced according to its kind in the field table:
- text: string, "" when absent
- integer: numeric parse, 0 when absent or unparseable (with a warning)
- date: passed through format_date, kept as MM/DD/YYYY text
"""

from __future__ import annotations

import logging
import warnings
from datetime import date, datetime, timedelta
from typing import Any, Mapping

from schedtrack.exceptions import FieldCoercionWarning
from schedtrack.fields import FIELD_SPECS, FieldKind, FieldSpec, ProjectField, set_field
from schedtrack.ingestion.identity import resolve_identity
from schedtrack.models import Project

logger = logging.getLogger(__name__)

# Spreadsheet serial of 1970-01-01
EXCEL_EPOCH_OFFSET_DAYS = 25569
_UNIX_EPOCH = datetime(1970, 1, 1)


def format_date(value: Any) -> str:
    """Render a date cell as MM/DD/YYYY text.

    Strings that already contain "/" are returned untouched so the display
    matches what was typed. Numbers are spreadsheet day serials, interpreted
    in UTC. Anything that cannot be converted is returned as its string form.
    """
    if not value:
        return ""

    if isinstance(value, str) and "/" in value:
        return value

    try:
        if isinstance(value, datetime):
            moment = value
        elif isinstance(value, date):
            moment = datetime(value.year, value.month, value.day)
        else:
            serial = float(value)
            moment = _UNIX_EPOCH + timedelta(
                milliseconds=(serial - EXCEL_EPOCH_OFFSET_DAYS) * 86400 * 1000
            )
        return f"{moment.month:02d}/{moment.day:02d}/{moment.year}"
    except (ValueError, TypeError, OverflowError):
        return str(value) if value is not None else ""


def coerce_text(value: Any) -> str:
    if value is None or value == "":
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return format_date(value)
    return str(value).strip()


def coerce_int(value: Any, spec: FieldSpec | None = None) -> int:
    """Numeric parse with a 0 default; unparseable values raise a warning."""
    if value is None or value == "":
        return 0
    try:
        return int(float(str(value).strip()))
    except (ValueError, TypeError, OverflowError):
        name = spec.field.value if spec else "value"
        warnings.warn(
            f"{name}: could not coerce {value!r} to integer, using 0",
            FieldCoercionWarning,
            stacklevel=2,
        )
        return 0


def _coerce(spec: FieldSpec, value: Any) -> str | int:
    if spec.kind is FieldKind.INTEGER:
        return coerce_int(value, spec)
    if spec.kind is FieldKind.DATE:
        return format_date(value)
    return coerce_text(value)


def normalize_row(row: Mapping[str, Any], position: int) -> Project:
    """Build a Project from one raw row mapping (header label -> cell value).

    Args:
        row: Row mapping produced by the spreadsheet parser
        position: 0-based position in the import batch (identity fallback)

    Returns:
        Project with its resolved id
    """
    pmo_id = coerce_text(row.get(FIELD_SPECS[ProjectField.PMO_ID].header))
    order_number = coerce_text(row.get(FIELD_SPECS[ProjectField.ORDER].header))

    project = Project(id=resolve_identity(pmo_id, order_number, position))
    for spec in FIELD_SPECS.values():
        set_field(project, spec.field, _coerce(spec, row.get(spec.header, "")))

    return project


def normalize_rows(rows, start: int = 0) -> list[Project]:
    """Normalize an iterable of raw rows, numbering positions from ``start``."""
    projects = [normalize_row(row, position) for position, row in enumerate(rows, start)]
    logger.debug("Normalized %d rows", len(projects))
    return projects
