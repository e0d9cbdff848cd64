"""Search and date-window filters over project records.

Search terms come in two shapes:
- "column:value" matches one column (by display label, header label or JSON
  key), case-insensitive substring
- anything else matches when any visible column contains the text

All terms must match for a record to be kept.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Iterable
from datetime import date, datetime
from enum import Enum

from schedtrack.fields import FIELD_SPECS, ProjectField, get_field, spec_for_label
from schedtrack.models import Project
from schedtrack.reconcile.categorize import parse_schedule_date

_COLUMN_TERM = re.compile(r"^([^:]+):(.+)$")


class DateWindow(str, Enum):
    """Quick date filters offered next to the search bar."""

    NEXT_30_DAYS = "30"
    NEXT_60_DAYS = "60"
    NEXT_90_DAYS = "90"
    PAST_DUE = "past-due"

    @property
    def days(self) -> int:
        return 0 if self is DateWindow.PAST_DUE else int(self.value)


def parse_search_term(term: str) -> tuple[str, str] | None:
    """Split a "column:value" term; None for a free-text term."""
    match = _COLUMN_TERM.match(term)
    if not match:
        return None
    return match.group(1).strip(), match.group(2).strip()


def matches_term(
    project: Project,
    term: str,
    visible: Collection[ProjectField] | None = None,
) -> bool:
    visible_fields = list(FIELD_SPECS) if visible is None else list(visible)

    column_term = parse_search_term(term)
    if column_term:
        column, value = column_term
        spec = spec_for_label(column)
        if spec is None or spec.field not in visible_fields:
            return False
        return value.lower() in str(get_field(project, spec.field)).lower()

    needle = term.lower()
    return any(
        needle in str(get_field(project, field)).lower() for field in visible_fields
    )


def filter_projects(
    records: Iterable[Project],
    terms: Iterable[str],
    visible: Collection[ProjectField] | None = None,
) -> list[Project]:
    terms = [t for t in terms if t.strip()]
    return [p for p in records if all(matches_term(p, t, visible) for t in terms)]


def filter_by_window(
    records: Iterable[Project],
    date_field: ProjectField,
    window: DateWindow,
    today: date | datetime,
) -> list[Project]:
    """Keep records whose milestone falls in the window.

    Past-due keeps dates strictly before today; the day windows keep dates from
    today up to and including today + N days. Undated records never match.
    """
    if isinstance(today, datetime):
        today = today.date()

    kept = []
    for project in records:
        value = parse_schedule_date(get_field(project, date_field))
        if value is None:
            continue
        day_diff = (value - today).days
        if window is DateWindow.PAST_DUE:
            if day_diff < 0:
                kept.append(project)
        elif 0 <= day_diff <= window.days:
            kept.append(project)
    return kept
