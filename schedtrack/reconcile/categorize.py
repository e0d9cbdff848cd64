"""Date-based triage buckets for schedule records.

Every record is placed in a relative-time bucket based on one configurable
milestone field, measured from a reference date (normally today):

    monthly policy (default):  thisWeek -> thisMonth -> nextMonth -> next3Months -> future
    weekly policy:             thisWeek -> nextWeek -> thisMonth -> next3Months -> future

Boundaries are inclusive and checked in ascending order, so overdue dates land
in the first bucket. Records with an empty or unreadable date get "none".
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from typing import NamedTuple

import pandas as pd

from schedtrack.fields import DATE_FIELDS, ProjectField, get_field
from schedtrack.models import CategoryPolicy, DateCategory, Project, SortPolicy


class Boundaries(NamedTuple):
    end_of_week: date
    end_of_next_week: date
    end_of_month: date
    end_of_next_month: date
    end_of_three_months: date


def _end_of_month(year: int, month: int) -> date:
    # month may run past December
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return date(year, month, calendar.monthrange(year, month)[1])


def _as_day(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def compute_boundaries(reference_date: date | datetime) -> Boundaries:
    """Bucket boundaries for a reference date, normalized to midnight.

    The week ends on Sunday; a Sunday reference date is its own week end.
    """
    today = _as_day(reference_date)
    end_of_week = today + timedelta(days=6 - today.weekday())
    return Boundaries(
        end_of_week=end_of_week,
        end_of_next_week=end_of_week + timedelta(days=7),
        end_of_month=_end_of_month(today.year, today.month),
        end_of_next_month=_end_of_month(today.year, today.month + 1),
        end_of_three_months=_end_of_month(today.year, today.month + 3),
    )


def parse_schedule_date(value: object) -> date | None:
    """Parse a milestone value; MM/DD/YYYY first, then the pandas parser."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return datetime.strptime(text, "%m/%d/%Y").date()
    except ValueError:
        pass

    parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def category_for(
    value: date | None,
    bounds: Boundaries,
    policy: CategoryPolicy = CategoryPolicy.MONTHLY,
) -> DateCategory:
    if value is None:
        return DateCategory.NONE

    if policy is CategoryPolicy.WEEKLY:
        ladder = (
            (bounds.end_of_week, DateCategory.THIS_WEEK),
            (bounds.end_of_next_week, DateCategory.NEXT_WEEK),
            (bounds.end_of_month, DateCategory.THIS_MONTH),
            (bounds.end_of_three_months, DateCategory.NEXT_3_MONTHS),
        )
    else:
        ladder = (
            (bounds.end_of_week, DateCategory.THIS_WEEK),
            (bounds.end_of_month, DateCategory.THIS_MONTH),
            (bounds.end_of_next_month, DateCategory.NEXT_MONTH),
            (bounds.end_of_three_months, DateCategory.NEXT_3_MONTHS),
        )

    for boundary, category in ladder:
        if value <= boundary:
            return category
    return DateCategory.FUTURE


def _check_date_field(date_field: ProjectField) -> None:
    if date_field not in DATE_FIELDS:
        raise ValueError(f"{date_field.value} is not a milestone date field")


def categorize_projects(
    records: Iterable[Project],
    date_field: ProjectField,
    reference_date: date | datetime,
    *,
    policy: CategoryPolicy = CategoryPolicy.MONTHLY,
) -> list[Project]:
    """Return copies of ``records`` with ``date_category`` set.

    Raises:
        ValueError: If ``date_field`` is not a date field
    """
    _check_date_field(date_field)
    bounds = compute_boundaries(reference_date)
    return [
        project.model_copy(
            update={
                "date_category": category_for(
                    parse_schedule_date(get_field(project, date_field)), bounds, policy
                )
            }
        )
        for project in records
    ]


def sort_projects(
    records: Iterable[Project],
    date_field: ProjectField,
    reference_date: date | datetime,
    *,
    policy: SortPolicy = SortPolicy.CHRONOLOGICAL,
) -> list[Project]:
    """Order records by their milestone date; undated records always go last.

    The sort is stable, so records with equal keys keep their input order.
    """
    _check_date_field(date_field)
    today = _as_day(reference_date)

    def key(project: Project) -> tuple[int, int]:
        value = parse_schedule_date(get_field(project, date_field))
        if value is None:
            return (1, 0)
        if policy is SortPolicy.DISTANCE:
            return (0, abs((value - today).days))
        return (0, value.toordinal())

    return sorted(records, key=key)
