"""Unit tests for schedtrack.reconcile.categorize - date triage buckets."""

from __future__ import annotations

from datetime import date

import pytest

from schedtrack.fields import ProjectField
from schedtrack.models import CategoryPolicy, DateCategory, SortPolicy
from schedtrack.reconcile.categorize import (
    categorize_projects,
    category_for,
    compute_boundaries,
    parse_schedule_date,
    sort_projects,
)

MONTHLY = CategoryPolicy.MONTHLY
WEEKLY = CategoryPolicy.WEEKLY


class TestBoundaries:
    def test_monday_reference(self, reference_date):
        bounds = compute_boundaries(reference_date)

        assert bounds.end_of_week == date(2024, 1, 7)
        assert bounds.end_of_next_week == date(2024, 1, 14)
        assert bounds.end_of_month == date(2024, 1, 31)
        assert bounds.end_of_next_month == date(2024, 2, 29)
        assert bounds.end_of_three_months == date(2024, 4, 30)

    def test_sunday_is_its_own_week_end(self):
        assert compute_boundaries(date(2024, 1, 7)).end_of_week == date(2024, 1, 7)

    def test_month_ends_roll_over_the_year(self):
        bounds = compute_boundaries(date(2024, 11, 15))

        assert bounds.end_of_next_month == date(2024, 12, 31)
        assert bounds.end_of_three_months == date(2025, 2, 28)


class TestParseScheduleDate:
    def test_slash_format(self):
        assert parse_schedule_date("01/15/2024") == date(2024, 1, 15)

    def test_iso_format_falls_back_to_pandas(self):
        assert parse_schedule_date("2024-01-15") == date(2024, 1, 15)

    @pytest.mark.parametrize("value", ["", "   ", "TBD", None, 0])
    def test_unreadable_values(self, value):
        assert parse_schedule_date(value) is None


class TestCategoryFor:
    @pytest.mark.parametrize(
        "value, monthly, weekly",
        [
            ("01/03/2024", DateCategory.THIS_WEEK, DateCategory.THIS_WEEK),
            ("01/07/2024", DateCategory.THIS_WEEK, DateCategory.THIS_WEEK),
            ("01/10/2024", DateCategory.THIS_MONTH, DateCategory.NEXT_WEEK),
            ("01/20/2024", DateCategory.THIS_MONTH, DateCategory.THIS_MONTH),
            ("02/01/2024", DateCategory.NEXT_MONTH, DateCategory.NEXT_3_MONTHS),
            ("04/30/2024", DateCategory.NEXT_3_MONTHS, DateCategory.NEXT_3_MONTHS),
            ("05/01/2024", DateCategory.FUTURE, DateCategory.FUTURE),
            ("01/01/2026", DateCategory.FUTURE, DateCategory.FUTURE),
            ("12/15/2023", DateCategory.THIS_WEEK, DateCategory.THIS_WEEK),
            ("", DateCategory.NONE, DateCategory.NONE),
        ],
    )
    def test_ladder(self, reference_date, value, monthly, weekly):
        bounds = compute_boundaries(reference_date)
        parsed = parse_schedule_date(value)

        assert category_for(parsed, bounds, MONTHLY) is monthly
        assert category_for(parsed, bounds, WEEKLY) is weekly


class TestCategorizeProjects:
    def test_sets_category_on_copies(self, make_project, reference_date):
        original = make_project(1, mob="01/03/2024")

        (categorized,) = categorize_projects([original], ProjectField.MOB, reference_date)

        assert categorized.date_category is DateCategory.THIS_WEEK
        assert original.date_category is None

    def test_uses_the_chosen_date_field(self, make_project, reference_date):
        project = make_project(1, mob="01/03/2024", ntp="02/01/2024")

        (by_ntp,) = categorize_projects([project], ProjectField.NTP, reference_date)

        assert by_ntp.date_category is DateCategory.NEXT_MONTH

    def test_rejects_non_date_field(self, make_project, reference_date):
        with pytest.raises(ValueError):
            categorize_projects([make_project(1)], ProjectField.CITY, reference_date)


class TestSortProjects:
    def test_chronological_with_undated_last(self, make_project, reference_date):
        records = [
            make_project(1, mob=""),
            make_project(2, mob="03/01/2024"),
            make_project(3, mob="12/01/2023"),
            make_project(4, mob="01/05/2024"),
        ]

        ordered = sort_projects(records, ProjectField.MOB, reference_date)

        assert [p.id for p in ordered] == [3, 4, 2, 1]

    def test_distance_policy(self, make_project, reference_date):
        records = [
            make_project(1, mob="03/01/2024"),
            make_project(2, mob="12/01/2023"),
            make_project(3, mob="01/05/2024"),
            make_project(4, mob="TBD"),
        ]

        ordered = sort_projects(
            records, ProjectField.MOB, reference_date, policy=SortPolicy.DISTANCE
        )

        assert [p.id for p in ordered] == [3, 2, 1, 4]

    def test_is_stable(self, make_project, reference_date):
        records = [make_project(i, mob="01/05/2024") for i in (5, 3, 9)]

        ordered = sort_projects(records, ProjectField.MOB, reference_date)

        assert [p.id for p in ordered] == [5, 3, 9]
