"""Typed field table for project records.

Every business field of a Project is described once here: its JSON key, the
pydantic attribute that holds it, the spreadsheet header label(s) it is read
from, its display label, its value kind, and its column offset in the legacy
positional layout. Diffing, search, import and categorization iterate this
table instead of reaching into records by arbitrary string keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from schedtrack.models import Project


class FieldKind(str, Enum):
    """Value kind of a business field."""

    TEXT = "text"
    INTEGER = "integer"
    DATE = "date"  # MM/DD/YYYY text, never a structured date


class ProjectField(str, Enum):
    """Business fields of a project record, valued by their JSON key."""

    COST_ESTIMATOR = "costEstimator"
    COST_ESTIMATOR_REQUEST = "costEstimatorRequest"
    ADE = "ade"
    PROJECT_MANAGER = "projectManager"
    PROJECT_ENGINEER = "projectEngineer"
    DESIGN_ESTIMATOR = "designEstimator"
    CONSTRUCTION_CONTRACTOR = "constructionContractor"
    BUNDLE_ID = "bundleId"
    POST_ESTIMATE = "postEstimate"
    PMO_ID = "pmoId"
    ORDER = "order"
    MULTIPLE_ORDER = "multipleOrder"
    MAT = "mat"
    PROJECT_NAME = "projectName"
    WORK_STREAM = "workStream"
    WORK_TYPE = "workType"
    ENGR_PLAN_YEAR = "engrPlanYear"
    CONST_PLAN_YEAR = "constPlanYear"
    COMMITMENT_DATE = "commitmentDate"
    STATION = "station"
    LINE = "line"
    MP1 = "mp1"
    MP2 = "mp2"
    CITY = "city"
    COUNTY = "county"
    CLASS5 = "class5"
    CLASS4 = "class4"
    CLASS3 = "class3"
    CLASS2 = "class2"
    NEGOTIATE_PRICE = "negotiatePrice"
    JE_READY_TO_ROUTE = "jeReadyToRoute"
    JE_APPROVED = "jeApproved"
    ESTIMATE_ANALYSIS = "estimateAnalysis"
    THIRTY_REVIEW = "thirtyPercentDesignReviewMeeting"
    THIRTY_AVAILABLE = "thirtyPercentDesignAvailable"
    SIXTY_REVIEW = "sixtyPercentDesignReviewMeeting"
    SIXTY_AVAILABLE = "sixtyPercentDesignAvailable"
    NINETY_REVIEW = "ninetyPercentDesignReviewMeeting"
    NINETY_AVAILABLE = "ninetyPercentDesignAvailable"
    IFC = "ifc"
    NTP = "ntp"
    MOB = "mob"
    TIE_IN = "tieIn"
    ENRO = "enro"
    UNIT_CAPTURE = "unitCapture"


@dataclass(frozen=True)
class FieldSpec:
    """Static description of one business field."""

    field: ProjectField
    attr: str
    header: str
    label: str
    kind: FieldKind
    offset: int  # column index in the legacy positional layout
    header_aliases: tuple[str, ...] = ()

    @property
    def headers(self) -> tuple[str, ...]:
        return (self.header, *self.header_aliases)


_T, _I, _D = FieldKind.TEXT, FieldKind.INTEGER, FieldKind.DATE

# Order matches the legacy column order; column 0 holds a row number.
_SPECS: tuple[FieldSpec, ...] = (
    FieldSpec(ProjectField.COST_ESTIMATOR, "cost_estimator", "Cost Estimator", "Cost Est.", _T, 1),
    FieldSpec(ProjectField.COST_ESTIMATOR_REQUEST, "cost_estimator_request", "Cost Estimator Requested", "Cost Est. Req.", _T, 2),
    FieldSpec(ProjectField.ADE, "ade", "ADE", "ADE", _T, 3),
    FieldSpec(ProjectField.PROJECT_MANAGER, "project_manager", "Project Manager", "PM", _T, 4),
    FieldSpec(ProjectField.PROJECT_ENGINEER, "project_engineer", "Project Engineer", "Proj. Eng.", _T, 5),
    FieldSpec(ProjectField.DESIGN_ESTIMATOR, "design_estimator", "Design Estimator", "Design Est.", _T, 6),
    FieldSpec(ProjectField.CONSTRUCTION_CONTRACTOR, "construction_contractor", "Construction Contractor", "Contractor", _T, 7),
    FieldSpec(ProjectField.BUNDLE_ID, "bundle_id", "Bundle ID", "Bundle ID", _T, 8),
    FieldSpec(ProjectField.POST_ESTIMATE, "post_estimate", "Post Estimate", "Post Est.", _T, 9),
    FieldSpec(ProjectField.PMO_ID, "pmo_id", "PMO ID", "PMO ID", _T, 10),
    FieldSpec(ProjectField.ORDER, "order", "Order", "Order", _T, 11),
    FieldSpec(ProjectField.MULTIPLE_ORDER, "multiple_order", "Multiple Order", "Multi Order", _T, 12),
    FieldSpec(ProjectField.MAT, "mat", "MAT", "MAT", _T, 13),
    FieldSpec(ProjectField.PROJECT_NAME, "project_name", "Project Name", "Project", _T, 14),
    FieldSpec(ProjectField.WORK_STREAM, "work_stream", "Work Stream", "Stream", _T, 15),
    FieldSpec(ProjectField.WORK_TYPE, "work_type", "Work Type", "Type", _T, 16),
    FieldSpec(ProjectField.ENGR_PLAN_YEAR, "engr_plan_year", "Engr Plan Year", "Eng. Year", _I, 17),
    FieldSpec(ProjectField.CONST_PLAN_YEAR, "const_plan_year", "Construction Plan Year", "Const. Year", _I, 18),
    FieldSpec(ProjectField.COMMITMENT_DATE, "commitment_date", "Commitment Date", "Commit Date", _D, 19),
    FieldSpec(ProjectField.STATION, "station", "Station", "Station", _T, 20),
    FieldSpec(ProjectField.LINE, "line", "Line", "LINE", _T, 21),
    FieldSpec(ProjectField.MP1, "mp1", "MP1", "MP1", _T, 22),
    FieldSpec(ProjectField.MP2, "mp2", "MP2", "MP2", _T, 23),
    FieldSpec(ProjectField.CITY, "city", "City", "City", _T, 24),
    FieldSpec(ProjectField.COUNTY, "county", "County", "County", _T, 25),
    FieldSpec(ProjectField.CLASS5, "class5", "Class 5", "CLASS 5", _D, 26),
    FieldSpec(ProjectField.CLASS4, "class4", "Class 4", "CLASS 4", _D, 27),
    FieldSpec(ProjectField.CLASS3, "class3", "Class 3", "CLASS 3", _D, 28),
    FieldSpec(ProjectField.CLASS2, "class2", "Class 2", "CLASS 2", _D, 29),
    FieldSpec(ProjectField.NEGOTIATE_PRICE, "negotiate_price", "Negotiate Price", "Neg. Price", _D, 30),
    FieldSpec(ProjectField.JE_READY_TO_ROUTE, "je_ready_to_route", "JE Ready to Route", "JE Ready", _D, 31),
    FieldSpec(ProjectField.JE_APPROVED, "je_approved", "JE Approved", "JE Appr.", _D, 32),
    FieldSpec(ProjectField.ESTIMATE_ANALYSIS, "estimate_analysis", "Estimate Analysis", "Est. Analysis", _D, 33),
    FieldSpec(ProjectField.THIRTY_REVIEW, "thirty_percent_design_review_meeting", "30% Design Review Meeting", "30% Review", _D, 34),
    FieldSpec(ProjectField.THIRTY_AVAILABLE, "thirty_percent_design_available", "30% Design Available", "30% Design", _D, 35),
    FieldSpec(ProjectField.SIXTY_REVIEW, "sixty_percent_design_review_meeting", "60% Design Review Meeting", "60% Review", _D, 36),
    FieldSpec(ProjectField.SIXTY_AVAILABLE, "sixty_percent_design_available", "60% Design Available", "60% Design", _D, 37),
    FieldSpec(ProjectField.NINETY_REVIEW, "ninety_percent_design_review_meeting", "90% Design Review Meeting", "90% Review", _D, 38),
    FieldSpec(ProjectField.NINETY_AVAILABLE, "ninety_percent_design_available", "90% Design Available", "90% Design", _D, 39),
    FieldSpec(ProjectField.IFC, "ifc", "IFC", "IFC", _D, 40),
    FieldSpec(ProjectField.NTP, "ntp", "NTP", "NTP", _D, 41),
    FieldSpec(ProjectField.MOB, "mob", "MOB", "MOB", _D, 42),
    FieldSpec(ProjectField.TIE_IN, "tie_in", "Tie-In", "Tie-in", _D, 43),
    FieldSpec(ProjectField.ENRO, "enro", "ENRO", "ENRO", _D, 44, ("EDRO",)),
    FieldSpec(ProjectField.UNIT_CAPTURE, "unit_capture", "Unit Capture", "Unit Cap.", _D, 45),
)

FIELD_SPECS: dict[ProjectField, FieldSpec] = {spec.field: spec for spec in _SPECS}

DATE_FIELDS: tuple[ProjectField, ...] = tuple(
    spec.field for spec in _SPECS if spec.kind is FieldKind.DATE
)

# Bookkeeping keys that are never diffed
UNTRACKED_KEYS = frozenset(
    {"id", "changes", "_changes", "is_changed", "last_updated", "dateCategory", "date_category"}
)


def _header_key(label: str) -> str:
    return " ".join(label.split()).casefold()


_BY_HEADER: dict[str, FieldSpec] = {
    _header_key(header): spec for spec in _SPECS for header in spec.headers
}


def spec_for_header(label: Any) -> FieldSpec | None:
    """Look up a field by spreadsheet header label (case/whitespace-insensitive)."""
    if not isinstance(label, str):
        return None
    return _BY_HEADER.get(_header_key(label))


def spec_for_label(label: str) -> FieldSpec | None:
    """Look up a field by display label, header label or JSON key."""
    wanted = _header_key(label)
    for spec in _SPECS:
        if wanted in (
            _header_key(spec.label),
            _header_key(spec.field.value),
            *(_header_key(h) for h in spec.headers),
        ):
            return spec
    return None


def get_field(project: Project, field: ProjectField) -> str | int:
    return getattr(project, FIELD_SPECS[field].attr)


def set_field(project: Project, field: ProjectField, value: str | int) -> None:
    """Assign a business field, enforcing the field's kind."""
    spec = FIELD_SPECS[field]
    expected = int if spec.kind is FieldKind.INTEGER else str
    if not isinstance(value, expected) or isinstance(value, bool):
        raise TypeError(
            f"{field.value} expects {expected.__name__}, got {type(value).__name__}"
        )
    setattr(project, spec.attr, value)
