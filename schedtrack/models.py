"""SchedTrack Pydantic models for type-safe data validation.

Attribute names are snake_case; JSON keys (aliases) keep the camelCase names
used by the schedule exports and the remote API.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from schedtrack.fields import UNTRACKED_KEYS

ChangeValue = Union[str, int, float, bool, None]


class DateCategory(str, Enum):
    """Relative-time bucket used for urgency highlighting."""

    THIS_WEEK = "thisWeek"
    NEXT_WEEK = "nextWeek"
    THIS_MONTH = "thisMonth"
    NEXT_MONTH = "nextMonth"
    NEXT_3_MONTHS = "next3Months"
    FUTURE = "future"
    NONE = "none"


class CategoryPolicy(str, Enum):
    """Bucket cut points used by the date categorizer."""

    MONTHLY = "monthly"  # this week, this month, next month, next 3 months
    WEEKLY = "weekly"  # this week, next week, this month, next 3 months


class SortPolicy(str, Enum):
    """Ordering applied after categorization."""

    CHRONOLOGICAL = "chronological"  # ascending, empty dates last
    DISTANCE = "distance"  # closest to the reference date first


class Project(BaseModel):
    """One schedule/milestone row from the estimating schedule."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
        json_schema_extra={
            "example": {
                "id": 75387182,
                "pmoId": "P1",
                "order": "O1",
                "projectName": "Main St Relocation",
                "engrPlanYear": 2024,
                "mob": "01/01/2024",
            }
        },
    )

    id: int

    # Team
    cost_estimator: str = Field("", alias="costEstimator")
    cost_estimator_request: str = Field("", alias="costEstimatorRequest")
    ade: str = ""
    project_manager: str = Field("", alias="projectManager")
    project_engineer: str = Field("", alias="projectEngineer")
    design_estimator: str = Field("", alias="designEstimator")
    construction_contractor: str = Field("", alias="constructionContractor")

    # Project info
    bundle_id: str = Field("", alias="bundleId")
    post_estimate: str = Field("", alias="postEstimate")
    pmo_id: str = Field("", alias="pmoId")
    order: str = ""
    multiple_order: str = Field("", alias="multipleOrder")
    mat: str = ""
    project_name: str = Field("", alias="projectName")
    work_stream: str = Field("", alias="workStream")
    work_type: str = Field("", alias="workType")
    station: str = ""
    line: str = ""
    mp1: str = ""
    mp2: str = ""
    city: str = ""
    county: str = ""

    # Plan years
    engr_plan_year: int = Field(0, alias="engrPlanYear")
    const_plan_year: int = Field(0, alias="constPlanYear")

    # Milestones (MM/DD/YYYY text)
    commitment_date: str = Field("", alias="commitmentDate")
    class5: str = ""
    class4: str = ""
    class3: str = ""
    class2: str = ""
    negotiate_price: str = Field("", alias="negotiatePrice")
    je_ready_to_route: str = Field("", alias="jeReadyToRoute")
    je_approved: str = Field("", alias="jeApproved")
    estimate_analysis: str = Field("", alias="estimateAnalysis")
    thirty_percent_design_review_meeting: str = Field(
        "", alias="thirtyPercentDesignReviewMeeting"
    )
    thirty_percent_design_available: str = Field("", alias="thirtyPercentDesignAvailable")
    sixty_percent_design_review_meeting: str = Field(
        "", alias="sixtyPercentDesignReviewMeeting"
    )
    sixty_percent_design_available: str = Field("", alias="sixtyPercentDesignAvailable")
    ninety_percent_design_review_meeting: str = Field(
        "", alias="ninetyPercentDesignReviewMeeting"
    )
    ninety_percent_design_available: str = Field("", alias="ninetyPercentDesignAvailable")
    ifc: str = ""
    ntp: str = ""
    mob: str = ""
    tie_in: str = Field("", alias="tieIn")
    enro: str = ""
    unit_capture: str = Field("", alias="unitCapture")

    # Change tracking
    last_updated: str | None = None
    is_changed: bool | None = None
    changes: dict[str, ChangeValue] | None = Field(
        None, validation_alias=AliasChoices("changes", "_changes")
    )

    # Transient, recomputed on every categorization pass
    date_category: DateCategory | None = Field(None, alias="dateCategory")

    def tracked_values(self) -> dict[str, Any]:
        """All diffable values keyed by JSON name, including extra columns."""
        data = self.model_dump(by_alias=True)
        return {k: v for k, v in data.items() if k not in UNTRACKED_KEYS}

    def to_record(self) -> dict[str, Any]:
        """Serialize for persistence (drops the transient date category)."""
        return self.model_dump(by_alias=True, exclude={"date_category"})


class ProjectChange(BaseModel):
    """One audit row: a single field change applied by an update."""

    id: int | None = None
    project_id: int
    field_name: str
    old_value: str | None = None
    new_value: str | None = None
    changed_at: datetime
