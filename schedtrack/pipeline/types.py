"""Type definitions for pipeline operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from schedtrack.models import Project


class ImportStatus(str, Enum):
    """Status of an import operation."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    PARTIAL_SUCCESS = "PARTIAL_SUCCESS"


@dataclass
class ImportResult:
    """Result of an import operation.

    ``projects`` is the new working set, categorized and sorted. It is empty
    when the import failed.
    """

    source_name: str
    status: ImportStatus
    records_read: int = 0
    records_inserted: int = 0
    records_updated: int = 0
    records_changed: int = 0
    warnings: int = 0
    collisions: list[int] = field(default_factory=list)
    message: str = ""
    error_details: Optional[dict] = None
    duration_seconds: float = 0.0
    projects: list[Project] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if import was successful."""
        return self.status in (ImportStatus.SUCCESS, ImportStatus.PARTIAL_SUCCESS)


@dataclass
class BulkResult:
    """Per-record outcome of a bulk save or remove."""

    succeeded: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)
    missing: list[int] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed

    @property
    def total_records(self) -> int:
        """Total records processed."""
        return len(self.succeeded) + len(self.failed) + len(self.missing)
