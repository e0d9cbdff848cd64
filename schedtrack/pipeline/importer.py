"""Schedule import orchestration.

Runs parse -> normalize -> merge -> categorize for one uploaded workbook and
performs best-effort bulk writes to the project store. A parse failure aborts
the whole import; store failures on save/remove are isolated per record.
"""

from __future__ import annotations

import asyncio
import logging
import time
import warnings
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from pathlib import Path
from typing import IO

from schedtrack.config import AppConfig
from schedtrack.exceptions import FieldCoercionWarning, ParseError, StoreOperationError
from schedtrack.fields import ProjectField
from schedtrack.ingestion.normalizer import normalize_rows
from schedtrack.ingestion.parser import parse_workbook
from schedtrack.models import Project
from schedtrack.pipeline.types import BulkResult, ImportResult, ImportStatus
from schedtrack.reconcile.categorize import categorize_projects, sort_projects
from schedtrack.reconcile.merge import ImportMerger
from schedtrack.store.base import ProjectStore

logger = logging.getLogger(__name__)


class ImportPipeline:
    """Import a schedule workbook into a working set.

    Responsibilities:
    1. Parse and normalize the workbook off the event loop
    2. Merge the batch into the working set, diffing against saved projects
    3. Categorize and sort the result for triage
    4. Save or remove projects in the store on request
    """

    def __init__(self, config: AppConfig, store: ProjectStore):
        """Initialize pipeline.

        Args:
            config: Application configuration
            store: Store holding the saved baseline
        """
        self.config = config
        self.store = store

    def _read(
        self, source: Path | str | IO[bytes], filename: str | None
    ) -> tuple[list[Project], int]:
        imports = self.config.imports
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", FieldCoercionWarning)
            rows = parse_workbook(
                source,
                filename=filename,
                sheet_name=imports.sheet_name,
                header_row=imports.header_row,
                max_file_mb=imports.max_file_mb,
                max_rows=imports.max_rows,
            )
            projects = normalize_rows(rows)

        coercions = 0
        for warning in caught:
            if issubclass(warning.category, FieldCoercionWarning):
                coercions += 1
                logger.warning("%s", warning.message)
            else:
                warnings.warn_explicit(
                    warning.message, warning.category, warning.filename, warning.lineno
                )
        return projects, coercions

    async def run(
        self,
        source: Path | str | IO[bytes],
        *,
        filename: str | None = None,
        working: Sequence[Project] = (),
        date_field: ProjectField | None = None,
        reference_date: date | datetime | None = None,
        raise_on_error: bool = False,
    ) -> ImportResult:
        """Import one workbook.

        Args:
            source: Path or binary stream of the workbook
            filename: Original file name (required for streams that are not xlsx)
            working: Current working set the batch is merged into
            date_field: Milestone used for triage (default from config)
            reference_date: "Today" for categorization (default: today)
            raise_on_error: Re-raise ParseError instead of returning a FAILED result

        Returns:
            ImportResult with the new working set in ``projects``
        """
        start = time.monotonic()
        source_name = filename or (
            Path(source).name if isinstance(source, (str, Path)) else "upload"
        )
        result = ImportResult(source_name=source_name, status=ImportStatus.SUCCESS)
        logger.info("Importing schedule %s", source_name)

        try:
            incoming, coercions = await asyncio.to_thread(self._read, source, filename)
        except ParseError as e:
            logger.error("Import of %s failed: %s", source_name, e)
            if raise_on_error:
                raise
            result.status = ImportStatus.FAILED
            result.message = str(e)
            result.duration_seconds = time.monotonic() - start
            return result

        try:
            baseline = await self.store.get_all()
        except StoreOperationError as e:
            logger.error("Could not load saved projects: %s", e)
            if raise_on_error:
                raise
            result.status = ImportStatus.FAILED
            result.message = f"Store error: {e}"
            result.duration_seconds = time.monotonic() - start
            return result

        result.collisions = find_collisions(incoming)
        for project_id in result.collisions:
            logger.warning("Identity collision: id %s appears more than once", project_id)

        merger = ImportMerger(baseline)
        merged = merger.merge(working, incoming)

        triage = self.config.triage
        field = date_field or triage.date_field
        today = reference_date or date.today()
        merged = categorize_projects(merged, field, today, policy=triage.category_policy)
        merged = sort_projects(merged, field, today, policy=triage.sort_policy)

        stats = merger.get_stats()
        result.records_read = len(incoming)
        result.records_inserted = stats["inserted"]
        result.records_updated = stats["updated"]
        result.records_changed = stats["changed"]
        result.warnings = coercions
        result.projects = merged
        if coercions or result.collisions:
            result.status = ImportStatus.PARTIAL_SUCCESS
        result.message = (
            f"{len(incoming)} rows read, {stats['inserted']} new, "
            f"{stats['updated']} updated, {stats['changed']} changed since last save"
        )
        result.duration_seconds = time.monotonic() - start

        logger.info("Import of %s completed: %s", source_name, result.message)
        return result

    async def save_projects(self, projects: Iterable[Project]) -> BulkResult:
        """Save each project; one failure does not stop the others."""
        outcome = BulkResult()
        for project in projects:
            try:
                await self.store.add(project)
            except StoreOperationError as e:
                logger.error("Failed to save project %s: %s", project.id, e)
                outcome.failed[project.id] = str(e)
            else:
                outcome.succeeded.append(project.id)

        logger.info(
            "Saved %d projects (%d failed)", len(outcome.succeeded), len(outcome.failed)
        )
        return outcome

    async def remove_projects(self, project_ids: Iterable[int]) -> BulkResult:
        """Remove each project and its change history, best effort."""
        outcome = BulkResult()
        for project_id in project_ids:
            try:
                deleted = await self.store.delete(project_id)
            except StoreOperationError as e:
                logger.error("Failed to remove project %s: %s", project_id, e)
                outcome.failed[project_id] = str(e)
                continue
            if deleted:
                outcome.succeeded.append(project_id)
            else:
                outcome.missing.append(project_id)

        logger.info(
            "Removed %d projects (%d failed, %d not found)",
            len(outcome.succeeded),
            len(outcome.failed),
            len(outcome.missing),
        )
        return outcome


def find_collisions(projects: Iterable[Project]) -> list[int]:
    """Ids that occur more than once in one batch."""
    counts = Counter(p.id for p in projects)
    return sorted(project_id for project_id, n in counts.items() if n > 1)
