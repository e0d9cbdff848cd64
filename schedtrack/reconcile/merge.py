"""Import merge and field-level diff tracking.

Merges a freshly imported batch into the working set. Records already in the
working set are replaced in place and diffed against their *persisted*
version (the last saved copy), so re-importing the same file twice without
saving yields the same change set both times instead of erasing it. New
records are appended in import order.

Merging never fails: values whose type cannot be tracked are simply left out
of the change set.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from datetime import datetime, timezone
from typing import Any

from schedtrack.models import ChangeValue, Project

logger = logging.getLogger(__name__)

TRACKABLE_TYPES = (str, int, float, bool)


def _is_trackable(value: Any) -> bool:
    return value is None or isinstance(value, TRACKABLE_TYPES)


def _same(a: Any, b: Any) -> bool:
    # True == 1 in Python; keep booleans distinct from numbers
    return a == b and isinstance(a, bool) == isinstance(b, bool)


def utc_timestamp(now: datetime | None = None) -> str:
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (
        moment.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def iter_field_changes(
    persisted: Project, incoming: Project
) -> Iterator[tuple[str, Any, Any]]:
    """Yield (field, old, new) for every field on ``incoming`` that differs."""
    before = persisted.tracked_values()
    for key, value in incoming.tracked_values().items():
        old = before.get(key)
        if not _same(value, old):
            yield key, old, value


def diff_projects(persisted: Project | None, incoming: Project) -> dict[str, ChangeValue]:
    """Field-level diff of ``incoming`` against ``persisted``.

    Returns:
        Mapping of JSON field name -> persisted (previous) value for every
        field on the incoming record whose value differs. Empty when there is
        no persisted version.
    """
    if persisted is None:
        return {}

    return {
        key: old
        for key, old, _ in iter_field_changes(persisted, incoming)
        if _is_trackable(old)
    }


class ImportMerger:
    """Merge import batches against a fixed persisted baseline."""

    def __init__(self, prior_persisted: Iterable[Project]):
        """Initialize merger with the persisted baseline.

        Args:
            prior_persisted: Last-saved records, used as the diff comparison point
        """
        self.persisted: dict[int, Project] = {p.id: p for p in prior_persisted}
        self.stats = {
            "inserted": 0,
            "updated": 0,
            "changed": 0,
            "unchanged": 0,
        }

    def merge(
        self,
        current_batch: Sequence[Project],
        incoming_batch: Iterable[Project],
        *,
        now: datetime | None = None,
    ) -> list[Project]:
        """Merge ``incoming_batch`` into a copy of ``current_batch``.

        Returns:
            New working set: updated records keep their position, new records
            are appended at the end
        """
        merged = list(current_batch)
        positions: dict[int, int] = {}
        for index, project in enumerate(merged):
            positions.setdefault(project.id, index)

        timestamp = utc_timestamp(now)

        for incoming in incoming_batch:
            index = positions.get(incoming.id)
            if index is None:
                positions[incoming.id] = len(merged)
                merged.append(incoming)
                self.stats["inserted"] += 1
                continue

            changes = diff_projects(self.persisted.get(incoming.id), incoming)
            merged[index] = incoming.model_copy(
                update={
                    "changes": changes or None,
                    "is_changed": bool(changes),
                    "last_updated": timestamp,
                }
            )
            self.stats["updated"] += 1
            if changes:
                self.stats["changed"] += 1
                logger.debug(
                    "Project %s changed fields: %s", incoming.id, ", ".join(changes)
                )
            else:
                self.stats["unchanged"] += 1

        logger.info(
            "Merge complete: %d inserted, %d updated (%d changed, %d unchanged)",
            self.stats["inserted"],
            self.stats["updated"],
            self.stats["changed"],
            self.stats["unchanged"],
        )
        return merged

    def get_stats(self) -> dict:
        return self.stats.copy()


def merge_projects(
    prior_persisted: Iterable[Project],
    current_batch: Sequence[Project],
    incoming_batch: Iterable[Project],
    *,
    now: datetime | None = None,
) -> list[Project]:
    """Merge an incoming batch into the working set, diffing against the baseline."""
    return ImportMerger(prior_persisted).merge(current_batch, incoming_batch, now=now)
