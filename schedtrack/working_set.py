"""JSON-file persistence of the CLI working set between invocations.

The working set is transient: it is never the saved baseline, and the store is
only written by an explicit save.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from pydantic import TypeAdapter

from schedtrack.models import Project

logger = logging.getLogger(__name__)

_PROJECT_LIST = TypeAdapter(list[Project])


def load_working_set(path: Path) -> list[Project]:
    """Load the working set, or an empty one if the file does not exist."""
    if not path.exists():
        return []
    projects = _PROJECT_LIST.validate_json(path.read_bytes())
    logger.debug("Loaded %d working projects from %s", len(projects), path)
    return projects


def save_working_set(path: Path, projects: Iterable[Project]) -> None:
    """Write the working set as a JSON array (categories are not stored)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    records = [project.to_record() for project in projects]
    path.write_text(json.dumps(records, indent=2), encoding="utf-8")
    logger.debug("Wrote %d working projects to %s", len(records), path)
