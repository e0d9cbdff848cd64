"""Schedule import pipeline.

Orchestrates parse, normalize, merge and triage for one workbook, and
best-effort bulk writes to the project store.
"""

from schedtrack.pipeline.importer import ImportPipeline, find_collisions
from schedtrack.pipeline.types import BulkResult, ImportResult, ImportStatus

__all__ = [
    "BulkResult",
    "ImportPipeline",
    "ImportResult",
    "ImportStatus",
    "find_collisions",
]
