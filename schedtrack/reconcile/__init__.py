"""Import reconciliation: merge/diff against the saved baseline and date triage."""

from schedtrack.reconcile.categorize import categorize_projects, sort_projects
from schedtrack.reconcile.merge import ImportMerger, diff_projects, merge_projects

__all__ = [
    "ImportMerger",
    "categorize_projects",
    "diff_projects",
    "merge_projects",
    "sort_projects",
]
