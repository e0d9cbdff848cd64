"""Schedule ingestion for SchedTrack.

Parses estimating schedule workbooks and normalizes rows into Project records.
"""

from schedtrack.ingestion.identity import resolve_identity
from schedtrack.ingestion.normalizer import format_date, normalize_row, normalize_rows
from schedtrack.ingestion.parser import detect_layout, parse_workbook

__all__ = [
    "detect_layout",
    "format_date",
    "normalize_row",
    "normalize_rows",
    "parse_workbook",
    "resolve_identity",
]
