"""Error taxonomy for SchedTrack.

ParseError is fatal to an import. FieldCoercionWarning is emitted through the
warnings module and never aborts a row. Store failures are isolated per record
by the bulk operations in schedtrack.pipeline.
"""

from __future__ import annotations


class SchedTrackError(Exception):
    """Base class for all SchedTrack errors."""


class ParseError(SchedTrackError):
    """Spreadsheet structure is missing or unreadable; no rows are applied."""


class FieldCoercionWarning(UserWarning):
    """A cell could not be coerced to its target type and was defaulted."""


class StoreOperationError(SchedTrackError):
    """A persistence call failed."""

    def __init__(self, message: str, project_id: int | None = None):
        super().__init__(message)
        self.project_id = project_id


class ProjectNotFoundError(StoreOperationError):
    """No saved project with the requested id."""


class ProjectExistsError(StoreOperationError):
    """A saved project with this id already exists (insert-only paths)."""


class RemoteApiError(StoreOperationError):
    """Non-2xx response from the remote project API.

    The HTTP status code and reason phrase are kept for diagnostics.
    """

    def __init__(
        self,
        status_code: int,
        reason: str,
        url: str,
        project_id: int | None = None,
    ):
        super().__init__(
            f"Remote API request failed: {status_code} {reason} ({url})",
            project_id=project_id,
        )
        self.status_code = status_code
        self.reason = reason
        self.url = url
