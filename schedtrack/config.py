"""SchedTrack configuration management.

Loads configuration from environment variables with sensible defaults.
The config object is built once at startup (CLI callback or create_app) and
passed explicitly to whatever needs it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from schedtrack.fields import ProjectField
from schedtrack.models import CategoryPolicy, SortPolicy

# Load .env file if present
load_dotenv()


@dataclass
class StoreConfig:
    """Persistent store configuration."""

    url: str = "sqlite+aiosqlite:///./schedtrack.db"
    echo: bool = False  # SQL logging


@dataclass
class ImportConfig:
    """Spreadsheet import layout and limits."""

    sheet_name: str | None = "Estimating Schedule"  # None = first sheet
    header_row: int = 3  # 0-based
    max_file_mb: int = 50
    max_rows: int = 50_000


@dataclass
class TriageConfig:
    """Date categorization and sort policy."""

    date_field: ProjectField = ProjectField.MOB
    category_policy: CategoryPolicy = CategoryPolicy.MONTHLY
    sort_policy: SortPolicy = SortPolicy.CHRONOLOGICAL


@dataclass
class RemoteApiConfig:
    """Remote CRUD API (used when STORE_BACKEND=http)."""

    base_url: str = "http://localhost:3001/api"
    timeout_seconds: float = 30.0


@dataclass
class AppConfig:
    """Root application configuration."""

    log_level: str = "INFO"
    log_format: str = "text"  # json or text
    store_backend: str = "sql"  # sql or http
    working_set_path: Path = Path(".schedtrack/working_set.json")

    store: StoreConfig = field(default_factory=StoreConfig)
    imports: ImportConfig = field(default_factory=ImportConfig)
    triage: TriageConfig = field(default_factory=TriageConfig)
    remote_api: RemoteApiConfig = field(default_factory=RemoteApiConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Optional (with defaults):
        - DATABASE_URL: async SQLAlchemy URL (default: local SQLite file)
        - STORE_BACKEND: "sql" or "http"
        - IMPORT_SHEET_NAME / IMPORT_HEADER_ROW: workbook layout
        - DATE_FIELD / CATEGORY_POLICY / SORT_POLICY: triage settings
        - REMOTE_API_URL / REMOTE_API_TIMEOUT: remote backend

        Raises:
            ValueError: If an enumerated setting has an unknown value
        """
        store_backend = os.getenv("STORE_BACKEND", "sql").lower()
        if store_backend not in ("sql", "http"):
            raise ValueError(
                f"STORE_BACKEND must be 'sql' or 'http', got {store_backend!r}"
            )

        sheet_name = os.getenv("IMPORT_SHEET_NAME", "Estimating Schedule")

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
            store_backend=store_backend,
            working_set_path=Path(
                os.getenv("WORKING_SET_PATH", ".schedtrack/working_set.json")
            ),
            store=StoreConfig(
                url=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./schedtrack.db"),
                echo=os.getenv("DB_ECHO", "false").lower() == "true",
            ),
            imports=ImportConfig(
                sheet_name=sheet_name or None,
                header_row=int(os.getenv("IMPORT_HEADER_ROW", "3")),
                max_file_mb=int(os.getenv("IMPORT_MAX_FILE_MB", "50")),
                max_rows=int(os.getenv("IMPORT_MAX_ROWS", "50000")),
            ),
            triage=TriageConfig(
                date_field=ProjectField(os.getenv("DATE_FIELD", "mob")),
                category_policy=CategoryPolicy(
                    os.getenv("CATEGORY_POLICY", "monthly").lower()
                ),
                sort_policy=SortPolicy(
                    os.getenv("SORT_POLICY", "chronological").lower()
                ),
            ),
            remote_api=RemoteApiConfig(
                base_url=os.getenv("REMOTE_API_URL", "http://localhost:3001/api"),
                timeout_seconds=float(os.getenv("REMOTE_API_TIMEOUT", "30")),
            ),
        )
