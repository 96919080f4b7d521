from __future__ import annotations

from dataclasses import dataclass

"""Configuration model for the payroll ingestion tool.

The loader in payroll_ingest/config/loader.py builds this object from YAML;
the pipeline and services receive it explicitly instead of reading globals.
"""

__all__ = [
    "IngestConfig",
    "DEFAULT_ALLOWED_EXTENSIONS",
    "DEFAULT_MAX_FILE_SIZE_BYTES",
]

DEFAULT_ALLOWED_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xls", ".csv")
DEFAULT_MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024  # 10 MiB


@dataclass(frozen=True)
class IngestConfig:
    """Root configuration object for an ingestion run."""
    allowed_extensions: tuple[str, ...] = DEFAULT_ALLOWED_EXTENSIONS  # lower-case, with dot
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES
    all_sheets: bool = False  # process every sheet instead of the first one
    preeti_fields: tuple[str, ...] = ()  # EmployeeRecord attributes to transliterate
    export_directory: str | None = None  # CSV export target (None = no export)
    error_log_directory: str = "./logs"
