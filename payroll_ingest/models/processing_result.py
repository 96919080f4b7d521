from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .upload_result import MultiSheetUploadResult, UploadResult

"""Processing result models for a batch of uploads.

FileStat tracks one uploaded file; BatchResult aggregates a whole run and
feeds the SUMMARY line.
"""

__all__ = [
    "FileStat",
    "BatchResult",
]


@dataclass(frozen=True)
class FileStat:
    """Per-file processing statistics."""
    file_name: str
    status: str  # success/failed
    total_rows: int = 0
    valid_rows: int = 0
    duplicates: int = 0
    error_count: int = 0
    elapsed_seconds: float = 0.0
    message: str | None = None  # structural / read failure reason


@dataclass(frozen=True)
class BatchResult:
    """Aggregated results of one ingestion run."""
    success_files: int
    failed_files: int
    total_rows: int
    valid_rows: int
    duplicates: int
    error_count: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    file_stats: list[FileStat] = field(default_factory=list)
    # file name -> parse result (absent for files rejected before parsing)
    results: dict[str, UploadResult | MultiSheetUploadResult] = field(default_factory=dict)

    @property
    def total_files(self) -> int:
        return self.success_files + self.failed_files
