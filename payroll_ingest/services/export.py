from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from ..models.employee import EmployeeField, EmployeeRecord
from ..models.upload_result import UploadResult
from ..models.validation_error import ValidationError

"""CSV export of upload results.

Files are written as UTF-8 with BOM so spreadsheet applications display the
Devanagari text correctly.
"""

__all__ = [
    "RECORD_COLUMNS",
    "ERROR_COLUMNS",
    "export_records_csv",
    "export_errors_csv",
    "export_upload_result",
]

logger = logging.getLogger(__name__)

RECORD_COLUMNS = [f.value for f in EmployeeField]
ERROR_COLUMNS = ["row", "field", "message", "value"]
CSV_ENCODING = "utf-8-sig"


def export_records_csv(records: list[EmployeeRecord], path: Path) -> Path:
    df = pd.DataFrame([r.to_dict() for r in records], columns=RECORD_COLUMNS)
    df.to_csv(path, index=False, encoding=CSV_ENCODING)
    return path


def export_errors_csv(errors: list[ValidationError], path: Path) -> Path:
    df = pd.DataFrame([e.to_dict() for e in errors], columns=ERROR_COLUMNS)
    df.to_csv(path, index=False, encoding=CSV_ENCODING)
    return path


def export_upload_result(result: UploadResult, directory: Path, stem: str) -> list[Path]:
    """Write ``<stem>_records.csv`` and, when there are errors, ``<stem>_errors.csv``."""
    directory.mkdir(parents=True, exist_ok=True)
    written = [export_records_csv(result.data, directory / f"{stem}_records.csv")]
    if result.errors:
        written.append(export_errors_csv(result.errors, directory / f"{stem}_errors.csv"))
    logger.debug("exported stem=%s files=%s", stem, [p.name for p in written])
    return written
