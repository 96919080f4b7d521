from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any

from .validation_error import (
    MSG_DUPLICATE,
    MSG_EMPTY_FILE,
    MSG_INVALID_NUMBER,
    MSG_NAME_REQUIRED,
    ValidationError,
)

"""ErrorRecord model for the JSON Lines error log.

Every validation error and every file-level failure of a run ends up as one
line in ``logs/errors-YYYYMMDD-HHMMSS.log``. Row 0 marks file-level errors
where no data row applies.
"""

__all__ = [
    "ErrorRecord",
]

_ERROR_TYPES = {
    MSG_INVALID_NUMBER: "INVALID_NUMBER",
    MSG_NAME_REQUIRED: "MISSING_NAME",
    MSG_DUPLICATE: "DUPLICATE_ENTRY",
    MSG_EMPTY_FILE: "EMPTY_FILE",
}


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Uploaded file name
        sheet: Sheet name within the file ("" when not applicable)
        row: Source row number. 0 for file-level errors
        field: Failing field wire name, "" for file-level errors
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable description
        value: Raw offending value (stringified when not JSON native)
    """
    timestamp: str  # ISO8601 UTC
    file: str
    sheet: str
    row: int
    field: str
    error_type: str  # UPPER_SNAKE
    message: str
    value: Any = None

    @staticmethod
    def create(
        file: str,
        sheet: str,
        row: int,
        error_type: str,
        message: str,
        field: str = "",
        value: Any = None,
    ) -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            field=field,
            error_type=error_type,
            message=message,
            value=value,
        )

    @staticmethod
    def from_validation_error(file: str, sheet: str, error: ValidationError) -> ErrorRecord:
        error_type = _ERROR_TYPES.get(error.message)
        if error_type is None:
            # per-sheet empty errors carry the sheet name in the message
            error_type = "EMPTY_SHEET" if error.row == 0 else "VALIDATION_ERROR"
        return ErrorRecord.create(
            file=file,
            sheet=sheet,
            row=error.row,
            error_type=error_type,
            message=error.message,
            field=error.field,
            value=error.value,
        )

    def to_json_line(self) -> str:
        """Serialize to one JSON line without extra keys."""
        return json.dumps(asdict(self), ensure_ascii=False, default=str)
