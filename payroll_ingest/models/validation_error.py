from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""Row-level validation errors collected while ingesting a spreadsheet.

Errors are data, not exceptions: the pipeline keeps processing after each one
and returns the full list in the UploadResult.
"""

__all__ = [
    "ValidationError",
    "MSG_INVALID_NUMBER",
    "MSG_NAME_REQUIRED",
    "MSG_DUPLICATE",
    "MSG_EMPTY_FILE",
    "DUPLICATE_FIELD",
]

MSG_INVALID_NUMBER = "Invalid number format"
MSG_NAME_REQUIRED = "Name is required"
MSG_DUPLICATE = "Duplicate entry detected"
MSG_EMPTY_FILE = "Excel file is empty"

DUPLICATE_FIELD = "panNumber/accountNumber"


@dataclass(frozen=True)
class ValidationError:
    """A single problem found in the source file.

    Attributes:
        row: 1-based row in the source file, header included (first data row is 2).
            0 is used for file-level problems.
        field: Wire name of the failing field, or the triggering condition
        message: Human readable description
        value: Raw offending value as read from the file
    """
    row: int
    field: str
    message: str
    value: Any = None

    @property
    def is_duplicate(self) -> bool:
        return "Duplicate" in self.message

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row,
            "field": self.field,
            "message": self.message,
            "value": self.value,
        }
