from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .employee import EmployeeRecord
from .validation_error import ValidationError

"""Result objects returned by the ingestion pipeline.

``to_dict`` renders the camelCase contract consumed by the dashboard.
"""

__all__ = [
    "StructureCheck",
    "UploadResult",
    "SheetResult",
    "MultiSheetUploadResult",
]


@dataclass(frozen=True)
class StructureCheck:
    """Outcome of the pre-parse structural gate (extension, size)."""
    valid: bool
    message: str


@dataclass(frozen=True)
class UploadResult:
    """Aggregate over one sheet.

    Invariants:
        valid_rows == len(data)
        valid_rows + duplicates + rows dropped for a missing name == total_rows
    """
    success: bool
    total_rows: int
    valid_rows: int
    duplicates: int
    errors: list[ValidationError] = field(default_factory=list)
    data: list[EmployeeRecord] = field(default_factory=list)

    @staticmethod
    def empty(message: str) -> UploadResult:
        """Structural empty-sheet result: one file-level error, no records."""
        return UploadResult(
            success=False,
            total_rows=0,
            valid_rows=0,
            duplicates=0,
            errors=[ValidationError(row=0, field="", message=message, value=None)],
            data=[],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "totalRows": self.total_rows,
            "validRows": self.valid_rows,
            "duplicates": self.duplicates,
            "errors": [e.to_dict() for e in self.errors],
            "data": [r.to_dict() for r in self.data],
        }


@dataclass(frozen=True)
class SheetResult:
    sheet_name: str
    result: UploadResult

    def to_dict(self) -> dict[str, Any]:
        return {"sheetName": self.sheet_name, "result": self.result.to_dict()}


@dataclass(frozen=True)
class MultiSheetUploadResult:
    """Per-sheet results for a whole workbook. ``success`` is the AND over sheets."""
    success: bool
    total_sheets: int
    sheets: list[SheetResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "totalSheets": self.total_sheets,
            "sheets": [s.to_dict() for s in self.sheets],
        }
