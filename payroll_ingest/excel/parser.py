from __future__ import annotations

import asyncio
import logging
import math
import numbers
import re
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..models.config_models import IngestConfig
from ..models.employee import EmployeeField, EmployeeRecord
from ..models.upload_result import (
    MultiSheetUploadResult,
    SheetResult,
    StructureCheck,
    UploadResult,
)
from ..models.validation_error import (
    DUPLICATE_FIELD,
    MSG_DUPLICATE,
    MSG_EMPTY_FILE,
    MSG_INVALID_NUMBER,
    MSG_NAME_REQUIRED,
    ValidationError,
)
from .column_map import lookup_field
from .reader import WorkbookReadError, normalize_sheet, read_workbook

"""Salary upload pipeline: structural gate, parsing and row validation.

Flow for one upload:
1. validate_structure: extension allow-list, then size ceiling
2. parse_upload: read bytes (the only await), decode first sheet
3. process_rows: map headers, coerce numbers, require a name, drop duplicates

Content problems never raise. They are returned as ValidationError entries and
the whole file is always processed. Only unreadable or undecodable files raise
WorkbookReadError.
"""

__all__ = [
    "UploadedFile",
    "validate_structure",
    "parse_upload",
    "parse_upload_all_sheets",
    "process_rows",
    "coerce_number",
]

logger = logging.getLogger(__name__)

MSG_INVALID_TYPE = "Invalid file type. Please upload an Excel file (.xlsx, .xls) or CSV file."
MSG_TOO_LARGE = "File size exceeds 10MB limit."
MSG_VALID = "File structure is valid."

HEADER_ROW_OFFSET = 2  # 0-based index + header row

_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

_DEFAULT_CONFIG = IngestConfig()


@dataclass(frozen=True)
class UploadedFile:
    """An uploaded file: name, byte size and a one-shot content reader."""
    name: str
    size: int
    _reader: Callable[[], Awaitable[bytes]] = field(repr=False, compare=False)

    @staticmethod
    def from_path(path: Path) -> UploadedFile:
        async def _read() -> bytes:
            return await asyncio.to_thread(path.read_bytes)

        return UploadedFile(name=path.name, size=path.stat().st_size, _reader=_read)

    @staticmethod
    def from_bytes(name: str, content: bytes) -> UploadedFile:
        async def _read() -> bytes:
            return content

        return UploadedFile(name=name, size=len(content), _reader=_read)

    async def read(self) -> bytes:
        try:
            return await self._reader()
        except OSError as e:
            raise WorkbookReadError(f"Failed to read file: {e}") from e


def validate_structure(upload: UploadedFile, config: IngestConfig | None = None) -> StructureCheck:
    """Check extension then size. Never raises; the first failing check wins."""
    config = config or _DEFAULT_CONFIG
    file_name = upload.name.lower()
    if not any(file_name.endswith(ext.lower()) for ext in config.allowed_extensions):
        return StructureCheck(valid=False, message=MSG_INVALID_TYPE)
    if upload.size > config.max_file_size_bytes:
        if config.max_file_size_bytes == _DEFAULT_CONFIG.max_file_size_bytes:
            message = MSG_TOO_LARGE
        else:
            limit_mb = config.max_file_size_bytes / (1024 * 1024)
            message = f"File size exceeds {limit_mb:g}MB limit."
        return StructureCheck(valid=False, message=message)
    return StructureCheck(valid=True, message=MSG_VALID)


async def parse_upload(upload: UploadedFile) -> UploadResult:
    """Parse the first sheet of an upload into an UploadResult.

    Raises:
        WorkbookReadError: file unreadable or not a decodable workbook
    """
    content = await upload.read()
    raw_sheets = read_workbook(content, upload.name, first_sheet_only=True)
    if not raw_sheets:
        return UploadResult.empty(MSG_EMPTY_FILE)
    sheet_name, df = next(iter(raw_sheets.items()))
    sheet = normalize_sheet(df, sheet_name)
    if not sheet.rows:
        return UploadResult.empty(MSG_EMPTY_FILE)
    logger.debug("file=%s sheet=%s rows=%d", upload.name, sheet_name, len(sheet.rows))
    return process_rows(sheet.rows)


async def parse_upload_all_sheets(upload: UploadedFile) -> MultiSheetUploadResult:
    """Run the row pipeline on every sheet independently.

    An empty sheet gets the same structural empty error as an empty
    single-sheet upload, so it also fails the workbook.
    """
    content = await upload.read()
    raw_sheets = read_workbook(content, upload.name)
    sheets: list[SheetResult] = []
    for sheet_name, df in raw_sheets.items():
        sheet = normalize_sheet(df, sheet_name)
        if sheet.rows:
            result = process_rows(sheet.rows)
        else:
            result = UploadResult.empty(f"Sheet '{sheet_name}' is empty")
        sheets.append(SheetResult(sheet_name=sheet_name, result=result))
    return MultiSheetUploadResult(
        success=all(s.result.success for s in sheets),
        total_sheets=len(raw_sheets),
        sheets=sheets,
    )


def coerce_number(value: Any) -> float | None:
    """Parse a cell as a decimal number.

    Returns 0.0 for empty cells and None when the value is not a number.
    Thousands separators are ignored; any Unicode decimal digits are accepted.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        number = float(value)
        return 0.0 if math.isnan(number) else number
    text = str(value).strip().replace(",", "")
    if text == "":
        return 0.0
    if not _DECIMAL.fullmatch(text):
        return None
    return float(text)


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        number = float(value)
        if math.isnan(number):
            return ""
        # 5225.0 -> "5225" (PAN / account numbers read as numeric cells)
        if number.is_integer():
            return str(int(number))
    return str(value).strip()


def _map_row(row: dict[str, Any], row_number: int, errors: list[ValidationError]) -> dict[EmployeeField, Any]:
    values: dict[EmployeeField, Any] = {}
    for header, raw in row.items():
        mapped = lookup_field(header)
        if mapped is None:
            continue
        if mapped.is_numeric:
            number = coerce_number(raw)
            if number is None:
                errors.append(ValidationError(
                    row=row_number, field=mapped.value, message=MSG_INVALID_NUMBER, value=raw
                ))
                number = 0.0
            values[mapped] = number
        else:
            values[mapped] = _cell_text(raw)
    return values


def _build_record(values: dict[EmployeeField, Any], row_number: int) -> EmployeeRecord:
    sn = values.get(EmployeeField.SN) or row_number - 1
    if isinstance(sn, float) and sn.is_integer():
        sn = int(sn)
    kwargs: dict[str, Any] = {}
    for f, value in values.items():
        if f is EmployeeField.SN:
            continue
        kwargs[f.attribute] = value
    if not kwargs.get("employee_id"):
        kwargs["employee_id"] = f"EMP-{row_number}"
    return EmployeeRecord(sn=sn, **kwargs)


def process_rows(rows: Iterable[dict[str, Any]]) -> UploadResult:
    """Validate normalized rows and build the UploadResult.

    Rows without a name are dropped with a name error. Among the remaining
    rows the first occurrence of a natural key (PAN, else account number) is
    kept and later ones are dropped as duplicates.
    """
    errors: list[ValidationError] = []
    records: list[EmployeeRecord] = []
    seen_keys: set[str] = set()
    duplicates = 0
    total_rows = 0

    for index, row in enumerate(rows):
        total_rows += 1
        row_number = index + HEADER_ROW_OFFSET
        values = _map_row(row, row_number, errors)

        name = values.get(EmployeeField.NAME, "")
        if not name:
            errors.append(ValidationError(
                row=row_number, field=EmployeeField.NAME.value, message=MSG_NAME_REQUIRED, value=name
            ))
            continue

        record = _build_record(values, row_number)
        key = record.natural_key
        if key and key in seen_keys:
            duplicates += 1
            errors.append(ValidationError(
                row=row_number, field=DUPLICATE_FIELD, message=MSG_DUPLICATE, value=key
            ))
            continue
        if key:
            seen_keys.add(key)
        records.append(record)

    return UploadResult(
        success=not any(not e.is_duplicate for e in errors),
        total_rows=total_rows,
        valid_rows=len(records),
        duplicates=duplicates,
        errors=errors,
        data=records,
    )
