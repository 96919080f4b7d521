from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

"""Workbook decoding with pandas.

The uploaded bytes are decoded into raw DataFrames (header=None) and then
normalized into header -> cell dicts, mirroring what the dashboard's
sheet_to_json produced: first row is the header, blank rows are skipped and
missing cells become "".
"""

__all__ = [
    "WorkbookReadError",
    "SheetData",
    "CSV_SHEET_NAME",
    "read_workbook",
    "normalize_sheet",
]

CSV_SHEET_NAME = "Sheet1"
EMPTY_HEADER = "__EMPTY"


class WorkbookReadError(Exception):
    """Raised when the file bytes cannot be read or decoded as a workbook."""


@dataclass
class SheetData:
    sheet_name: str
    columns: list[str]
    rows: list[dict[str, Any]]  # header -> cell, in source order


def read_workbook(
    content: bytes, file_name: str, *, first_sheet_only: bool = False
) -> dict[str, pd.DataFrame]:
    """Decode workbook bytes into raw DataFrames keyed by sheet name.

    Parameters
    ----------
    content: file bytes
    file_name: original file name, its suffix selects the CSV reader
    first_sheet_only: stop after the first sheet in workbook order
    """
    try:
        if Path(file_name).suffix.lower() == ".csv":
            return {CSV_SHEET_NAME: _read_csv(content)}
        # pandas picks openpyxl (.xlsx) or xlrd (.xls) from the content itself
        dfs: dict[str, pd.DataFrame] = {}
        with pd.ExcelFile(io.BytesIO(content)) as xls:
            names = xls.sheet_names[:1] if first_sheet_only else xls.sheet_names
            for name in names:
                # keep_default_na=False: text such as "NA" stays text
                dfs[str(name)] = xls.parse(
                    name, header=None, dtype=object, keep_default_na=False
                )
        return dfs
    except Exception as e:
        raise WorkbookReadError(f"Failed to parse Excel file: {e}") from e


def _read_csv(content: bytes) -> pd.DataFrame:
    """Read a CSV upload; rows may be longer or shorter than the header row."""
    text = content.decode("utf-8-sig")
    width = max((len(r) for r in csv.reader(io.StringIO(text))), default=0)
    if width == 0:
        return pd.DataFrame()
    try:
        return pd.read_csv(
            io.StringIO(text),
            header=None,
            names=list(range(width)),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _header_names(raw_headers: list[Any]) -> list[str]:
    """Name header cells: blanks become __EMPTY(_n), repeats get a _n suffix."""
    names: list[str] = []
    seen: dict[str, int] = {}
    for raw in raw_headers:
        base = EMPTY_HEADER if _is_blank(raw) else str(raw)
        count = seen.get(base, 0)
        seen[base] = count + 1
        names.append(base if count == 0 else f"{base}_{count}")
    return names


def normalize_sheet(df: pd.DataFrame, sheet_name: str) -> SheetData:
    """Normalize a raw DataFrame using the first row as header.

    Header strings are kept untrimmed; callers trim before lookup.
    """
    if df.shape[0] == 0:
        return SheetData(sheet_name=sheet_name, columns=[], rows=[])
    columns = _header_names(df.iloc[0].tolist())
    rows: list[dict[str, Any]] = []
    for raw in df.iloc[1:].itertuples(index=False, name=None):
        if all(_is_blank(v) for v in raw):
            continue
        rows.append({
            col: ("" if _is_blank(val) and not isinstance(val, str) else val)
            for col, val in zip(columns, raw, strict=False)
        })
    return SheetData(sheet_name=sheet_name, columns=columns, rows=rows)
