# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from payroll_ingest.excel.column_map import EXPECTED_HEADERS
from payroll_ingest.logging.init import reset_logging

NAME = "gfdy/"
PAN = "kfg g+="
ACCOUNT = "vftf g+="
RATE = "b/"


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


def _salary_row(
    sn: Any = 1,
    name: Any = "gfdy",
    pan: Any = "301234567",
    account: Any = "0012345",
    rate: Any = 1500,
    **extra: Any,
) -> list[Any]:
    """One data row in EXPECTED_HEADERS order."""
    values = {
        "l;=g++": sn,
        NAME: name,
        "kb": "n]vfk/LIfs",
        "sfo{/t ljefu": "ljQ",
        PAN: pan,
        ACCOUNT: account,
        ">fj)f": 100,
        "efb|": 50,
        "hDdf": 150,
        RATE: rate,
        "kfpg] /sd": 20000,
        "kfl/>lds s/": 200,
        "s'n kfpg]": 19800,
    }
    values.update(extra)
    return [values[h] for h in EXPECTED_HEADERS]


@pytest.fixture()
def salary_row() -> Callable[..., list[Any]]:
    return _salary_row


def make_excel(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            df = pd.DataFrame(rows)
            df.to_excel(writer, sheet_name=sheet, header=False, index=False)
    return path


@pytest.fixture()
def excel_factory(temp_workdir: Path) -> Callable[..., Path]:
    def _make(name: str, sheets: dict[str, list[list[object]]], directory: str = "data") -> Path:
        return make_excel(temp_workdir / directory / name, sheets)
    return _make


@pytest.fixture()
def salary_sheet() -> list[list[object]]:
    return [
        list(EXPECTED_HEADERS),
        _salary_row(sn=1, name="/fd", pan="301234567"),
        _salary_row(sn=2, name=";Ltf", pan="301234568"),
    ]


@pytest.fixture()
def sample_config_yaml() -> str:
    return """allowed_extensions: [".xlsx", ".xls", ".csv"]
max_file_size_mb: 10
all_sheets: false
preeti_fields: [name, department]
export_directory: null
error_log_directory: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "ingest.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg
