from __future__ import annotations

import asyncio
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest

from payroll_ingest.logging.error_log import ErrorLogBuffer
from payroll_ingest.models.config_models import IngestConfig
from payroll_ingest.models.upload_result import MultiSheetUploadResult, UploadResult
from payroll_ingest.services.orchestrator import (
    ProcessingError,
    collect_paths,
    process_uploads,
    scan_upload_files,
)


def _run(paths, config=None, log_dir=None):
    config = config or IngestConfig()
    buf = ErrorLogBuffer(log_dir) if log_dir is not None else None
    return asyncio.run(process_uploads(paths, config, buf))


def _log_lines(log_dir: Path) -> list[dict]:
    files = list(log_dir.glob("errors-*.log"))
    assert len(files) == 1
    return [json.loads(line) for line in files[0].read_text(encoding="utf-8").splitlines()]


def test_scan_upload_files_filters_and_sorts(temp_workdir: Path):
    data = temp_workdir / "data"
    for name in ["b.xlsx", "a.csv", "c.XLS", "notes.txt"]:
        (data / name).write_bytes(b"")
    (data / "sub").mkdir()

    found = scan_upload_files(data, IngestConfig())
    assert [p.name for p in found] == ["a.csv", "b.xlsx", "c.XLS"]


def test_scan_upload_files_missing_directory(temp_workdir: Path):
    with pytest.raises(ProcessingError, match="Directory not found"):
        scan_upload_files(temp_workdir / "nope", IngestConfig())


def test_collect_paths_keeps_explicit_files(temp_workdir: Path):
    data = temp_workdir / "data"
    (data / "a.xlsx").write_bytes(b"")
    notes = temp_workdir / "notes.txt"
    notes.write_text("x", encoding="utf-8")

    paths = collect_paths([data, notes], IngestConfig())
    assert [p.name for p in paths] == ["a.xlsx", "notes.txt"]


def test_collect_paths_missing_path(temp_workdir: Path):
    with pytest.raises(ProcessingError, match="Path not found"):
        collect_paths([temp_workdir / "missing.xlsx"], IngestConfig())


def test_process_uploads_success(excel_factory, salary_sheet, temp_workdir: Path):
    path = excel_factory("salary.xlsx", {"Sheet1": salary_sheet})

    result = _run([path], log_dir=temp_workdir / "logs")

    assert result.success_files == 1
    assert result.failed_files == 0
    assert result.total_rows == 2
    assert result.valid_rows == 2
    assert result.error_count == 0
    assert result.elapsed_seconds >= 0
    assert isinstance(result.results["salary.xlsx"], UploadResult)
    # no errors, no log file
    assert list((temp_workdir / "logs").glob("errors-*.log")) == []


def test_process_uploads_isolates_failing_files(excel_factory, salary_sheet, salary_row, temp_workdir: Path):
    good = excel_factory("good.xlsx", {"Sheet1": salary_sheet})
    bad_rows = excel_factory("bad_rows.xlsx", {"Sheet1": [salary_sheet[0], salary_row(rate="abc")]})
    corrupt = temp_workdir / "data" / "corrupt.xlsx"
    corrupt.write_bytes(b"this is not a workbook")
    wrong_type = temp_workdir / "data" / "notes.txt"
    wrong_type.write_text("hello", encoding="utf-8")

    result = _run([good, bad_rows, corrupt, wrong_type], log_dir=temp_workdir / "logs")

    assert result.total_files == 4
    assert result.success_files == 1
    assert result.failed_files == 3
    stats = {s.file_name: s for s in result.file_stats}
    assert stats["good.xlsx"].status == "success"
    assert stats["bad_rows.xlsx"].status == "failed"
    assert stats["bad_rows.xlsx"].error_count == 1
    assert stats["corrupt.xlsx"].message.startswith("Failed to parse Excel file")
    assert stats["notes.txt"].message.startswith("Invalid file type")
    assert "corrupt.xlsx" not in result.results

    lines = _log_lines(temp_workdir / "logs")
    by_type = {(line["file"], line["error_type"]) for line in lines}
    assert ("bad_rows.xlsx", "INVALID_NUMBER") in by_type
    assert ("corrupt.xlsx", "READ_ERROR") in by_type
    assert ("notes.txt", "INVALID_STRUCTURE") in by_type
    invalid = next(line for line in lines if line["error_type"] == "INVALID_NUMBER")
    assert invalid["row"] == 2
    assert invalid["field"] == "rate"
    assert invalid["value"] == "abc"


def test_process_uploads_duplicates_do_not_fail_file(excel_factory, salary_sheet, salary_row, temp_workdir: Path):
    rows = salary_sheet + [salary_row(sn=3, name="x/L", pan="301234567")]
    path = excel_factory("dup.xlsx", {"Sheet1": rows})

    result = _run([path], log_dir=temp_workdir / "logs")

    assert result.success_files == 1
    assert result.duplicates == 1
    assert result.valid_rows == 2
    lines = _log_lines(temp_workdir / "logs")
    assert [line["error_type"] for line in lines] == ["DUPLICATE_ENTRY"]
    assert lines[0]["field"] == "panNumber/accountNumber"


def test_process_uploads_converts_preeti_fields(excel_factory, salary_sheet):
    path = excel_factory("salary.xlsx", {"Sheet1": salary_sheet})

    result = _run([path], IngestConfig(preeti_fields=("name",)))

    names = [r.name for r in result.results["salary.xlsx"].data]
    assert names == ["राम", "सीता"]


def test_process_uploads_without_conversion_keeps_raw_text(excel_factory, salary_sheet):
    path = excel_factory("salary.xlsx", {"Sheet1": salary_sheet})

    result = _run([path])

    assert [r.name for r in result.results["salary.xlsx"].data] == ["/fd", ";Ltf"]


def test_process_uploads_exports_csv(excel_factory, salary_sheet, temp_workdir: Path):
    path = excel_factory("salary.xlsx", {"Sheet1": salary_sheet})
    out = temp_workdir / "exports"

    _run([path], IngestConfig(export_directory=str(out)))

    df = pd.read_csv(out / "salary_records.csv", encoding="utf-8-sig", dtype=str)
    assert len(df) == 2
    assert not (out / "salary_errors.csv").exists()


def test_process_uploads_all_sheets(excel_factory, salary_sheet, temp_workdir: Path):
    path = excel_factory("pay.xlsx", {"Baisakh": salary_sheet, "Jestha": [salary_sheet[0]]})
    out = temp_workdir / "exports"

    result = _run(
        [path],
        IngestConfig(all_sheets=True, export_directory=str(out)),
        log_dir=temp_workdir / "logs",
    )

    multi = result.results["pay.xlsx"]
    assert isinstance(multi, MultiSheetUploadResult)
    assert multi.total_sheets == 2
    assert result.failed_files == 1
    assert result.total_rows == 2
    assert (out / "pay_Baisakh_records.csv").exists()
    assert (out / "pay_Jestha_errors.csv").exists()

    lines = _log_lines(temp_workdir / "logs")
    assert [(line["sheet"], line["error_type"]) for line in lines] == [("Jestha", "EMPTY_SHEET")]


def test_process_uploads_no_files(temp_workdir: Path):
    result = _run([], log_dir=temp_workdir / "logs")
    assert result.total_files == 0
    assert result.total_rows == 0


def test_process_uploads_same_file_name_in_two_directories(excel_factory, salary_sheet, temp_workdir: Path):
    (temp_workdir / "data" / "a").mkdir()
    (temp_workdir / "data" / "b").mkdir()
    first = excel_factory("salary.xlsx", {"Sheet1": salary_sheet}, directory="data/a")
    second = excel_factory("salary.xlsx", {"Sheet1": salary_sheet[:2]}, directory="data/b")
    out = temp_workdir / "exports"

    result = _run([first, second], IngestConfig(export_directory=str(out)))

    assert sorted(result.results) == ["a/salary.xlsx", "b/salary.xlsx"]
    assert result.results["a/salary.xlsx"].valid_rows == 2
    assert result.results["b/salary.xlsx"].valid_rows == 1
    assert sorted(p.name for p in out.iterdir()) == ["a_salary_records.csv", "b_salary_records.csv"]


def test_process_uploads_same_stem_different_extension(excel_factory, salary_sheet, temp_workdir: Path):
    xlsx = excel_factory("salary.xlsx", {"Sheet1": salary_sheet})
    csv_path = temp_workdir / "data" / "salary.csv"
    pd.DataFrame(salary_sheet).to_csv(csv_path, header=False, index=False)
    out = temp_workdir / "exports"

    result = _run([xlsx, csv_path], IngestConfig(export_directory=str(out)))

    assert sorted(result.results) == ["salary.csv", "salary.xlsx"]
    assert len(list(out.glob("*_records.csv"))) == 2


def test_process_uploads_same_path_twice(excel_factory, salary_sheet):
    path = excel_factory("salary.xlsx", {"Sheet1": salary_sheet})

    result = _run([path, path])

    assert result.total_files == 2
    assert len(result.results) == 2


def test_process_uploads_export_failure_fails_only_that_file(excel_factory, salary_sheet, temp_workdir: Path):
    path = excel_factory("salary.xlsx", {"Sheet1": salary_sheet})
    blocker = temp_workdir / "not_a_dir"
    blocker.write_text("x", encoding="utf-8")

    result = _run(
        [path],
        IngestConfig(export_directory=str(blocker / "out")),
        log_dir=temp_workdir / "logs",
    )

    assert result.failed_files == 1
    assert result.valid_rows == 2
    stat = result.file_stats[0]
    assert stat.status == "failed"
    assert stat.message.startswith("Failed to export results")
    lines = _log_lines(temp_workdir / "logs")
    assert [line["error_type"] for line in lines] == ["EXPORT_ERROR"]


def test_process_uploads_vanished_file(excel_factory, salary_sheet, temp_workdir: Path):
    good = excel_factory("good.xlsx", {"Sheet1": salary_sheet})
    gone = excel_factory("gone.xlsx", {"Sheet1": salary_sheet})
    paths = collect_paths([temp_workdir / "data"], IngestConfig())
    gone.unlink()

    result = _run(paths, log_dir=temp_workdir / "logs")

    assert result.success_files == 1
    assert result.failed_files == 1
    assert "good.xlsx" in result.results
    lines = _log_lines(temp_workdir / "logs")
    assert [(line["file"], line["error_type"]) for line in lines] == [("gone.xlsx", "READ_ERROR")]


def test_process_uploads_updates_progress_counts(excel_factory, salary_sheet, temp_workdir: Path):
    good = excel_factory("good.xlsx", {"Sheet1": salary_sheet})
    bad = temp_workdir / "data" / "notes.txt"
    bad.write_text("x", encoding="utf-8")
    tracker = MagicMock()
    tracker.__enter__.return_value = tracker

    with patch("payroll_ingest.services.orchestrator.ProgressTracker", return_value=tracker):
        _run([good, bad])

    assert tracker.finish_file.call_count == 2
    last = tracker.set_postfix.call_args_list[-1]
    assert last.kwargs == {"success": 1, "failed": 1}
