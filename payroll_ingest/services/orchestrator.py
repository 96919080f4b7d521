from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from ..excel.parser import UploadedFile, parse_upload, parse_upload_all_sheets, validate_structure
from ..excel.reader import WorkbookReadError
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import IngestConfig
from ..models.error_record import ErrorRecord
from ..models.processing_result import BatchResult, FileStat
from ..models.upload_result import MultiSheetUploadResult, SheetResult, UploadResult
from ..transliteration.preeti import convert_record_fields
from .export import export_upload_result
from .progress import ProgressTracker

"""Batch orchestration for uploaded salary files.

Each file goes through the structural gate, parsing and (optionally) Preeti
conversion and CSV export on its own. Files share nothing but the error log
buffer, so one broken file never affects the others.
"""

__all__ = [
    "ProcessingError",
    "scan_upload_files",
    "collect_paths",
    "process_uploads",
]

logger = logging.getLogger(__name__)

FILE_LEVEL_SHEET = "<FILE_LEVEL>"


class ProcessingError(Exception):
    """Fatal error that prevents a run from starting."""


@dataclass(frozen=True)
class _FileOutcome:
    stat: FileStat
    result: UploadResult | MultiSheetUploadResult | None


def scan_upload_files(directory: Path, config: IngestConfig) -> list[Path]:
    """List files with an allowed extension in ``directory`` (non-recursive).

    Raises:
        ProcessingError: If directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")
    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")
    try:
        return sorted(
            p for p in directory.iterdir()
            if p.is_file() and p.suffix.lower() in config.allowed_extensions
        )
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e


def collect_paths(inputs: Iterable[Path], config: IngestConfig) -> list[Path]:
    """Expand directories; explicit files are kept so the structural gate reports them."""
    paths: list[Path] = []
    for p in inputs:
        if p.is_dir():
            paths.extend(scan_upload_files(p, config))
        elif p.exists():
            paths.append(p)
        else:
            raise ProcessingError(f"Path not found: {p}")
    return paths


def _sheet_results(result: UploadResult | MultiSheetUploadResult, default_sheet: str) -> list[SheetResult]:
    if isinstance(result, MultiSheetUploadResult):
        return result.sheets
    return [SheetResult(sheet_name=default_sheet, result=result)]


def _convert_preeti(
    result: UploadResult | MultiSheetUploadResult, fields: tuple[str, ...]
) -> UploadResult | MultiSheetUploadResult:
    def _convert(r: UploadResult) -> UploadResult:
        return dataclasses.replace(r, data=[convert_record_fields(rec, fields) for rec in r.data])

    if isinstance(result, MultiSheetUploadResult):
        return dataclasses.replace(
            result,
            sheets=[dataclasses.replace(s, result=_convert(s.result)) for s in result.sheets],
        )
    return _convert(result)


def _input_labels(paths: list[Path]) -> list[tuple[str, str]]:
    """Result key and export stem for each input, unique within the batch.

    Inputs sharing a file name (or stem) get their parent directory name
    prefixed; anything still colliding gets a numeric suffix.
    """
    name_counts = Counter(p.name for p in paths)
    stem_counts = Counter(p.stem for p in paths)
    used_keys: set[str] = set()
    used_stems: set[str] = set()
    labels: list[tuple[str, str]] = []
    for p in paths:
        key = f"{p.parent.name}/{p.name}" if name_counts[p.name] > 1 else p.name
        stem = f"{p.parent.name}_{p.stem}" if stem_counts[p.stem] > 1 else p.stem
        base_key, base_stem, n = key, stem, 1
        while key in used_keys or stem in used_stems:
            n += 1
            key, stem = f"{base_key}#{n}", f"{base_stem}_{n}"
        used_keys.add(key)
        used_stems.add(stem)
        labels.append((key, stem))
    return labels


def _file_failure(
    key: str,
    error_type: str,
    message: str,
    started: float,
    error_log: ErrorLogBuffer,
) -> _FileOutcome:
    error_log.append(ErrorRecord.create(
        file=key,
        sheet=FILE_LEVEL_SHEET,
        row=0,
        error_type=error_type,
        message=message,
    ))
    return _FileOutcome(
        stat=FileStat(
            file_name=key,
            status="failed",
            elapsed_seconds=time.perf_counter() - started,
            message=message,
        ),
        result=None,
    )


async def _process_single_file(
    path: Path, key: str, stem: str, config: IngestConfig, error_log: ErrorLogBuffer
) -> _FileOutcome:
    started = time.perf_counter()
    try:
        upload = UploadedFile.from_path(path)
    except OSError as e:
        message = f"Failed to read file: {e}"
        logger.error("file=%s %s", key, message)
        return _file_failure(key, "READ_ERROR", message, started, error_log)

    check = validate_structure(upload, config)
    if not check.valid:
        logger.warning("file=%s rejected: %s", key, check.message)
        return _file_failure(key, "INVALID_STRUCTURE", check.message, started, error_log)

    try:
        result: UploadResult | MultiSheetUploadResult
        if config.all_sheets:
            result = await parse_upload_all_sheets(upload)
        else:
            result = await parse_upload(upload)
    except WorkbookReadError as e:
        logger.error("file=%s %s", key, e)
        return _file_failure(key, "READ_ERROR", str(e), started, error_log)

    if config.preeti_fields:
        result = _convert_preeti(result, config.preeti_fields)

    sheets = _sheet_results(result, default_sheet="")
    for sheet in sheets:
        for err in sheet.result.errors:
            error_log.append(ErrorRecord.from_validation_error(key, sheet.sheet_name, err))

    status = "success" if result.success else "failed"
    message = None
    if config.export_directory:
        export_dir = Path(config.export_directory)
        try:
            for sheet in sheets:
                sheet_stem = stem if not sheet.sheet_name else f"{stem}_{sheet.sheet_name}"
                export_upload_result(sheet.result, export_dir, sheet_stem)
        except OSError as e:
            message = f"Failed to export results: {e}"
            logger.error("file=%s %s", key, message)
            error_log.append(ErrorRecord.create(
                file=key,
                sheet=FILE_LEVEL_SHEET,
                row=0,
                error_type="EXPORT_ERROR",
                message=message,
            ))
            status = "failed"

    stat = FileStat(
        file_name=key,
        status=status,
        total_rows=sum(s.result.total_rows for s in sheets),
        valid_rows=sum(s.result.valid_rows for s in sheets),
        duplicates=sum(s.result.duplicates for s in sheets),
        error_count=sum(len(s.result.errors) for s in sheets),
        elapsed_seconds=time.perf_counter() - started,
        message=message,
    )
    logger.info(
        "file=%s status=%s rows=%d valid=%d duplicates=%d errors=%d",
        stat.file_name,
        stat.status,
        stat.total_rows,
        stat.valid_rows,
        stat.duplicates,
        stat.error_count,
    )
    return _FileOutcome(stat=stat, result=result)


async def process_uploads(
    paths: list[Path], config: IngestConfig, error_log: ErrorLogBuffer | None = None
) -> BatchResult:
    """Validate and parse every file and aggregate the results.

    Files run independently; a failing file is counted and logged, never
    raised. The error log is flushed once at the end. Results are keyed by
    file name, with the parent directory prefixed when two inputs share one.
    """
    start_time = datetime.now(UTC)
    if error_log is None:
        error_log = ErrorLogBuffer(Path(config.error_log_directory))

    with ProgressTracker(len(paths), description="Processing files") as progress:
        succeeded = 0
        failed = 0

        async def _run(path: Path, key: str, stem: str) -> _FileOutcome:
            nonlocal succeeded, failed
            outcome = await _process_single_file(path, key, stem, config, error_log)
            ok = outcome.stat.status == "success"
            if ok:
                succeeded += 1
            else:
                failed += 1
            progress.finish_file(path, success=ok)
            progress.set_postfix(success=succeeded, failed=failed)
            return outcome

        outcomes = await asyncio.gather(
            *(_run(p, key, stem) for p, (key, stem) in zip(paths, _input_labels(paths), strict=True))
        )

    try:
        log_path = error_log.flush()
    except OSError as e:
        # results are still returned when the log cannot be written
        logger.warning("could not write error log: %s", e)
    else:
        if log_path is not None:
            logger.debug("error log written to %s", log_path)

    end_time = datetime.now(UTC)
    stats = [o.stat for o in outcomes]
    return BatchResult(
        success_files=sum(1 for s in stats if s.status == "success"),
        failed_files=sum(1 for s in stats if s.status != "success"),
        total_rows=sum(s.total_rows for s in stats),
        valid_rows=sum(s.valid_rows for s in stats),
        duplicates=sum(s.duplicates for s in stats),
        error_count=sum(s.error_count for s in stats),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        file_stats=stats,
        results={o.stat.file_name: o.result for o in outcomes if o.result is not None},
    )
