from __future__ import annotations

from ..models.processing_result import BatchResult

"""SUMMARY line rendering.

Format:
SUMMARY files={n} success={s} failed={f} rows={total} valid={valid}
duplicates={dup} errors={err} elapsed_sec={elapsed}
"""

__all__ = [
    "format_number",
    "render_summary_line",
]


def format_number(value: float) -> str:
    """Render integers without decimals and tiny values without exponent."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(value)


def render_summary_line(result: BatchResult) -> str:
    """Render the SUMMARY line for a batch.

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> r = BatchResult(
        ...     success_files=1, failed_files=1, total_rows=10, valid_rows=8,
        ...     duplicates=1, error_count=2, start_time=t, end_time=t,
        ...     elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(r)
        'SUMMARY files=2 success=1 failed=1 rows=10 valid=8 duplicates=1 errors=2 elapsed_sec=2'
    """
    return (
        f"SUMMARY files={result.total_files} "
        f"success={result.success_files} "
        f"failed={result.failed_files} "
        f"rows={result.total_rows} "
        f"valid={result.valid_rows} "
        f"duplicates={result.duplicates} "
        f"errors={result.error_count} "
        f"elapsed_sec={format_number(result.elapsed_seconds)}"
    )
