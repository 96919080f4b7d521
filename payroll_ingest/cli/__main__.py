from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from payroll_ingest.config.loader import ConfigError, load_config
from payroll_ingest.logging.init import log_summary, setup_logging
from payroll_ingest.models.config_models import IngestConfig
from payroll_ingest.services.orchestrator import ProcessingError, collect_paths, process_uploads
from payroll_ingest.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env, then the YAML config (--config, PAYROLL_INGEST_CONFIG, or
  config/ingest.yml when present; built-in defaults otherwise)
- Expand input paths (directories are scanned non-recursively)
- Validate + parse every file, write the error log, print the SUMMARY line
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

CONFIG_ENV_VAR = "PAYROLL_INGEST_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/ingest.yml")
DEFAULT_PREETI_FIELDS = ("name", "designation", "department")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="payroll-ingest",
        description="Validate payroll salary sheets (.xlsx, .xls, .csv)",
    )
    p.add_argument("paths", nargs="*", type=Path, help="Files or directories to ingest")
    p.add_argument("--config", type=Path, default=None, help="YAML config file")
    p.add_argument("--all-sheets", action="store_true", help="Validate every sheet, not only the first")
    p.add_argument(
        "--convert-preeti",
        action="store_true",
        help="Convert Preeti typed name/designation/department to Unicode",
    )
    p.add_argument("--export", type=Path, default=None, help="Directory for CSV export of records and errors")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _resolve_config(args: argparse.Namespace) -> IngestConfig:
    """Load the config file if one is named or present, else defaults.

    Raises:
        ConfigError: named file missing or invalid
    """
    explicit = args.config or (Path(os.environ[CONFIG_ENV_VAR]) if os.getenv(CONFIG_ENV_VAR) else None)
    if explicit is not None:
        cfg = load_config(explicit)
    elif DEFAULT_CONFIG_PATH.exists():
        cfg = load_config(DEFAULT_CONFIG_PATH)
    else:
        cfg = IngestConfig()

    # CLI flags win over the file
    if args.all_sheets:
        cfg = replace(cfg, all_sheets=True)
    if args.convert_preeti and not cfg.preeti_fields:
        cfg = replace(cfg, preeti_fields=DEFAULT_PREETI_FIELDS)
    if args.export is not None:
        cfg = replace(cfg, export_directory=str(args.export))
    return cfg


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # only read sys.argv when called without arguments (tests pass [])
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    load_dotenv(dotenv_path=Path(".env"), override=False)

    if args.debug:
        for h in logger.handlers:
            h.setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        logger.debug("debug mode enabled")

    try:
        cfg = _resolve_config(args)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if not args.paths:
        logger.error("no input files given")
        return EXIT_FATAL

    try:
        paths = collect_paths(args.paths, cfg)
    except ProcessingError as e:
        logger.error(f"input: {e}")
        return EXIT_FATAL

    logger.info(f"Processing {len(paths)} file(s)")
    result = asyncio.run(process_uploads(paths, cfg))

    log_summary(render_summary_line(result).removeprefix("SUMMARY "))

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
