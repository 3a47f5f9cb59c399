#!/usr/bin/env python
"""
scripts/run_acled_weekly_job.py - Runner for the ACLED weekly aggregates ingestion

Usage:
    python scripts/run_acled_weekly_job.py
    python scripts/run_acled_weekly_job.py --source "Middle East" --source Africa
    python scripts/run_acled_weekly_job.py --download-dir data/raw/acled_weekly --retention-weeks 156
    python scripts/run_acled_weekly_job.py --http --strict

Features:
- One transaction per region file (all-or-nothing)
- Skips regions whose file name did not change since the last successful data_job
- A failing region is recorded in data_job and does not stop the others
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.db.store import DuckDBStore
from src.ingestion.acled_weekly_job import AcledWeeklyJob
from src.ingestion.acquire_acled_files import HttpFileAcquirer, LocalDirectoryAcquirer
from src.utils.config import AcledSettings, load_config, resolve_db_path


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="ACLED weekly aggregates ingestion job"
    )
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML (default: config/settings.yaml)"
    )
    parser.add_argument(
        "--source",
        action="append",
        help="Region to process (repeatable). Default: acled.sources from config"
    )
    parser.add_argument(
        "--download-dir",
        help="Folder with the downloaded region .xlsx files (default: data_paths.downloads)"
    )
    parser.add_argument(
        "--http",
        action="store_true",
        help="Download from acled.urls instead of reading a local folder"
    )
    parser.add_argument(
        "--retention-weeks",
        type=int,
        help="Keep only the newest N weeks per region (default: acled.retention_weeks)"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with code 1 if any source failed"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Log level (default: INFO)"
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    # Configure logger
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=args.log_level.upper()
    )

    cfg = load_config(args.config)
    settings = AcledSettings.from_config(cfg)
    if args.retention_weeks is not None:
        settings.retention_weeks = args.retention_weeks
        settings.validate()
    if args.download_dir:
        settings.downloads_dir = Path(args.download_dir)

    if args.http:
        acquirer = HttpFileAcquirer(
            settings.urls,
            timeout_seconds=settings.http_timeout_seconds,
            max_retries=settings.http_max_retries,
        )
    else:
        if settings.downloads_dir is None:
            logger.error("[JOB] No download folder: set data_paths.downloads or --download-dir")
            return 2
        acquirer = LocalDirectoryAcquirer(settings.downloads_dir)

    sources = args.source or settings.sources
    if not sources:
        logger.error("[JOB] No sources: set acled.sources or pass --source")
        return 2

    db_path = resolve_db_path(cfg)
    logger.info(f"[JOB] DuckDB: {db_path}")

    with DuckDBStore(db_path, create_schema=True) as store:
        summary = AcledWeeklyJob(store, acquirer, settings).run(sources)

    for o in summary.outcomes:
        status = {"loaded": "✓", "skipped": "=", "failed": "✗"}[o.status.value]
        detail = o.error or (f"inserted={o.result.rows_inserted}" if o.result else o.fingerprint)
        logger.info(f"  {status} {o.source}: {o.status.value} ({detail})")

    if args.strict and summary.failed:
        logger.error(f"[JOB] {summary.failed} source(s) failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
