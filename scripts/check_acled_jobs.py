#!/usr/bin/env python
"""
scripts/check_acled_jobs.py - Show the latest data_job rows

Usage:
    python scripts/check_acled_jobs.py
    python scripts/check_acled_jobs.py --source "Middle East" --limit 5
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.db.store import DuckDBStore
from src.ops.data_jobs import list_jobs
from src.utils.config import AcledSettings, load_config, resolve_db_path


def main():
    parser = argparse.ArgumentParser(description="Latest ACLED ingestion jobs")
    parser.add_argument("--source", help="Only this region")
    parser.add_argument("--limit", type=int, default=20)
    args = parser.parse_args()

    cfg = load_config()
    settings = AcledSettings.from_config(cfg)

    with DuckDBStore(resolve_db_path(cfg), create_schema=True) as store:
        jobs = list_jobs(store, source=args.source, job_type=settings.job_type, limit=args.limit)

    if not jobs:
        print("No data_job rows yet.")
        return

    for j in jobs:
        detail = j.meta.get("error") or f"inserted={j.meta.get('rows_inserted')}"
        print(f"{j.id:>5}  {j.created_at}  {j.status.value:<10}  {j.duration_ms or 0:>7}ms  "
              f"{j.source:<35}  {j.meta.get('filename')}  {detail}")


if __name__ == "__main__":
    main()
