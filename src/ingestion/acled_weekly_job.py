"""
src/ingestion/acled_weekly_job.py - Orchestrates one cycle over all sources.

Per source, sequentially:
  acquire -> has_changed? (no: skip) -> read rows -> load_batch -> data_job

A failing source (acquisition, parse, row or transaction error) is logged and
recorded as a failed data_job; the next source is processed normally.
Unchanged sources are skipped without a data_job row.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from src.acled.models import JobStatus, LoadResult
from src.db.store import DuckDBStore
from src.ingestion.acquire_acled_files import FileAcquirer
from src.ops.change_detection import FINGERPRINT_KEY, has_changed
from src.ops.data_jobs import record_job
from src.processing.load_acled_weekly_to_dw import load_batch
from src.processing.normalize_acled_weekly import read_aggregate_rows
from src.utils.config import AcledSettings


class SourceStatus(str, Enum):
    LOADED = "loaded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class SourceOutcome:
    source: str
    status: SourceStatus
    fingerprint: Optional[str] = None
    result: Optional[LoadResult] = None
    error: Optional[str] = None
    duration_ms: int = 0
    job_id: Optional[int] = None


@dataclass
class RunSummary:
    outcomes: List[SourceOutcome] = field(default_factory=list)

    def count(self, status: SourceStatus) -> int:
        return sum(1 for o in self.outcomes if o.status is status)

    @property
    def loaded(self) -> int:
        return self.count(SourceStatus.LOADED)

    @property
    def skipped(self) -> int:
        return self.count(SourceStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return self.count(SourceStatus.FAILED)

    @property
    def rows_inserted(self) -> int:
        return sum(o.result.rows_inserted for o in self.outcomes if o.result)


def elapsed_ms(t0: float) -> int:
    return int((time.monotonic() - t0) * 1000)


class AcledWeeklyJob:
    def __init__(self, store: DuckDBStore, acquirer: FileAcquirer, settings: Optional[AcledSettings] = None):
        self.store = store
        self.acquirer = acquirer
        self.settings = settings or AcledSettings()

    def run(self, sources: Optional[Iterable[str]] = None) -> RunSummary:
        todo = list(sources) if sources is not None else list(self.settings.sources)
        logger.info(f"[JOB] ACLED weekly aggregates: {len(todo)} sources")

        summary = RunSummary()
        for source in todo:
            outcome = self.process_source(source)
            summary.outcomes.append(outcome)

        logger.success(
            f"[JOB] Done: loaded={summary.loaded} skipped={summary.skipped} "
            f"failed={summary.failed} rows_inserted={summary.rows_inserted}"
        )
        return summary

    def process_source(self, source: str) -> SourceOutcome:
        t0 = time.monotonic()
        fingerprint: Optional[str] = None
        logger.info(f"[ACLED] Processing source: {source}")

        try:
            acquired = self.acquirer.acquire(source)
            fingerprint = acquired.name

            if not has_changed(self.store, source, fingerprint, self.settings.job_type):
                logger.info(f"[ACLED] {source}: {fingerprint} unchanged since last successful run, skipping")
                return SourceOutcome(source, SourceStatus.SKIPPED, fingerprint=fingerprint, duration_ms=elapsed_ms(t0))

            rows = read_aggregate_rows(acquired)
            logger.info(f"[ACLED] {source}: {len(rows)} rows in {fingerprint}")

            result = load_batch(
                self.store,
                source,
                source,
                rows,
                batch_size=self.settings.batch_size,
                retention_weeks=self.settings.retention_weeks,
            )
        except Exception as ex:
            duration = elapsed_ms(t0)
            logger.error(f"[ACLED] Failed to process {source}: {type(ex).__name__}: {ex}")
            meta: Dict[str, Any] = {
                FINGERPRINT_KEY: fingerprint,
                "error": str(ex),
                "error_type": type(ex).__name__,
            }
            job_id = record_job(self.store, source, self.settings.job_type, JobStatus.FAILED, duration, meta)
            return SourceOutcome(
                source,
                SourceStatus.FAILED,
                fingerprint=fingerprint,
                error=f"{type(ex).__name__}: {ex}",
                duration_ms=duration,
                job_id=job_id,
            )

        duration = elapsed_ms(t0)
        meta = {FINGERPRINT_KEY: fingerprint, **result.as_meta()}
        job_id = record_job(self.store, source, self.settings.job_type, JobStatus.SUCCESSFUL, duration, meta)
        return SourceOutcome(
            source,
            SourceStatus.LOADED,
            fingerprint=fingerprint,
            result=result,
            duration_ms=duration,
            job_id=job_id,
        )
