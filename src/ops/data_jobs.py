from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from loguru import logger

from src.acled.models import JobRun, JobStatus
from src.db.store import DuckDBStore


def utcnow_naive() -> datetime:
    # DuckDB guarda TIMESTAMP naive: usamos UTC sin tzinfo
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_meta(raw: Any) -> Dict[str, Any]:
    """data_job.meta -> dict; anything malformed becomes {}."""
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        meta = json.loads(raw)
    except (TypeError, ValueError):
        return {}
    return meta if isinstance(meta, dict) else {}


def record_job(
    store: DuckDBStore,
    source: str,
    job_type: str,
    status: JobStatus,
    duration_ms: int,
    meta: Optional[Dict[str, Any]] = None,
) -> Optional[int]:
    """
    Append one row to data_job on its own cursor (outside any load transaction).

    Never raises: a failed ledger write is logged and None is returned, so it
    cannot hide the ingestion error that is being recorded.
    """
    try:
        with store.cursor() as cur:
            row = cur.execute(
                """
                INSERT INTO data_job (created_at, source, status, duration, type, meta)
                VALUES (?, ?, ?, ?, ?, ?)
                RETURNING id
                """,
                [
                    utcnow_naive(),
                    source,
                    JobStatus(status).value,
                    int(duration_ms),
                    job_type,
                    json.dumps(meta or {}, ensure_ascii=False, default=str),
                ],
            ).fetchone()
    except Exception as ex:
        logger.error(f"[OPS] Could not record data_job for {source} ({status}): {ex}")
        return None

    job_id = int(row[0])
    logger.info(f"[OPS] data_job {job_id}: source={source} status={JobStatus(status).value} duration={duration_ms}ms")
    return job_id


def _to_job_run(row: tuple) -> JobRun:
    return JobRun(
        id=int(row[0]),
        created_at=row[1],
        source=row[2],
        status=JobStatus(row[3]),
        duration_ms=row[4],
        type=row[5],
        meta=parse_meta(row[6]),
    )


def latest_successful_job(store: DuckDBStore, source: str, job_type: str) -> Optional[JobRun]:
    with store.cursor() as cur:
        row = cur.execute(
            """
            SELECT id, created_at, source, status, duration, type, meta
            FROM data_job
            WHERE type = ?
              AND source = ?
              AND status = ?
            ORDER BY created_at DESC, id DESC
            LIMIT 1
            """,
            [job_type, source, JobStatus.SUCCESSFUL.value],
        ).fetchone()
    return _to_job_run(row) if row else None


def list_jobs(
    store: DuckDBStore,
    source: Optional[str] = None,
    job_type: Optional[str] = None,
    limit: int = 50,
) -> List[JobRun]:
    where = []
    params: List[Any] = []
    if source is not None:
        where.append("source = ?")
        params.append(source)
    if job_type is not None:
        where.append("type = ?")
        params.append(job_type)
    where_sql = f"WHERE {' AND '.join(where)}" if where else ""
    params.append(int(limit))

    with store.cursor() as cur:
        rows = cur.execute(
            f"""
            SELECT id, created_at, source, status, duration, type, meta
            FROM data_job
            {where_sql}
            ORDER BY created_at DESC, id DESC
            LIMIT ?
            """,
            params,
        ).fetchall()
    return [_to_job_run(r) for r in rows]
