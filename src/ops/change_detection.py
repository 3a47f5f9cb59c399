from __future__ import annotations

from typing import Optional

from loguru import logger

from src.db.store import DuckDBStore
from src.ops.data_jobs import latest_successful_job
from src.utils.config import DEFAULT_JOB_TYPE

FINGERPRINT_KEY = "filename"


def has_changed(
    store: DuckDBStore,
    source: str,
    fingerprint: Optional[str],
    job_type: str = DEFAULT_JOB_TYPE,
) -> bool:
    """
    True if `fingerprint` differs from meta.filename of the last successful
    data_job for (job_type, source).

    No previous success, or a previous job whose meta has no usable filename,
    counts as changed.
    """
    last = latest_successful_job(store, source, job_type)
    if last is None:
        logger.info(f"[ACLED] {source}: no previous successful job, loading")
        return True

    previous = last.meta.get(FINGERPRINT_KEY)
    if not isinstance(previous, str) or not previous:
        logger.warning(f"[ACLED] {source}: data_job {last.id} has no '{FINGERPRINT_KEY}' in meta, loading")
        return True

    return previous != fingerprint
