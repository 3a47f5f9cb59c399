import json

from conftest import count_rows
from src.acled.models import JobStatus
from src.ops.change_detection import has_changed
from src.ops.data_jobs import latest_successful_job, list_jobs, parse_meta, record_job

JOB = "acled_weekly_agg"


def test_first_run_always_changed(store):
    assert has_changed(store, "Middle East", "file_v1.xlsx", JOB) is True


def test_same_fingerprint_is_unchanged_and_different_is_changed(store):
    record_job(store, "Middle East", JOB, JobStatus.SUCCESSFUL, 120, {"filename": "file_v1.xlsx"})
    assert has_changed(store, "Middle East", "file_v1.xlsx", JOB) is False
    assert has_changed(store, "Middle East", "file_v2.xlsx", JOB) is True


def test_only_successful_jobs_count(store):
    record_job(store, "Africa", JOB, JobStatus.SUCCESSFUL, 10, {"filename": "old.xlsx"})
    record_job(store, "Africa", JOB, JobStatus.FAILED, 10, {"filename": "new.xlsx", "error": "boom"})
    assert has_changed(store, "Africa", "new.xlsx", JOB) is True
    assert has_changed(store, "Africa", "old.xlsx", JOB) is False


def test_latest_successful_job_wins(store):
    record_job(store, "Africa", JOB, JobStatus.SUCCESSFUL, 10, {"filename": "a.xlsx"})
    record_job(store, "Africa", JOB, JobStatus.SUCCESSFUL, 10, {"filename": "b.xlsx"})
    assert latest_successful_job(store, "Africa", JOB).meta["filename"] == "b.xlsx"
    assert has_changed(store, "Africa", "a.xlsx", JOB) is True


def test_other_sources_and_job_types_are_ignored(store):
    record_job(store, "Africa", JOB, JobStatus.SUCCESSFUL, 10, {"filename": "same.xlsx"})
    record_job(store, "Middle East", "other_pipeline", JobStatus.SUCCESSFUL, 10, {"filename": "same.xlsx"})
    assert has_changed(store, "Middle East", "same.xlsx", JOB) is True


def test_malformed_meta_counts_as_changed(store):
    with store.cursor() as cur:
        cur.execute(
            "INSERT INTO data_job (source, status, duration, type, meta) VALUES (?, ?, ?, ?, ?)",
            ["Europe", "successful", 5, JOB, "{not json"],
        )
    assert has_changed(store, "Europe", "europe.xlsx", JOB) is True

    record_job(store, "Asia", JOB, JobStatus.SUCCESSFUL, 5, {"rows_inserted": 3})
    assert has_changed(store, "Asia", "asia.xlsx", JOB) is True


def test_record_job_round_trip(store):
    job_id = record_job(store, "Africa", JOB, JobStatus.FAILED, 42, {"filename": None, "error": "timeout"})
    jobs = list_jobs(store, source="Africa")
    assert [j.id for j in jobs] == [job_id]
    assert jobs[0].status is JobStatus.FAILED
    assert jobs[0].duration_ms == 42
    assert jobs[0].meta == {"filename": None, "error": "timeout"}


def test_record_job_never_raises(store, log_messages):
    with store.cursor() as cur:
        cur.execute("DROP TABLE data_job")
    assert record_job(store, "Africa", JOB, JobStatus.SUCCESSFUL, 1, {}) is None
    assert any(m.startswith("ERROR|") and "Africa" in m for m in log_messages)


def test_parse_meta():
    assert parse_meta(json.dumps({"filename": "x.xlsx"})) == {"filename": "x.xlsx"}
    assert parse_meta("[1, 2]") == {}
    assert parse_meta(None) == {}
    assert parse_meta("nope") == {}


def test_ledger_is_append_only(store):
    for i in range(3):
        record_job(store, "Africa", JOB, JobStatus.SUCCESSFUL, i, {"filename": f"{i}.xlsx"})
    assert count_rows(store, "data_job") == 3
