from __future__ import annotations

import io
from typing import Any, Dict, List

import pandas as pd
import pytest
from loguru import logger

from src.acled.errors import AcquisitionError
from src.acled.models import AcquiredFile
from src.db.store import DuckDBStore


@pytest.fixture
def store():
    s = DuckDBStore(":memory:", create_schema=True)
    yield s
    s.close()


@pytest.fixture
def log_messages():
    """Collect loguru records as 'LEVEL|message' strings."""
    messages: List[str] = []
    handler_id = logger.add(lambda m: messages.append(f"{m.record['level'].name}|{m.record['message']}"), level="DEBUG")
    yield messages
    logger.remove(handler_id)


def xlsx_bytes(rows: List[Dict[str, Any]]) -> bytes:
    buf = io.BytesIO()
    pd.DataFrame(rows).to_excel(buf, index=False, engine="openpyxl")
    return buf.getvalue()


class FakeAcquirer:
    """In-memory acquirer: source -> (name, rows) or an exception to raise."""

    def __init__(self):
        self.files: Dict[str, Any] = {}
        self.calls: List[str] = []

    def put(self, source: str, name: str, rows: List[Dict[str, Any]]) -> None:
        self.files[source] = AcquiredFile(source=source, name=name, payload=xlsx_bytes(rows))

    def fail(self, source: str, message: str = "site layout changed") -> None:
        self.files[source] = AcquisitionError(source, message)

    def acquire(self, source: str) -> AcquiredFile:
        self.calls.append(source)
        item = self.files.get(source)
        if item is None:
            raise AcquisitionError(source, "no file")
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def acquirer():
    return FakeAcquirer()


def agg_row(week="2022-11-19", country="Iraq", admin1="Baghdad", **overrides) -> Dict[str, Any]:
    row = {
        "Week": week,
        "Region": "Middle East",
        "Country": country,
        "Admin1": admin1,
        "Disorder Type": "Political violence",
        "Event Type": "Battles",
        "Sub Event Type": "Armed clash",
        "Events": 3,
        "Fatalities": 5,
        "Population Exposure": 12000,
        "Centroid Longitude": 44.36,
        "Centroid Latitude": 33.31,
    }
    row.update(overrides)
    return row


def count_rows(store: DuckDBStore, table: str, where: str = "", params: list | None = None) -> int:
    with store.cursor() as cur:
        return cur.execute(f"SELECT COUNT(*) FROM {table} {where}", params or []).fetchone()[0]
