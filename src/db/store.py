"""
src/db/store.py - Explicit DuckDB handle passed down to the pipeline.

One database handle per process; each unit of work gets its own cursor
(`cursor()` for autocommit reads/writes, `transaction()` for BEGIN/COMMIT).
Cursors share the same database, so this also works with ":memory:".
"""
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import duckdb
from loguru import logger

from src.acled.errors import TransactionError
from src.db.schema import ensure_schema


class DuckDBStore:
    def __init__(self, db_path: str = ":memory:", create_schema: bool = False):
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._con: Optional[duckdb.DuckDBPyConnection] = duckdb.connect(db_path)
        if create_schema:
            ensure_schema(self._con)

    @property
    def con(self) -> duckdb.DuckDBPyConnection:
        if self._con is None:
            raise RuntimeError(f"Store is closed: {self.db_path}")
        return self._con

    @contextmanager
    def cursor(self) -> Iterator[duckdb.DuckDBPyConnection]:
        cur = self.con.cursor()
        try:
            yield cur
        finally:
            cur.close()

    @contextmanager
    def transaction(self) -> Iterator[duckdb.DuckDBPyConnection]:
        """
        Yield a cursor inside BEGIN ... COMMIT.

        Any exception rolls back. duckdb.Error is re-raised as TransactionError
        (cause chained); every other exception propagates unchanged.
        """
        with self.cursor() as cur:
            cur.begin()
            try:
                yield cur
            except BaseException as ex:
                try:
                    cur.rollback()
                except duckdb.Error as rb_ex:
                    logger.error(f"[DW] Rollback failed: {rb_ex}")
                if isinstance(ex, duckdb.Error):
                    raise TransactionError(f"{type(ex).__name__}: {ex}") from ex
                raise
            try:
                cur.commit()
            except duckdb.Error as ex:
                raise TransactionError(f"Commit failed: {ex}") from ex

    def close(self) -> None:
        if self._con is not None:
            self._con.close()
            self._con = None

    def __enter__(self) -> "DuckDBStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
