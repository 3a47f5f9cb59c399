"""
src/acled/errors.py - Error kinds of the weekly aggregates pipeline.

Propagation:
- UnparseableDate: row-level, the loader drops the row with a warning.
- InvalidHierarchy / InvalidName / RowError: abort the source's transaction.
- TransactionError: storage failure, transaction rolled back.
- AcquisitionError: the source is recorded as failed and the run continues.
"""
from __future__ import annotations

from typing import Any, Optional


class AcledIngestError(Exception):
    """Base class for every error raised by the ingestion pipeline."""


class AcquisitionError(AcledIngestError):
    def __init__(self, source: str, message: str):
        super().__init__(f"[{source}] {message}")
        self.source = source


class UnparseableDate(AcledIngestError):
    def __init__(self, value: Any):
        super().__init__(f"Unable to parse week value: {value!r}")
        self.value = value


class InvalidHierarchy(AcledIngestError):
    pass


class InvalidName(AcledIngestError):
    pass


class RowError(AcledIngestError):
    def __init__(self, row_index: Optional[int], cause: BaseException):
        where = f"row {row_index}" if row_index is not None else "row"
        super().__init__(f"Invalid {where}: {type(cause).__name__}: {cause}")
        self.row_index = row_index
        self.cause = cause


class TransactionError(AcledIngestError):
    pass
