"""
src/processing/load_acled_weekly_to_dw.py

Atomic load of one source's (region's) weekly aggregates into acled_weekly_agg.

Inside a single transaction:
  1. resolve the region in geographic_area
  2. normalize every row (unparseable week -> warning + skip; anything else aborts)
  3. resolve country / admin1 ids (per-load cache)
  4. supersede: delete the region's existing rows for the weeks present in the batch
  5. insert the new rows in chunks of `batch_size`
  6. retire: delete the region's rows older than the retention horizon
  7. commit

Retention horizon = oldest of the newest K distinct weeks of the batch,
K = retention_weeks (or every distinct week in the batch when None).
"""
from __future__ import annotations

from datetime import date
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Set

import duckdb
from loguru import logger

from src.acled.errors import (
    InvalidHierarchy,
    InvalidName,
    RowError,
    UnparseableDate,
)
from src.acled.models import AggregateRecord, LoadResult
from src.acled.vocabulary import GeographicAreaType
from src.db.store import DuckDBStore
from src.geoparse.geographic_resolver import GeographicResolver
from src.processing.normalize_acled_weekly import COLUMN_ALIASES, AliasTable, normalize_row
from src.utils.config import DEFAULT_BATCH_SIZE

INSERT_COLUMNS = (
    "week",
    "region_id",
    "country_id",
    "admin1_id",
    "disorder_type",
    "event_type",
    "sub_event_type",
    "event_count",
    "fatalities",
    "population_exposure",
    "centroid_longitude",
    "centroid_latitude",
)


def chunked(items: Sequence[Any], size: int) -> Iterable[Sequence[Any]]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


def retention_horizon(weeks: Iterable[date], retention_weeks: Optional[int] = None) -> Optional[date]:
    distinct = sorted(set(weeks), reverse=True)
    if not distinct:
        return None
    k = len(distinct) if retention_weeks is None else max(1, int(retention_weeks))
    return distinct[:k][-1]


def _count(con: duckdb.DuckDBPyConnection, sql: str, params: List[Any]) -> int:
    return int(con.execute(sql, params).fetchone()[0])


def _insert_chunks(con: duckdb.DuckDBPyConnection, records: List[AggregateRecord], batch_size: int) -> int:
    if not records:
        return 0

    placeholders = "(" + ", ".join(["?"] * len(INSERT_COLUMNS)) + ")"
    sql = f"INSERT INTO acled_weekly_agg ({', '.join(INSERT_COLUMNS)}) VALUES {placeholders}"

    n_chunks = (len(records) + batch_size - 1) // batch_size
    inserted = 0
    for i, chunk in enumerate(chunked(records, batch_size), start=1):
        logger.debug(f"[DW] Inserting chunk {i}/{n_chunks} ({len(chunk)} rows)")
        con.executemany(sql, [r.as_params() for r in chunk])
        inserted += len(chunk)
    return inserted


def _supersede_weeks(con: duckdb.DuckDBPyConnection, region_id: int, weeks: Sequence[date]) -> int:
    if not weeks:
        return 0
    marks = ", ".join(["?"] * len(weeks))
    params: List[Any] = [region_id, *weeks]
    n = _count(
        con,
        f"SELECT COUNT(*) FROM acled_weekly_agg WHERE region_id = ? AND week IN ({marks})",
        params,
    )
    if n:
        con.execute(f"DELETE FROM acled_weekly_agg WHERE region_id = ? AND week IN ({marks})", params)
    return n


def _retire_older_than(con: duckdb.DuckDBPyConnection, region_id: int, horizon: Optional[date]) -> int:
    if horizon is None:
        return 0
    params: List[Any] = [region_id, horizon]
    n = _count(con, "SELECT COUNT(*) FROM acled_weekly_agg WHERE region_id = ? AND week < ?", params)
    if n:
        con.execute("DELETE FROM acled_weekly_agg WHERE region_id = ? AND week < ?", params)
    return n


def load_batch(
    store: DuckDBStore,
    source: str,
    region_name: str,
    rows: Sequence[Mapping[str, Any]],
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    retention_weeks: Optional[int] = None,
    aliases: AliasTable = COLUMN_ALIASES,
) -> LoadResult:
    """
    Load `rows` (raw spreadsheet dicts) for `source` as one all-or-nothing batch.

    Raises RowError (wrapping the cause), InvalidHierarchy / InvalidName, or
    TransactionError; in every case nothing from this call is visible afterwards.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1 (got {batch_size})")

    logger.info(f"[DW] Loading {source}: {len(rows)} rows (region='{region_name}')")

    try:
        with store.transaction() as con:
            resolver = GeographicResolver(con)
            region_id = resolver.resolve(region_name, GeographicAreaType.REGION)
            result = LoadResult(source=source, region_id=region_id, rows_read=len(rows))

            records: List[AggregateRecord] = []
            other_regions: Set[str] = set()
            for idx, raw in enumerate(rows):
                try:
                    agg = normalize_row(raw, aliases, index=idx)
                except UnparseableDate as ex:
                    logger.warning(f"[DW] {source}: skipping row {idx}: {ex}")
                    result.rows_skipped += 1
                    continue
                except Exception as ex:
                    raise RowError(idx, ex) from ex

                if agg.region and agg.region.casefold() != region_name.strip().casefold():
                    other_regions.add(agg.region)

                try:
                    country_id = None
                    admin1_id = None
                    if agg.country:
                        country_id = resolver.resolve(agg.country, GeographicAreaType.COUNTRY, region_id)
                    if agg.admin1 and country_id is not None:
                        admin1_id = resolver.resolve(agg.admin1, GeographicAreaType.ADMIN1, country_id)
                except (InvalidHierarchy, InvalidName):
                    raise
                except duckdb.Error:
                    raise
                except Exception as ex:
                    raise RowError(idx, ex) from ex

                records.append(
                    AggregateRecord(
                        week=agg.week,
                        region_id=region_id,
                        country_id=country_id,
                        admin1_id=admin1_id,
                        disorder_type=agg.disorder_type,
                        event_type=agg.event_type,
                        sub_event_type=agg.sub_event_type,
                        event_count=agg.event_count,
                        fatalities=agg.fatalities,
                        population_exposure=agg.population_exposure,
                        centroid_longitude=agg.centroid_longitude,
                        centroid_latitude=agg.centroid_latitude,
                    )
                )

            if other_regions:
                # La región de la fila no decide nada: manda la fuente
                logger.warning(
                    f"[DW] {source}: rows labelled {sorted(other_regions)} loaded under region '{region_name}'"
                )

            weeks = sorted({r.week for r in records})
            result.weeks = len(weeks)
            result.rows_superseded = _supersede_weeks(con, region_id, weeks)
            result.rows_inserted = _insert_chunks(con, records, batch_size)
            result.rows_retired = _retire_older_than(con, region_id, retention_horizon(weeks, retention_weeks))

            result.countries_resolved = len({r.country_id for r in records if r.country_id is not None})
            result.admin1_resolved = len({r.admin1_id for r in records if r.admin1_id is not None})
    except Exception as ex:
        logger.error(f"[DW] {source}: transaction rolled back ({type(ex).__name__}: {ex})")
        raise

    logger.success(
        f"[DW] Carga OK -> acled_weekly_agg ({source}: inserted={result.rows_inserted}, "
        f"skipped={result.rows_skipped}, superseded={result.rows_superseded}, "
        f"retired={result.rows_retired}, weeks={result.weeks}, "
        f"geo_created={resolver.created}, geo_lookups={resolver.lookups}, geo_cache_hits={resolver.cache_hits})"
    )
    return result
