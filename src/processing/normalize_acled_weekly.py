"""
src/processing/normalize_acled_weekly.py

Raw spreadsheet rows -> WeeklyAggregateRow.

- read_aggregate_rows(): first worksheet of the .xlsx (or a .csv) -> list of dicts
- COLUMN_ALIASES: accepted header names per logical field, first match wins
- parse_week(): heterogeneous week formats ("11/19/2022", "Nov 19 2022", "2022-11-19", ...)
- normalize_row(): typed row; raises UnparseableDate (row skipped by the loader)
  or ValueError (bad vocabulary, aborts the batch)
"""
from __future__ import annotations

import io
import math
import numbers
import re
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from src.acled.errors import AcquisitionError, UnparseableDate
from src.acled.models import AcquiredFile, WeeklyAggregateRow
from src.acled.vocabulary import DisorderType, EventType, SubEventType, check_sub_event, parse_label


class AggregateField(str, Enum):
    WEEK = "week"
    REGION = "region"
    COUNTRY = "country"
    ADMIN1 = "admin1"
    DISORDER_TYPE = "disorder_type"
    EVENT_TYPE = "event_type"
    SUB_EVENT_TYPE = "sub_event_type"
    EVENTS = "events"
    FATALITIES = "fatalities"
    POPULATION_EXPOSURE = "population_exposure"
    CENTROID_LONGITUDE = "centroid_longitude"
    CENTROID_LATITUDE = "centroid_latitude"


AliasTable = Mapping[AggregateField, Sequence[str]]

COLUMN_ALIASES: Dict[AggregateField, Tuple[str, ...]] = {
    AggregateField.WEEK: ("Week", "week", "WEEK", "DATE", "date"),
    AggregateField.REGION: ("Region", "region", "REGION"),
    AggregateField.COUNTRY: ("Country", "country", "COUNTRY"),
    AggregateField.ADMIN1: ("Admin1", "admin1", "Admin 1", "ADMIN1"),
    AggregateField.DISORDER_TYPE: ("Disorder Type", "disorder_type", "DISORDER_TYPE"),
    AggregateField.EVENT_TYPE: ("Event Type", "event_type", "EVENT_TYPE"),
    AggregateField.SUB_EVENT_TYPE: ("Sub Event Type", "sub_event_type", "Sub-event Type", "SUB_EVENT_TYPE"),
    AggregateField.EVENTS: ("Events", "events", "event_count", "EVENTS"),
    AggregateField.FATALITIES: ("Fatalities", "fatalities", "FATALITIES"),
    AggregateField.POPULATION_EXPOSURE: ("Population Exposure", "population_exposure", "POPULATION_EXPOSURE"),
    AggregateField.CENTROID_LONGITUDE: ("Longitude", "longitude", "centroid_longitude", "CENTROID_LONGITUDE"),
    AggregateField.CENTROID_LATITUDE: ("Latitude", "latitude", "centroid_latitude", "CENTROID_LATITUDE"),
}

# Excel guarda fechas como días desde 1899-12-30
EXCEL_EPOCH = date(1899, 12, 30)
EXCEL_SERIAL_RANGE = (20000, 80000)

_MDY = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_YMD_SLASH = re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})$")
_MON_D_Y = re.compile(r"^([A-Za-z]+)\.?\s+(\d{1,2}),?\s+(\d{4})$")
_D_MON_Y = re.compile(r"^(\d{1,2})[\s-]+([A-Za-z]+)\.?[\s-]+(\d{4})$")


# =============================================================================
# READING
# =============================================================================

def _header_key(s: str) -> str:
    return re.sub(r"[\s_\-]+", "", s.strip().lower())


def _is_blank(v: Any) -> bool:
    if v is None:
        return True
    if isinstance(v, float) and math.isnan(v):
        return True
    if v is pd.NaT or v is pd.NA:
        return True
    return isinstance(v, str) and not v.strip()


def read_aggregate_rows(acquired: AcquiredFile) -> List[Dict[str, Any]]:
    """
    Parse the acquired payload into row dicts (header -> value).

    .csv names are read as CSV, anything else as a workbook (first sheet).
    Empty cells come back as None.
    """
    buf = io.BytesIO(acquired.payload)
    try:
        if acquired.name.lower().endswith(".csv"):
            df = pd.read_csv(buf, dtype=object)
        else:
            df = pd.read_excel(buf, sheet_name=0, dtype=object, engine="openpyxl")
    except Exception as ex:
        raise AcquisitionError(acquired.source, f"Unreadable spreadsheet {acquired.name}: {ex}") from ex

    df.columns = [str(c).strip() for c in df.columns]
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict(orient="records")


# =============================================================================
# FIELD RESOLUTION
# =============================================================================

def field_value(row: Mapping[str, Any], fld: AggregateField, aliases: AliasTable = COLUMN_ALIASES) -> Any:
    """First non-blank value among the accepted aliases of `fld`."""
    accepted = aliases.get(fld, ())
    for alias in accepted:
        if alias in row and not _is_blank(row[alias]):
            return row[alias]

    # Mismos alias, ignorando mayúsculas/espacios/guiones bajos
    by_key = {_header_key(str(k)): k for k in row.keys()}
    for alias in accepted:
        k = by_key.get(_header_key(alias))
        if k is not None and not _is_blank(row[k]):
            return row[k]
    return None


def clean_str(v: Any) -> Optional[str]:
    if _is_blank(v):
        return None
    s = re.sub(r"\s+", " ", str(v).strip())
    return s or None


def to_count(v: Any) -> int:
    """Non-negative int; absent or unparseable -> 0."""
    if _is_blank(v) or isinstance(v, bool):
        return 0
    try:
        n = float(str(v).strip().replace(",", "")) if isinstance(v, str) else float(v)
    except (TypeError, ValueError):
        return 0
    if math.isnan(n) or math.isinf(n):
        return 0
    return max(0, int(n))


def to_degrees(v: Any) -> float:
    if _is_blank(v) or isinstance(v, bool):
        return 0.0
    try:
        x = float(str(v).strip()) if isinstance(v, str) else float(v)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(x) or math.isinf(x):
        return 0.0
    return x


# =============================================================================
# DATES
# =============================================================================

def _month_date(month_name: str, day: str, year: str) -> date:
    for fmt in ("%b", "%B"):
        try:
            month = datetime.strptime(month_name[:3] if fmt == "%b" else month_name, fmt).month
            return date(int(year), month, int(day))
        except ValueError:
            continue
    raise ValueError(month_name)


def parse_week(value: Any) -> date:
    """
    Parse a week value into a calendar date.

    Order: native date/datetime, Excel serial, ISO 8601, then the explicit
    patterns M/D/YYYY, YYYY/M/D, "Mon D YYYY" and "D Mon YYYY".
    """
    if _is_blank(value):
        raise UnparseableDate(value)
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        if EXCEL_SERIAL_RANGE[0] <= value <= EXCEL_SERIAL_RANGE[1]:
            return EXCEL_EPOCH + timedelta(days=int(value))
        raise UnparseableDate(value)

    s = str(value).strip()

    try:
        return date.fromisoformat(s)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    try:
        m = _MDY.match(s)
        if m:
            return date(int(m.group(3)), int(m.group(1)), int(m.group(2)))
        m = _YMD_SLASH.match(s)
        if m:
            return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        m = _MON_D_Y.match(s)
        if m:
            return _month_date(m.group(1), m.group(2), m.group(3))
        m = _D_MON_Y.match(s)
        if m:
            return _month_date(m.group(2), m.group(1), m.group(3))
    except ValueError:
        pass

    raise UnparseableDate(value)


# =============================================================================
# ROW
# =============================================================================

def normalize_row(
    raw_row: Mapping[str, Any],
    aliases: AliasTable = COLUMN_ALIASES,
    index: Optional[int] = None,
) -> WeeklyAggregateRow:
    week = parse_week(field_value(raw_row, AggregateField.WEEK, aliases))

    country = clean_str(field_value(raw_row, AggregateField.COUNTRY, aliases))
    admin1 = clean_str(field_value(raw_row, AggregateField.ADMIN1, aliases))
    if country is None:
        # Fila regional: sin país no hay admin1
        admin1 = None

    disorder = parse_label(DisorderType, clean_str(field_value(raw_row, AggregateField.DISORDER_TYPE, aliases)))
    event = parse_label(EventType, clean_str(field_value(raw_row, AggregateField.EVENT_TYPE, aliases)))
    sub_event = parse_label(SubEventType, clean_str(field_value(raw_row, AggregateField.SUB_EVENT_TYPE, aliases)))
    event = check_sub_event(event, sub_event)

    return WeeklyAggregateRow(
        week=week,
        region=clean_str(field_value(raw_row, AggregateField.REGION, aliases)),
        country=country,
        admin1=admin1,
        disorder_type=disorder,
        event_type=event,
        sub_event_type=sub_event,
        event_count=to_count(field_value(raw_row, AggregateField.EVENTS, aliases)),
        fatalities=to_count(field_value(raw_row, AggregateField.FATALITIES, aliases)),
        population_exposure=to_count(field_value(raw_row, AggregateField.POPULATION_EXPOSURE, aliases)),
        centroid_longitude=to_degrees(field_value(raw_row, AggregateField.CENTROID_LONGITUDE, aliases)),
        centroid_latitude=to_degrees(field_value(raw_row, AggregateField.CENTROID_LATITUDE, aliases)),
        row_index=index,
    )
