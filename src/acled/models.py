from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from src.acled.vocabulary import DisorderType, EventType, GeographicAreaType, SubEventType


class JobStatus(str, Enum):
    SUCCESSFUL = "successful"
    FAILED = "failed"


@dataclass(frozen=True)
class GeographicArea:
    id: int
    name: str
    type: GeographicAreaType
    parent_id: Optional[int] = None
    acled_code: Optional[int] = None
    iso: Optional[str] = None
    geojson: Optional[str] = None


@dataclass(frozen=True)
class WeeklyAggregateRow:
    """One normalized spreadsheet row, geography still as trimmed names."""
    week: date
    region: Optional[str]
    country: Optional[str]
    admin1: Optional[str]
    disorder_type: Optional[DisorderType]
    event_type: Optional[EventType]
    sub_event_type: Optional[SubEventType]
    event_count: int = 0
    fatalities: int = 0
    # Exposure estimada por proximidad: no sumar entre filas
    population_exposure: int = 0
    # Centroide de la unidad administrativa, no la ubicación del evento
    centroid_longitude: float = 0.0
    centroid_latitude: float = 0.0
    row_index: Optional[int] = None


@dataclass(frozen=True)
class AggregateRecord:
    """A row of acled_weekly_agg, geography resolved to geographic_area ids."""
    week: date
    region_id: int
    country_id: Optional[int]
    admin1_id: Optional[int]
    disorder_type: Optional[DisorderType]
    event_type: Optional[EventType]
    sub_event_type: Optional[SubEventType]
    event_count: int
    fatalities: int
    population_exposure: int
    centroid_longitude: float
    centroid_latitude: float

    def as_params(self) -> List[Any]:
        return [
            self.week,
            self.region_id,
            self.country_id,
            self.admin1_id,
            self.disorder_type.value if self.disorder_type else None,
            self.event_type.value if self.event_type else None,
            self.sub_event_type.value if self.sub_event_type else None,
            self.event_count,
            self.fatalities,
            self.population_exposure,
            self.centroid_longitude,
            self.centroid_latitude,
        ]


@dataclass
class LoadResult:
    source: str
    region_id: int
    rows_read: int = 0
    rows_inserted: int = 0
    rows_skipped: int = 0
    rows_superseded: int = 0
    rows_retired: int = 0
    weeks: int = 0
    countries_resolved: int = 0
    admin1_resolved: int = 0

    def as_meta(self) -> Dict[str, int]:
        return {
            "rows_read": self.rows_read,
            "rows_inserted": self.rows_inserted,
            "rows_skipped": self.rows_skipped,
            "rows_superseded": self.rows_superseded,
            "rows_retired": self.rows_retired,
            "weeks": self.weeks,
        }


@dataclass(frozen=True)
class AcquiredFile:
    source: str
    # Fingerprint para la detección de cambios (nombre/versión del fichero)
    name: str
    payload: bytes


@dataclass(frozen=True)
class JobRun:
    id: int
    created_at: Any
    source: str
    status: JobStatus
    duration_ms: Optional[int]
    type: str
    meta: Dict[str, Any] = field(default_factory=dict)
