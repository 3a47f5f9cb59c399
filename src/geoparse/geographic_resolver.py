from __future__ import annotations

from typing import Dict, Optional

import duckdb
from loguru import logger

from src.acled.errors import InvalidHierarchy, InvalidName
from src.acled.models import GeographicArea
from src.acled.vocabulary import PARENT_TYPE, GeographicAreaType


def norm_name(s: Optional[str]) -> str:
    return (s or "").strip()


class GeographicResolver:
    """
    get-or-create of geographic_area rows on the load's transaction cursor.

    One instance per source load: the caches (type:parent:name -> id and
    id -> type) die with the transaction. UNIQUE (type, name, parent_key) in
    the table is the final guard against duplicates.
    """

    def __init__(self, con: duckdb.DuckDBPyConnection):
        self.con = con
        self.cache: Dict[str, int] = {}
        self.types: Dict[int, GeographicAreaType] = {}
        self.lookups = 0
        self.cache_hits = 0
        self.created = 0

    def resolve(
        self,
        name: Optional[str],
        area_type: GeographicAreaType,
        parent_id: Optional[int] = None,
    ) -> int:
        area_type = GeographicAreaType(area_type)
        if area_type is GeographicAreaType.REGION and parent_id is not None:
            raise InvalidHierarchy(f"A region cannot have a parent (got parent_id={parent_id})")
        if area_type is not GeographicAreaType.REGION and parent_id is None:
            raise InvalidHierarchy(f"A {area_type.value} requires a parent_id")

        trimmed = norm_name(name)
        if not trimmed:
            raise InvalidName(f"Empty {area_type.value} name: {name!r}")

        if parent_id is not None:
            self._check_parent(area_type, parent_id)

        self.lookups += 1
        key = f"{area_type.value}:{parent_id or ''}:{trimmed}"
        if key in self.cache:
            self.cache_hits += 1
            return self.cache[key]

        area_id = self._find(trimmed, area_type, parent_id)
        if area_id is None:
            area_id = self._create(trimmed, area_type, parent_id)
            self.created += 1
            logger.debug(f"[GEO] New {area_type.value} '{trimmed}' (parent={parent_id}) -> id={area_id}")

        self.cache[key] = area_id
        self.types[area_id] = area_type
        return area_id

    def _check_parent(self, area_type: GeographicAreaType, parent_id: int) -> None:
        expected = PARENT_TYPE[area_type]
        parent_type = self.types.get(parent_id)
        if parent_type is None:
            parent = self.get(parent_id)
            if parent is None:
                raise InvalidHierarchy(f"Parent {parent_id} of {area_type.value} does not exist")
            parent_type = self.types[parent_id] = parent.type
        if parent_type is not expected:
            raise InvalidHierarchy(
                f"A {area_type.value} must hang from a {expected.value} "
                f"(parent {parent_id} is a {parent_type.value})"
            )

    def get(self, area_id: int) -> Optional[GeographicArea]:
        row = self.con.execute(
            """
            SELECT id, name, type, parent_id, acled_code, iso, geojson
            FROM geographic_area
            WHERE id = ?
            """,
            [area_id],
        ).fetchone()
        if not row:
            return None
        return GeographicArea(
            id=int(row[0]),
            name=row[1],
            type=GeographicAreaType(row[2]),
            parent_id=row[3],
            acled_code=row[4],
            iso=row[5],
            geojson=row[6],
        )

    def _find(self, name: str, area_type: GeographicAreaType, parent_id: Optional[int]) -> Optional[int]:
        row = self.con.execute(
            """
            SELECT id
            FROM geographic_area
            WHERE name = ? AND type = ? AND parent_key = ?
            LIMIT 1
            """,
            [name, area_type.value, parent_id or 0],
        ).fetchone()
        return int(row[0]) if row else None

    def _create(self, name: str, area_type: GeographicAreaType, parent_id: Optional[int]) -> int:
        row = self.con.execute(
            """
            INSERT INTO geographic_area (name, type, parent_id, parent_key)
            VALUES (?, ?, ?, ?)
            RETURNING id
            """,
            [name, area_type.value, parent_id, parent_id or 0],
        ).fetchone()
        return int(row[0])
