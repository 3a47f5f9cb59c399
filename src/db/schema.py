"""
src/db/schema.py - Unified DDL definitions

This is the SINGLE SOURCE OF TRUTH for the ACLED weekly aggregates schema.
The init script and the tests import from here.

Tables:
- geographic_area: region -> country -> admin_1 tree (parent_id back-references)
- acled_weekly_agg: one row per (week, geography, disorder/event/sub-event) bucket
- data_job: append-only ledger of ingestion attempts

Naming conventions:
- Tables: snake_case
- Enumerated columns: VARCHAR + CHECK (labels from src/acled/vocabulary.py)
- JSON payloads: VARCHAR holding json.dumps(...)
"""
from __future__ import annotations

import duckdb

# =============================================================================
# SEQUENCES
# =============================================================================

SEQUENCES_DDL = """
CREATE SEQUENCE IF NOT EXISTS geographic_area_id_seq START 1;
CREATE SEQUENCE IF NOT EXISTS data_job_id_seq START 1;
"""

# =============================================================================
# GEOGRAPHY
# =============================================================================

# parent_key = COALESCE(parent_id, 0): los NULL no colisionan en un UNIQUE,
# así que las regiones (sin padre) también quedan deduplicadas.
GEOGRAPHIC_AREA_DDL = """
CREATE TABLE IF NOT EXISTS geographic_area (
    id INTEGER PRIMARY KEY DEFAULT nextval('geographic_area_id_seq'),
    acled_code INTEGER UNIQUE,
    name VARCHAR NOT NULL,
    type VARCHAR NOT NULL CHECK (type IN ('region', 'country', 'admin_1')),
    iso VARCHAR(10),
    parent_id INTEGER,
    parent_key INTEGER NOT NULL DEFAULT 0,
    geojson VARCHAR,
    UNIQUE (type, name, parent_key)
);
CREATE INDEX IF NOT EXISTS idx_geographic_area_parent ON geographic_area(parent_id);
"""

# =============================================================================
# FACTS
# =============================================================================

# Sin PRIMARY KEY (week, region, country, admin1): varias filas por tipo de
# evento comparten esa tupla y country/admin1 pueden ser NULL.
ACLED_WEEKLY_AGG_DDL = """
CREATE TABLE IF NOT EXISTS acled_weekly_agg (
    week DATE NOT NULL,
    region_id INTEGER NOT NULL REFERENCES geographic_area(id),
    country_id INTEGER REFERENCES geographic_area(id),
    admin1_id INTEGER REFERENCES geographic_area(id),
    disorder_type VARCHAR,
    event_type VARCHAR,
    sub_event_type VARCHAR,
    event_count INTEGER DEFAULT 0,
    fatalities INTEGER DEFAULT 0,
    population_exposure BIGINT DEFAULT 0,
    centroid_longitude DOUBLE,
    centroid_latitude DOUBLE
);
CREATE INDEX IF NOT EXISTS idx_acled_weekly_agg_region_week ON acled_weekly_agg(region_id, week);
CREATE INDEX IF NOT EXISTS idx_acled_weekly_agg_country_week ON acled_weekly_agg(country_id, week);
CREATE INDEX IF NOT EXISTS idx_acled_weekly_agg_admin1_week ON acled_weekly_agg(admin1_id, week);
"""

# =============================================================================
# OPERATIONAL TABLES
# =============================================================================

DATA_JOB_DDL = """
CREATE TABLE IF NOT EXISTS data_job (
    id INTEGER PRIMARY KEY DEFAULT nextval('data_job_id_seq'),
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    source VARCHAR,
    status VARCHAR,
    duration INTEGER,
    type VARCHAR NOT NULL,
    meta VARCHAR
);
CREATE INDEX IF NOT EXISTS idx_data_job_type_source ON data_job(type, source);
"""

# =============================================================================
# EXPORT: Lista de todos los DDLs en orden de creación
# =============================================================================

ALL_DDLS = [
    SEQUENCES_DDL,
    GEOGRAPHIC_AREA_DDL,
    ACLED_WEEKLY_AGG_DDL,
    DATA_JOB_DDL,
]

DDL_DICT = {
    'geographic_area': GEOGRAPHIC_AREA_DDL,
    'acled_weekly_agg': ACLED_WEEKLY_AGG_DDL,
    'data_job': DATA_JOB_DDL,
}


def ensure_schema(con: duckdb.DuckDBPyConnection) -> None:
    for ddl in ALL_DDLS:
        con.execute(ddl)
