from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import duckdb
from loguru import logger

from src.db.schema import DDL_DICT, ensure_schema
from src.utils.config import load_config, resolve_db_path


def main():
    cfg = load_config()
    db_path = resolve_db_path(cfg)
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    con = duckdb.connect(db_path)
    ensure_schema(con)
    con.close()
    logger.success(f"[DW] Tables ready: {', '.join(DDL_DICT)} ({db_path})")


if __name__ == "__main__":
    main()
