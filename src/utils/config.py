from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

# Ruta raíz del proyecto
PROJECT_ROOT = Path(__file__).resolve().parents[2]

DEFAULT_JOB_TYPE = "acled_weekly_agg"
DEFAULT_BATCH_SIZE = 5000


def load_config(path: str = "config/settings.yaml") -> dict:
    """
    Carga el fichero de configuración YAML y lo devuelve como diccionario.
    """
    config_path = Path(path)
    if not config_path.is_absolute():
        config_path = PROJECT_ROOT / config_path
    with config_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def resolve_db_path(cfg: Dict[str, Any]) -> str:
    """
    DuckDB path from ACLED_DUCKDB_PATH (.env or environment) or cfg["db"]["duckdb_path"].

    ":memory:" is passed through untouched; relative paths hang off PROJECT_ROOT.
    """
    load_dotenv()
    raw = os.getenv("ACLED_DUCKDB_PATH") or (cfg.get("db") or {}).get("duckdb_path")
    if not raw:
        raise ValueError("Missing db.duckdb_path in config (or ACLED_DUCKDB_PATH)")
    if raw == ":memory:":
        return raw
    p = Path(raw)
    if not p.is_absolute():
        p = PROJECT_ROOT / p
    return str(p)


@dataclass
class AcledSettings:
    """Settings for the weekly aggregates job (the `acled` section of settings.yaml)."""
    job_type: str = DEFAULT_JOB_TYPE
    batch_size: int = DEFAULT_BATCH_SIZE
    retention_weeks: Optional[int] = None
    sources: List[str] = field(default_factory=list)
    downloads_dir: Optional[Path] = None
    urls: Dict[str, str] = field(default_factory=dict)
    http_timeout_seconds: int = 60
    http_max_retries: int = 3

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "AcledSettings":
        acled = cfg.get("acled") or {}
        http = acled.get("http") or {}

        downloads = (cfg.get("data_paths") or {}).get("downloads")
        downloads_dir = None
        if downloads:
            downloads_dir = Path(downloads)
            if not downloads_dir.is_absolute():
                downloads_dir = PROJECT_ROOT / downloads_dir

        retention = acled.get("retention_weeks")
        settings = cls(
            job_type=str(acled.get("job_type") or DEFAULT_JOB_TYPE),
            batch_size=int(acled.get("batch_size") or DEFAULT_BATCH_SIZE),
            retention_weeks=int(retention) if retention is not None else None,
            sources=[str(s).strip() for s in (acled.get("sources") or []) if str(s).strip()],
            downloads_dir=downloads_dir,
            urls={str(k).strip(): str(v) for k, v in (acled.get("urls") or {}).items()},
            http_timeout_seconds=int(http.get("timeout_seconds", 60)),
            http_max_retries=int(http.get("max_retries", 3)),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.batch_size < 1:
            raise ValueError(f"acled.batch_size must be >= 1 (got {self.batch_size})")
        if self.retention_weeks is not None and self.retention_weeks < 1:
            raise ValueError(f"acled.retention_weeks must be >= 1 or null (got {self.retention_weeks})")
