"""
src/ingestion/acquire_acled_files.py - File acquisition for the weekly aggregates.

The provider publishes one "Aggregated data on <region>" .xlsx per region.
Reaching it (login, navigation) is outside this package: acquirers only turn a
source name into an AcquiredFile (fingerprint + bytes).

- LocalDirectoryAcquirer: newest file in a download folder matching the source
- HttpFileAcquirer: direct URL per source, with retries

Both can be called repeatedly without side effects beyond re-reading/re-downloading.
"""
from __future__ import annotations

import re
import time
import unicodedata
from pathlib import Path
from typing import Dict, Optional, Protocol, Sequence
from urllib.parse import unquote, urlparse

import requests
from loguru import logger

from src.acled.errors import AcquisitionError
from src.acled.models import AcquiredFile

SPREADSHEET_SUFFIXES = (".xlsx", ".csv")


class FileAcquirer(Protocol):
    def acquire(self, source: str) -> AcquiredFile: ...


def slugify(name: str) -> str:
    s = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    s = re.sub(r"[^a-z0-9]+", "-", s.lower()).strip("-")
    return s


class LocalDirectoryAcquirer:
    """
    Picks, per source, the most recently modified spreadsheet in `root`
    whose slugified name starts with the slugified source
    (e.g. "Middle East" -> "middle-east_aggregated_data_up_to-2024-11-16.xlsx").
    """

    def __init__(self, root: Path, patterns: Optional[Dict[str, str]] = None):
        self.root = Path(root)
        self.patterns = patterns or {}

    def _candidates(self, source: str) -> Sequence[Path]:
        if not self.root.exists():
            return []
        if source in self.patterns:
            return [p for p in self.root.glob(self.patterns[source]) if p.is_file()]
        wanted = slugify(source)
        return [
            p for p in self.root.iterdir()
            if p.is_file() and p.suffix.lower() in SPREADSHEET_SUFFIXES and slugify(p.stem).startswith(wanted)
        ]

    def acquire(self, source: str) -> AcquiredFile:
        candidates = self._candidates(source)
        if not candidates:
            raise AcquisitionError(source, f"No spreadsheet found in {self.root}")
        path = max(candidates, key=lambda p: (p.stat().st_mtime, p.name))
        try:
            payload = path.read_bytes()
        except OSError as ex:
            raise AcquisitionError(source, f"Cannot read {path}: {ex}") from ex
        logger.info(f"[ACLED] {source}: using local file {path.name} ({len(payload)} bytes)")
        return AcquiredFile(source=source, name=path.name, payload=payload)


def filename_from_response(url: str, resp: requests.Response) -> str:
    cd = resp.headers.get("Content-Disposition") or ""
    m = re.search(r'filename\*?=(?:UTF-8\'\')?"?([^";]+)"?', cd, flags=re.IGNORECASE)
    if m:
        return unquote(m.group(1).strip())
    name = unquote(Path(urlparse(resp.url or url).path).name)
    return name or "unknown.xlsx"


class HttpFileAcquirer:
    """GET a direct download URL per source; fingerprint = served filename."""

    def __init__(
        self,
        urls: Dict[str, str],
        timeout_seconds: int = 60,
        max_retries: int = 3,
        session: Optional[requests.Session] = None,
    ):
        self.urls = urls
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(1, int(max_retries))
        self.session = session or requests.Session()

    def acquire(self, source: str) -> AcquiredFile:
        url = self.urls.get(source)
        if not url:
            raise AcquisitionError(source, "No download URL configured")

        last_exc: Optional[Exception] = None
        for attempt in range(1, self.max_retries + 1):
            try:
                resp = self.session.get(url, timeout=self.timeout_seconds)
                resp.raise_for_status()
                name = filename_from_response(url, resp)
                logger.info(f"[ACLED] {source}: downloaded {name} ({len(resp.content)} bytes)")
                return AcquiredFile(source=source, name=name, payload=resp.content)
            except requests.RequestException as ex:
                last_exc = ex
                logger.warning(f"[ACLED] {source}: download attempt {attempt}/{self.max_retries} failed: {ex}")
                if attempt < self.max_retries:
                    time.sleep(min(2 ** (attempt - 1), 8))

        raise AcquisitionError(source, f"Download failed after {self.max_retries} attempts: {last_exc}") from last_exc
