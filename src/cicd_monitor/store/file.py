"""
cicd_monitor.store.file

Local directory record store (`<directory>/<date>.json`) for dev runs and tests.
"""

from __future__ import annotations

import os
from pathlib import Path

from cicd_monitor.monitor.errors import StoreError
from cicd_monitor.monitor.state import PromotionRecord, dump_record, load_record


class FileRecordStore:
    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)

    def path_for(self, date: str) -> Path:
        return self._dir / f"{date}.json"

    async def load(self, date: str) -> PromotionRecord | None:
        path = self.path_for(date)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StoreError(f"read {path}: {e}") from e
        return load_record(raw)

    async def save(self, date: str, record: PromotionRecord) -> None:
        path = self.path_for(date)
        tmp = path.with_suffix(".json.tmp")
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(dump_record(record))
            # Atomic replace: a crash mid-write leaves the previous record intact.
            os.replace(tmp, path)
        except OSError as e:
            raise StoreError(f"write {path}: {e}") from e
