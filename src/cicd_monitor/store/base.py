"""
cicd_monitor.store.base

State store contract used by the engine.
"""

from __future__ import annotations

from typing import Protocol

from cicd_monitor.monitor.state import PromotionRecord


class RecordStore(Protocol):
    async def load(self, date: str) -> PromotionRecord | None:
        """Return the record stored under `date`, or None when no record exists yet."""
        ...

    async def save(self, date: str, record: PromotionRecord) -> None:
        """Overwrite the record stored under `date` (last write wins)."""
        ...
