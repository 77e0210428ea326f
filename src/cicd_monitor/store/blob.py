"""
cicd_monitor.store.blob

Azure Blob storage record store (REST over httpx, SAS-token credential).

Responsibilities:
- Map date keys to blob names inside one container.
- Download/upload records as JSON block blobs.
- Surface every failure other than "blob not found" as `StoreError`.
"""

from __future__ import annotations

import httpx

from cicd_monitor.monitor.errors import StoreError
from cicd_monitor.monitor.state import PromotionRecord, dump_record, load_record
from cicd_monitor.observability.logging import get_logger

BLOB_BASE_URL = "https://{account}.blob.core.windows.net"
BLOB_API_VERSION = "2021-08-06"

log = get_logger(__name__)


class BlobRecordStore:
    """
    The `httpx.AsyncClient` is owned by the caller and must use `BLOB_BASE_URL` as base URL.
    """

    def __init__(self, *, http: httpx.AsyncClient, container: str, sas_token: str) -> None:
        self._http = http
        self._container = container
        self._sas = sas_token.lstrip("?")

    def __repr__(self) -> str:
        return f"BlobRecordStore(container={self._container!r})"

    def _url(self, date: str) -> str:
        return f"/{self._container}/{date}?{self._sas}"

    async def load(self, date: str) -> PromotionRecord | None:
        try:
            r = await self._http.get(self._url(date), headers={"x-ms-version": BLOB_API_VERSION})
        except httpx.HTTPError as e:
            raise StoreError(f"download blob {date}: {e}") from e
        if r.status_code == 404:
            return None
        if r.is_error:
            raise StoreError(f"download blob {date}: HTTP {r.status_code}")
        return load_record(r.content)

    async def save(self, date: str, record: PromotionRecord) -> None:
        try:
            r = await self._http.put(
                self._url(date),
                content=dump_record(record),
                headers={
                    "x-ms-version": BLOB_API_VERSION,
                    "x-ms-blob-type": "BlockBlob",
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as e:
            raise StoreError(f"upload blob {date}: {e}") from e
        if r.is_error:
            raise StoreError(f"upload blob {date}: HTTP {r.status_code}")
        log.debug("blob.uploaded", blob=date, status_code=r.status_code)


# --- Module Notes -----------------------------------------------------------
# Blob retention/cleanup is a storage-account lifecycle policy, not handled here.
