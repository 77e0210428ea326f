"""
cicd_monitor.services.wiring

Composition root for the engine outside of tests.

Responsibilities:
- Validate startup configuration and credentials (fatal errors happen here, not mid-loop).
- Own the httpx clients used by the gateways and the blob store.
- Build the `PromotionEngine` from Settings.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager

import httpx

from cicd_monitor.clients.azure_devops import BUILD_BASE_URL, RELEASE_BASE_URL
from cicd_monitor.clients.builds import AzureBuildClient
from cicd_monitor.clients.pat import EnvPatProvider, PatProvider
from cicd_monitor.clients.releases import AzureReleaseClient
from cicd_monitor.monitor.config import PromotionConfig
from cicd_monitor.monitor.engine import PromotionEngine
from cicd_monitor.observability.logging import get_logger
from cicd_monitor.settings import Settings
from cicd_monitor.store.base import RecordStore
from cicd_monitor.store.blob import BLOB_BASE_URL, BlobRecordStore
from cicd_monitor.store.file import FileRecordStore

log = get_logger(__name__)


@asynccontextmanager
async def open_engine(
    settings: Settings,
    *,
    pat_provider: PatProvider | None = None,
) -> AsyncIterator[PromotionEngine]:
    settings.validate_for_run()
    config = PromotionConfig.from_settings(settings)
    pat = pat_provider or EnvPatProvider(settings.pat_env_var)
    # Raises ConfigurationError before any tick when the credential is missing.
    pat.get_pat()

    timeout = httpx.Timeout(settings.http_timeout_seconds)
    fmt = {"organization": settings.organization, "project": settings.project}

    async with AsyncExitStack() as stack:
        build_http = await stack.enter_async_context(
            httpx.AsyncClient(base_url=BUILD_BASE_URL.format(**fmt), timeout=timeout)
        )
        release_http = await stack.enter_async_context(
            httpx.AsyncClient(base_url=RELEASE_BASE_URL.format(**fmt), timeout=timeout)
        )
        store = await _open_store(settings, stack, timeout)

        log.info(
            "engine.ready",
            organization=settings.organization,
            project=settings.project,
            store=repr(store),
            release_targets=len(config.release_targets),
        )
        yield PromotionEngine(
            config=config,
            store=store,
            builds=AzureBuildClient(http=build_http, pat_provider=pat),
            releases=AzureReleaseClient(http=release_http, pat_provider=pat),
        )


async def _open_store(
    settings: Settings, stack: AsyncExitStack, timeout: httpx.Timeout
) -> RecordStore:
    if settings.store_backend == "file":
        return FileRecordStore(settings.local_store_dir)
    blob_http = await stack.enter_async_context(
        httpx.AsyncClient(
            base_url=BLOB_BASE_URL.format(account=settings.storage_account), timeout=timeout
        )
    )
    return BlobRecordStore(
        http=blob_http,
        container=settings.storage_container,
        sas_token=settings.storage_sas_token,
    )


# --- Module Notes -----------------------------------------------------------
# Tests construct `PromotionEngine` directly with in-process fakes instead of using this.
