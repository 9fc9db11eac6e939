"""Idempotent script/style asset reconciliation."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from swapnav.exceptions import AssetLoadStalled
from swapnav.models.domain import InjectedAsset
from swapnav.surface.base import RenderingSurface
from swapnav.types import AssetType

logger = structlog.get_logger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation pass.

    ``obsolete`` assets are still attached; the caller decides when to
    detach them.
    """

    asset_type: AssetType
    kept: list[InjectedAsset] = field(default_factory=list)
    inserted: list[str] = field(default_factory=list)
    obsolete: list[InjectedAsset] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.inserted or self.obsolete)


class AssetReconciler:
    """Moves the managed asset set of a surface to a required URL list."""

    def __init__(self, surface: RenderingSurface, load_timeout: float | None = None) -> None:
        self._surface = surface
        self._load_timeout = load_timeout

    async def reconcile(
        self, asset_type: AssetType, required_urls: Sequence[str]
    ) -> ReconcileResult:
        """Attach missing assets and wait for all of them to load.

        Already attached URLs count as loaded. New assets load concurrently.
        Raises AssetLoadStalled if they have not all loaded within the timeout,
        after detaching the ones still pending so a later pass inserts them again.
        """
        required = list(dict.fromkeys(required_urls))
        current = await self._surface.get_injected_assets(asset_type)

        result = ReconcileResult(asset_type=asset_type)
        present: set[str] = set()
        for asset in current:
            if asset.url in required:
                result.kept.append(asset)
                present.add(asset.url)
            else:
                result.obsolete.append(asset)

        result.inserted = [url for url in required if url not in present]
        if result.inserted:
            await self._load_all(asset_type, result.inserted)

        logger.debug(
            "assets_reconciled",
            asset_type=asset_type.value,
            kept=len(result.kept),
            inserted=result.inserted,
            obsolete=[a.url for a in result.obsolete],
        )
        return result

    async def _load_all(self, asset_type: AssetType, urls: list[str]) -> None:
        tasks = {
            url: asyncio.ensure_future(self._surface.attach_asset(asset_type, url)) for url in urls
        }
        unsettled: list[str] = []
        try:
            await asyncio.wait(tasks.values(), timeout=self._load_timeout)
        finally:
            # Also reached when the caller is cancelled mid-wait
            unsettled = [url for url, task in tasks.items() if not task.done()]
            for url in unsettled:
                tasks[url].cancel()
            await asyncio.gather(*tasks.values(), return_exceptions=True)
            if unsettled:
                await self._discard(asset_type, unsettled)

        if unsettled:
            logger.error(
                "asset_load_stalled",
                asset_type=asset_type.value,
                urls=unsettled,
                timeout=self._load_timeout,
            )
            raise AssetLoadStalled(asset_type.value, unsettled, self._load_timeout or 0.0)

        failures = [
            (url, task.exception()) for url, task in tasks.items() if task.exception() is not None
        ]
        if failures:
            logger.error(
                "asset_attach_failed",
                asset_type=asset_type.value,
                urls=[url for url, _ in failures],
            )
            raise failures[0][1]

    async def _discard(self, asset_type: AssetType, urls: list[str]) -> None:
        """Detach elements whose load never completed."""
        for asset in await self._surface.get_injected_assets(asset_type):
            if asset.url in urls:
                await self._surface.detach_asset(asset)
