"""In-memory collaborators for headless hosts and tests."""

from __future__ import annotations

import asyncio
import itertools
import re
from dataclasses import dataclass

import structlog

from swapnav.constants import NAV_TARGET_ATTR
from swapnav.exceptions import PartialFetchError
from swapnav.models.domain import InjectedAsset
from swapnav.surface.base import ContentFetcher, HistoryTitle, NavigateCallback, RenderingSurface
from swapnav.types import AssetType

logger = structlog.get_logger(__name__)

_TRIGGER_RE = re.compile(rf'{re.escape(NAV_TARGET_ATTR)}\s*=\s*"([^"]*)"')


class MemorySurface(RenderingSurface):
    """Keeps markup, assets and bound triggers in plain Python structures.

    With ``auto_load=False`` every attached asset stays pending until
    ``signal_load(url)`` is called, which lets callers observe the window
    between attachment and load.
    """

    def __init__(self, auto_load: bool = True) -> None:
        self.content: str = ""
        self.assets: list[InjectedAsset] = []
        self.attached: list[tuple[AssetType, str]] = []
        self.detached: list[InjectedAsset] = []
        self.bound_triggers: list[str] = []
        self.rebind_count = 0
        self._auto_load = auto_load
        self._pending: dict[str, asyncio.Event] = {}
        self._ids = itertools.count(1)
        self._navigate: NavigateCallback | None = None

    def add_static_asset(self, asset_type: AssetType, url: str, managed: bool = False) -> None:
        """Place an asset as if it had been authored into the page."""
        self.assets.append(
            InjectedAsset(
                asset_type=asset_type, url=url, managed=managed, handle=str(next(self._ids))
            )
        )

    async def set_content(self, markup: str) -> None:
        self.content = markup
        self.bound_triggers = []

    async def get_injected_assets(self, asset_type: AssetType) -> list[InjectedAsset]:
        return [a for a in self.assets if a.managed and a.asset_type == asset_type]

    async def attach_asset(self, asset_type: AssetType, url: str) -> None:
        asset = InjectedAsset(asset_type=asset_type, url=url, handle=str(next(self._ids)))
        self.assets.append(asset)
        self.attached.append((asset_type, url))
        if self._auto_load:
            return
        loaded = self._pending.setdefault(url, asyncio.Event())
        try:
            await loaded.wait()
        finally:
            self._pending.pop(url, None)

    def signal_load(self, url: str) -> None:
        """Fire the load signal of a pending asset."""
        self._pending.setdefault(url, asyncio.Event()).set()

    @property
    def pending_urls(self) -> list[str]:
        return [url for url, event in self._pending.items() if not event.is_set()]

    async def detach_asset(self, asset: InjectedAsset) -> None:
        self.assets = [a for a in self.assets if a.handle != asset.handle]
        self.detached.append(asset)

    async def rebind_navigation_triggers(self) -> None:
        self.bound_triggers = _TRIGGER_RE.findall(self.content)
        self.rebind_count += 1

    def bind_navigator(self, navigate: NavigateCallback) -> None:
        self._navigate = navigate

    async def click(self, target: str) -> object:
        """Activate a bound internal link the way a user click would."""
        if target not in self.bound_triggers:
            raise LookupError(f"No bound navigation trigger for {target!r}")
        if self._navigate is None:
            raise RuntimeError("No navigator bound. Call bind_navigator() first.")
        return await self._navigate(target)

    def urls(self, asset_type: AssetType) -> list[str]:
        return [a.url for a in self.assets if a.managed and a.asset_type == asset_type]


@dataclass
class HistoryEntry:
    path: str
    title: str


class MemoryHistory(HistoryTitle):
    def __init__(self) -> None:
        self.title: str = ""
        self.entries: list[HistoryEntry] = []

    async def set_title(self, title: str) -> None:
        self.title = title

    async def push_path(self, path: str, title: str) -> None:
        self.entries.append(HistoryEntry(path=path, title=title))


class StaticContentFetcher(ContentFetcher):
    """Serves partials from a name -> markup mapping."""

    def __init__(self, partials: dict[str, str] | None = None) -> None:
        self._partials = dict(partials or {})
        self.requested: list[str] = []

    def add(self, name: str, markup: str) -> None:
        self._partials[name] = markup

    async def fetch_partial(self, name: str) -> str:
        self.requested.append(name)
        try:
            return self._partials[name]
        except KeyError:
            logger.warning("partial_missing", partial=name)
            raise PartialFetchError(f"Unknown partial {name!r}") from None
