"""Abstract collaborators the navigation core drives."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from swapnav.models.domain import InjectedAsset
from swapnav.types import AssetType

NavigateCallback = Callable[[str], Awaitable[Any]]


class RenderingSurface(ABC):
    """Where partial markup is painted and managed assets live."""

    @abstractmethod
    async def set_content(self, markup: str) -> None:
        """Replace the content root's markup."""

    @abstractmethod
    async def get_injected_assets(self, asset_type: AssetType) -> list[InjectedAsset]:
        """Return the managed assets of a type currently attached, in document order."""

    @abstractmethod
    async def attach_asset(self, asset_type: AssetType, url: str) -> None:
        """Attach a new managed asset and return once it signals load."""

    @abstractmethod
    async def detach_asset(self, asset: InjectedAsset) -> None:
        """Remove a managed asset from the surface."""

    @abstractmethod
    async def rebind_navigation_triggers(self) -> None:
        """Make every internal-link element call the bound navigator."""

    @abstractmethod
    def bind_navigator(self, navigate: NavigateCallback) -> None:
        """Set the callback internal links invoke with their target path."""


class HistoryTitle(ABC):
    """Document title and session history."""

    @abstractmethod
    async def set_title(self, title: str) -> None:
        """Set the document title."""

    @abstractmethod
    async def push_path(self, path: str, title: str) -> None:
        """Push a new entry onto the session history."""


class ContentFetcher(ABC):
    """Source of partial markup."""

    @abstractmethod
    async def fetch_partial(self, name: str) -> str:
        """Return the markup of the named partial. Raises PartialFetchError."""
