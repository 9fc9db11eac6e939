"""Navigation state owned by a single controller."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING

from swapnav.types import LoadState

if TYPE_CHECKING:
    from collections.abc import Mapping

    from swapnav.routing.route import Route


@dataclass
class NavigationState:
    """Mutable state. Only NavigationController writes to it."""

    is_navigating: bool = False
    current_path: str | None = None
    current_route: Route | None = None
    params: dict[str, str] = field(default_factory=dict)
    phase: LoadState = LoadState.IDLE

    def snapshot(self) -> NavigationSnapshot:
        return NavigationSnapshot(
            is_navigating=self.is_navigating,
            current_path=self.current_path,
            current_route=self.current_route,
            params=MappingProxyType(dict(self.params)),
            phase=self.phase,
        )

    def commit_point(self) -> NavigationState:
        """Copy of the committed fields, used to restore after a failure."""
        return replace(self, params=dict(self.params))


@dataclass(frozen=True)
class NavigationSnapshot:
    """Read-only view handed to code outside the controller."""

    is_navigating: bool
    current_path: str | None
    current_route: Route | None
    params: Mapping[str, str]
    phase: LoadState
