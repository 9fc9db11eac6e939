"""Exception hierarchy for swapnav."""

from __future__ import annotations


class SwapNavError(Exception):
    """Base exception for all swapnav errors."""


class ConfigError(SwapNavError):
    """Raised when configuration or a route definition file is invalid."""


class PatternDecodeError(SwapNavError):
    """Raised when a captured route parameter is not valid percent-encoding."""

    def __init__(self, name: str, raw: str) -> None:
        super().__init__(f"Cannot decode route parameter {name!r} from {raw!r}")
        self.name = name
        self.raw = raw


class RouteNotFound(SwapNavError):  # noqa: N818
    """Raised when no registered route matches a path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"No route matches {path!r}")
        self.path = path


class AssetLoadStalled(SwapNavError):  # noqa: N818
    """Raised when attached assets do not signal load within the timeout."""

    def __init__(self, asset_type: str, urls: list[str], timeout: float) -> None:
        joined = ", ".join(urls)
        super().__init__(f"{asset_type} assets did not load within {timeout}s: {joined}")
        self.asset_type = asset_type
        self.urls = urls
        self.timeout = timeout


class PartialFetchError(SwapNavError):
    """Raised when a route's partial markup cannot be fetched."""


class NavigationError(SwapNavError):
    """Raised when a navigation step fails for a reason not covered above."""
