"""Route, compiled pattern and variable frozen dataclasses."""

from __future__ import annotations

import re
from dataclasses import dataclass

from swapnav.models.domain import PreloadTask


@dataclass(frozen=True, slots=True)
class RouteVariable:
    """A named parameter declared in a route pattern.

    ``/users/:id``   -> RouteVariable(capture_index=2, name="id", optional=False)
    ``/users/:id?``  -> RouteVariable(capture_index=2, name="id", optional=True)
    """

    capture_index: int
    name: str
    optional: bool = False


@dataclass(frozen=True, slots=True)
class CompiledPattern:
    """Anchored regex plus the variables bound to its capture groups."""

    regex: re.Pattern[str]
    variables: tuple[RouteVariable, ...]

    def match(self, path: str) -> re.Match[str] | None:
        return self.regex.match(path)


@dataclass(frozen=True, slots=True)
class Route:
    """A compiled navigation target. Never mutated after registration."""

    pattern: str
    matcher: CompiledPattern
    partial_name: str
    title: str
    script_urls: tuple[str, ...] = ()
    style_urls: tuple[str, ...] = ()
    preload_tasks: tuple[PreloadTask, ...] = ()

    @property
    def variables(self) -> tuple[RouteVariable, ...]:
        return self.matcher.variables
