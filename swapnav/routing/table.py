"""Append-only route table."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any

import structlog

from swapnav.exceptions import ConfigError
from swapnav.models.domain import RouteDefinition, RouteTableConfig
from swapnav.routing.compiler import compile_pattern
from swapnav.routing.route import Route
from swapnav.utils.paths import normalize_pattern

logger = structlog.get_logger(__name__)

RouteInput = RouteDefinition | Mapping[str, Any]


def build_route(definition: RouteInput) -> Route:
    """Validate a definition and compile it into a Route."""
    if not isinstance(definition, RouteDefinition):
        definition = RouteDefinition.model_validate(definition)
    pattern = normalize_pattern(definition.route)
    return Route(
        pattern=pattern,
        matcher=compile_pattern(pattern),
        partial_name=definition.partial,
        title=definition.title,
        script_urls=tuple(definition.js),
        style_urls=tuple(definition.css),
        preload_tasks=tuple(definition.preload),
    )


class RouteTable:
    """Routes in registration order.

    Lookup is first-match-wins, so register specific routes before general
    or wildcard ones. Routes cannot be updated or removed.
    """

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._fallback: Route | None = None

    def register(self, definition: RouteInput) -> Route:
        """Compile and append one route."""
        route = build_route(definition)
        self._routes.append(route)
        logger.debug(
            "route_registered",
            pattern=route.pattern,
            partial=route.partial_name,
            variables=[v.name for v in route.variables],
        )
        return route

    def register_all(self, definitions: Iterable[RouteInput]) -> list[Route]:
        """Register each definition in the caller's order."""
        return [self.register(definition) for definition in definitions]

    def all(self) -> tuple[Route, ...]:
        return tuple(self._routes)

    def set_fallback(self, definition: RouteInput) -> Route:
        """Set the route rendered when no registered route matches."""
        self._fallback = build_route(definition)
        logger.debug("fallback_route_set", pattern=self._fallback.pattern)
        return self._fallback

    @property
    def fallback(self) -> Route | None:
        return self._fallback

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[Route]:
        return iter(tuple(self._routes))

    @classmethod
    def from_config(cls, config: RouteTableConfig) -> RouteTable:
        table = cls()
        table.register_all(config.routes)
        if config.fallback is not None:
            table.set_fallback(config.fallback)
        return table

    @classmethod
    def from_yaml(cls, yaml_str: str) -> RouteTable:
        """Build a table from a YAML route document."""
        return cls.from_config(RouteTableConfig.from_yaml(yaml_str))

    @classmethod
    def from_file(cls, path: str | Path) -> RouteTable:
        """Build a table from a YAML file on disk."""
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read route file {path}: {e}") from e
        table = cls.from_yaml(text)
        logger.info("routes_loaded", path=str(path), count=len(table))
        return table
