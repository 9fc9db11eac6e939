"""First-match route resolution with tagged outcomes.

``RouteMatcher.resolve`` never raises for an unknown path or a malformed
parameter. It returns one of three outcomes so callers can tell them apart
without inspecting error messages::

    match matcher.resolve(path):
        case RouteMatch(route=route, params=params):
            ...
        case RouteMiss():
            ...
        case DecodeFailure(error=error):
            ...

``outcome.unwrap()`` turns the two failure outcomes back into
``RouteNotFound`` / ``PatternDecodeError``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from urllib.parse import unquote

import structlog

from swapnav.exceptions import PatternDecodeError, RouteNotFound
from swapnav.routing.route import Route
from swapnav.routing.table import RouteTable

logger = structlog.get_logger(__name__)

# A % not followed by two hex digits
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def decode_param(name: str, raw: str) -> str:
    """Strip slashes and percent-decode a captured value strictly."""
    text = raw.replace("/", "")
    if _BAD_ESCAPE.search(text):
        raise PatternDecodeError(name, raw)
    try:
        return unquote(text, encoding="utf-8", errors="strict")
    except UnicodeDecodeError as e:
        raise PatternDecodeError(name, raw) from e


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """A route matched and all present parameters decoded."""

    route: Route
    params: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> RouteMatch:
        return self


@dataclass(frozen=True, slots=True)
class RouteMiss:
    """No registered route matched the path."""

    path: str

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> RouteMatch:
        raise RouteNotFound(self.path)


@dataclass(frozen=True, slots=True)
class DecodeFailure:
    """A route matched but one of its parameters is not valid percent-encoding."""

    path: str
    route: Route
    error: PatternDecodeError

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> RouteMatch:
        raise self.error


Resolution = RouteMatch | RouteMiss | DecodeFailure


class RouteMatcher:
    """Resolves paths against a RouteTable in registration order."""

    def __init__(self, table: RouteTable) -> None:
        self._table = table

    @property
    def table(self) -> RouteTable:
        return self._table

    def resolve(self, path: str) -> Resolution:
        for route in self._table.all():
            found = route.matcher.match(path)
            if found is None:
                continue

            params: dict[str, str] = {}
            for variable in route.variables:
                raw = found.group(variable.capture_index)
                if not raw:
                    continue
                try:
                    params[variable.name] = decode_param(variable.name, raw)
                except PatternDecodeError as e:
                    logger.warning(
                        "route_param_decode_failed",
                        path=path,
                        pattern=route.pattern,
                        param=variable.name,
                    )
                    return DecodeFailure(path=path, route=route, error=e)

            logger.debug("route_matched", path=path, pattern=route.pattern, params=params)
            return RouteMatch(route=route, params=params)

        logger.debug("route_not_found", path=path)
        return RouteMiss(path=path)
