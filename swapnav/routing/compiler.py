"""Route pattern compiler.

Turns a declared pattern such as ``/users/:id?`` into an anchored regex and
the ordered list of variables bound to its capture groups.

Pattern syntax:

- ``*`` matches one or more characters of anything, slashes included.
- A purely alphanumeric segment (``/users``) matches itself and is captured,
  so capture indexes line up with segment positions.
- ``:name`` captures one non-empty segment; ``:name?`` makes the whole
  segment, leading slash included, optional.
- A trailing slash is always tolerated unless the pattern already ends in one.
"""

from __future__ import annotations

import re

from swapnav.routing.route import CompiledPattern, RouteVariable
from swapnav.utils.paths import normalize_pattern

_ALNUM_SEGMENT = re.compile(r"[0-9A-Za-z]+")


def _literal(segment: str) -> str:
    return "".join(".+" if ch == "*" else re.escape(ch) for ch in segment)


def compile_pattern(pattern: str) -> CompiledPattern:
    """Compile a route pattern. Pure, and never fails for any string."""
    pattern = normalize_pattern(pattern)
    parts: list[str] = [r"\A"]
    variables: list[RouteVariable] = []
    group = 0

    for segment in pattern.split("/")[1:]:
        if segment.startswith(":"):
            optional = segment.endswith("?") and len(segment) > 1
            name = segment[1:-1] if optional else segment[1:]
            group += 1
            variables.append(RouteVariable(capture_index=group, name=name, optional=optional))
            parts.append(r"(?:/([^/]+))?" if optional else r"/([^/]+)")
        elif _ALNUM_SEGMENT.fullmatch(segment):
            group += 1
            parts.append(f"/({segment})")
        else:
            parts.append("/" + _literal(segment))

    if not pattern.endswith("/"):
        parts.append("/?")
    parts.append(r"\Z")

    return CompiledPattern(regex=re.compile("".join(parts)), variables=tuple(variables))
