"""Enums for swapnav."""

from enum import StrEnum


class AssetType(StrEnum):
    SCRIPT = "script"
    STYLE = "style"


class LoadState(StrEnum):
    """Navigation lifecycle states.

    The six phase states are published as phase events while a
    navigation runs; ``IDLE`` and ``DENIED`` are never published as phases.
    """

    IDLE = "IDLE"
    DENIED = "DENIED"
    FETCHING_ROUTE = "FETCHING_ROUTE"
    RELOADING_LINKS = "RELOADING_LINKS"
    OVERRIDING_HREF = "OVERRIDING_HREF"
    RELOADING_SCRIPTS = "RELOADING_SCRIPTS"
    PRELOADING_ROUTE = "PRELOADING_ROUTE"
    LOADING_HTML = "LOADING_HTML"


# Phase events in the order a navigation emits them
PHASE_ORDER: tuple[LoadState, ...] = (
    LoadState.FETCHING_ROUTE,
    LoadState.RELOADING_LINKS,
    LoadState.OVERRIDING_HREF,
    LoadState.RELOADING_SCRIPTS,
    LoadState.PRELOADING_ROUTE,
    LoadState.LOADING_HTML,
)
