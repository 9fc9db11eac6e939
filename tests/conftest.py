"""Shared test fixtures."""

from __future__ import annotations

import pytest

from swapnav.events import EventBus, LoadChangeEvent, PhaseEvent
from swapnav.navigation.controller import NavigationController
from swapnav.registry import CallbackRegistry
from swapnav.routing.table import RouteTable
from swapnav.surface.memory import MemoryHistory, MemorySurface, StaticContentFetcher

ROUTES = [
    {
        "route": "/",
        "partial": "index.html",
        "title": "Home",
        "css": ["/css/base.css", "/css/home.css"],
        "js": ["/js/app.js"],
    },
    {
        "route": "/users/:id",
        "partial": "user.html",
        "title": "User",
        "css": ["/css/base.css", "/css/user.css"],
        "js": ["/js/app.js", "/js/user.js"],
        "preload": [{"name": "loadUser", "params": [1, "full"]}, "missingTask"],
    },
    {"route": "about", "partial": "about.html", "title": "About"},
]

PARTIALS = {
    "index.html": '<h1>Home</h1><a swapnav-href="/about">About</a>',
    "user.html": '<h1>User</h1><a swapnav-href="/">Home</a>',
    "about.html": "<h1>About</h1>",
    "404.html": "<h1>Not found</h1>",
}


class EventRecorder:
    """Collects every event published on a bus, in order."""

    def __init__(self, bus: EventBus) -> None:
        self.events: list[LoadChangeEvent | PhaseEvent] = []
        bus.subscribe(LoadChangeEvent, self.events.append)
        bus.subscribe(PhaseEvent, self.events.append)

    @property
    def phases(self) -> list[str]:
        return [e.phase.value for e in self.events if isinstance(e, PhaseEvent)]

    @property
    def load_changes(self) -> list[LoadChangeEvent]:
        return [e for e in self.events if isinstance(e, LoadChangeEvent)]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture()
def table() -> RouteTable:
    t = RouteTable()
    t.register_all(ROUTES)
    return t


@pytest.fixture()
def surface() -> MemorySurface:
    return MemorySurface()


@pytest.fixture()
def history() -> MemoryHistory:
    return MemoryHistory()


@pytest.fixture()
def fetcher() -> StaticContentFetcher:
    return StaticContentFetcher(PARTIALS)


@pytest.fixture()
def registry() -> CallbackRegistry:
    return CallbackRegistry()


@pytest.fixture()
def bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def recorder(bus: EventBus) -> EventRecorder:
    return EventRecorder(bus)


@pytest.fixture()
def controller(
    table: RouteTable,
    surface: MemorySurface,
    history: MemoryHistory,
    fetcher: StaticContentFetcher,
    registry: CallbackRegistry,
    bus: EventBus,
) -> NavigationController:
    return NavigationController(
        table=table,
        surface=surface,
        history=history,
        fetcher=fetcher,
        registry=registry,
        bus=bus,
        asset_load_timeout=1.0,
    )
