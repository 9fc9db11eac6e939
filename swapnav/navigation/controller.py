"""Navigation lifecycle controller.

Drives one navigation through a fixed phase sequence::

    IDLE -> FETCHING_ROUTE -> RELOADING_LINKS -> OVERRIDING_HREF
         -> RELOADING_SCRIPTS -> PRELOADING_ROUTE -> LOADING_HTML -> IDLE

with ``IDLE -> DENIED -> IDLE`` when the current page's deactivate hook
refuses to be left. The deactivate hook is the only cancellation point;
once the navigating flag is set the navigation either completes or aborts
with an error and restores the previously committed state.
"""

from __future__ import annotations

import asyncio
import inspect
import uuid
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bind_contextvars, unbind_contextvars

from swapnav.assets.reconciler import AssetReconciler
from swapnav.constants import DEFAULT_ASSET_LOAD_TIMEOUT_S
from swapnav.events import EventBus, LoadChangeEvent, PhaseEvent
from swapnav.exceptions import NavigationError, SwapNavError
from swapnav.navigation.state import NavigationSnapshot, NavigationState
from swapnav.registry import ActivateHook, Callback, CallbackRegistry, DeactivateHook
from swapnav.routing.matcher import RouteMatcher, RouteMiss
from swapnav.routing.table import RouteTable
from swapnav.types import AssetType, LoadState
from swapnav.utils.paths import clean_path
from swapnav.utils.timing import PhaseClock

if TYPE_CHECKING:
    from swapnav.routing.route import Route
    from swapnav.surface.base import ContentFetcher, HistoryTitle, RenderingSurface

logger = structlog.get_logger(__name__)


class NavigationController:
    """Owns the navigation state and sequences every page transition."""

    def __init__(
        self,
        table: RouteTable,
        surface: RenderingSurface,
        history: HistoryTitle,
        fetcher: ContentFetcher,
        registry: CallbackRegistry | None = None,
        bus: EventBus | None = None,
        asset_load_timeout: float | None = DEFAULT_ASSET_LOAD_TIMEOUT_S,
    ) -> None:
        self._table = table
        self._matcher = RouteMatcher(table)
        self._surface = surface
        self._history = history
        self._fetcher = fetcher
        self._registry = registry or CallbackRegistry()
        self._bus = bus or EventBus()
        self._reconciler = AssetReconciler(surface, load_timeout=asset_load_timeout)
        self._state = NavigationState()
        # Set from entry until return, covering the deactivate hook await
        self._busy = False
        self._background: set[asyncio.Task[Any]] = set()

        self._surface.bind_navigator(self.navigate)
        self._bus.subscribe(LoadChangeEvent, self._on_load_change)

    @classmethod
    def from_settings(
        cls,
        surface: RenderingSurface,
        history: HistoryTitle,
        fetcher: ContentFetcher | None = None,
        table: RouteTable | None = None,
        registry: CallbackRegistry | None = None,
        bus: EventBus | None = None,
    ) -> NavigationController:
        """Build a controller using ``SWAPNAV_*`` settings for the defaults."""
        from swapnav.config.settings import get_settings
        from swapnav.surface.http import create_content_fetcher

        settings = get_settings()
        if table is None:
            if settings.routes_file:
                table = RouteTable.from_file(settings.routes_file)
            else:
                table = RouteTable()
        return cls(
            table=table,
            surface=surface,
            history=history,
            fetcher=fetcher or create_content_fetcher(),
            registry=registry,
            bus=bus,
            asset_load_timeout=settings.asset_load_timeout,
        )

    # -- read-only accessors -------------------------------------------------

    @property
    def state(self) -> NavigationSnapshot:
        return self._state.snapshot()

    @property
    def is_navigating(self) -> bool:
        return self._state.is_navigating

    @property
    def current_path(self) -> str | None:
        return self._state.current_path

    @property
    def current_route(self) -> Route | None:
        return self._state.current_route

    @property
    def params(self) -> Mapping[str, str]:
        return self._state.snapshot().params

    @property
    def phase(self) -> LoadState:
        return self._state.phase

    @property
    def table(self) -> RouteTable:
        return self._table

    @property
    def registry(self) -> CallbackRegistry:
        return self._registry

    @property
    def bus(self) -> EventBus:
        return self._bus

    # -- system triggers -----------------------------------------------------

    async def start(self, location: str) -> bool:
        """Initial page load. The browser already holds a history entry for it."""
        return await self.navigate(location, push_history=False)

    async def on_history_pop(self, location: str) -> bool:
        """Back/forward navigation. Ignored when the path is already current."""
        path = clean_path(location)
        if path == self._state.current_path:
            return False
        return await self.navigate(path, push_history=False)

    # -- navigation ----------------------------------------------------------

    async def navigate(self, path: str, *, push_history: bool = True) -> bool:
        """Navigate to ``path``.

        Returns False when the current page's deactivate hook refuses, or
        when another navigation is still running. Raises a SwapNavError
        subclass when a started navigation fails.
        """
        path = clean_path(path)
        if self._busy:
            logger.warning(
                "navigation_rejected_in_flight",
                path=path,
                current_path=self._state.current_path,
            )
            return False

        self._busy = True
        try:
            if not await self._deactivate_allowed():
                self._state.phase = LoadState.DENIED
                logger.info("navigation_denied", path=path, current_path=self._state.current_path)
                self._set_loading(False, cancelled=True)
                self._state.phase = LoadState.IDLE
                return False

            await self._run(path, push_history)
            return True
        finally:
            self._busy = False

    async def _deactivate_allowed(self) -> bool:
        hook = self._registry.deactivate
        if self._state.current_route is None or hook is None:
            return True
        result = hook()
        if inspect.isawaitable(result):
            result = await result
        return bool(result)

    async def _run(self, path: str, push_history: bool) -> None:
        navigation_id = uuid.uuid4().hex[:12]
        bind_contextvars(navigation_id=navigation_id)
        clock = PhaseClock()
        previous = self._state.commit_point()
        hooks = (self._registry.activate, self._registry.deactivate)

        self._set_loading(True)
        logger.info("navigation_started", path=path, previous_path=previous.current_path)
        try:
            self._enter(LoadState.FETCHING_ROUTE, clock)
            route, params = self._resolve(path)

            self._state.current_path = path
            self._state.current_route = route
            self._state.params = params
            self._registry.clear_hooks()

            await self._history.set_title(route.title)
            if push_history:
                await self._history.push_path(path, route.title)

            self._enter(LoadState.RELOADING_LINKS, clock)
            styles = await self._reconciler.reconcile(AssetType.STYLE, route.style_urls)

            self._enter(LoadState.OVERRIDING_HREF, clock)
            await self._surface.rebind_navigation_triggers()

            self._enter(LoadState.RELOADING_SCRIPTS, clock)
            scripts = await self._reconciler.reconcile(AssetType.SCRIPT, route.script_urls)

            self._enter(LoadState.PRELOADING_ROUTE, clock)
            await self._run_preload(route)

            self._enter(LoadState.LOADING_HTML, clock)
            markup = await self._fetcher.fetch_partial(route.partial_name)
            await self._surface.set_content(markup)
            # Links inside the new markup navigate in-app too
            await self._surface.rebind_navigation_triggers()

            for asset in [*styles.obsolete, *scripts.obsolete]:
                await self._surface.detach_asset(asset)
        except Exception as e:
            self._abort(path, previous, hooks, clock, e)
            if isinstance(e, SwapNavError):
                raise
            raise NavigationError(f"Navigation to {path!r} failed: {e}") from e
        except asyncio.CancelledError as e:
            self._abort(path, previous, hooks, clock, e)
            raise
        else:
            clock.stop()
            self._state.phase = LoadState.IDLE
            logger.info(
                "navigation_finished",
                path=path,
                pattern=route.pattern,
                phases=clock.laps,
                elapsed_seconds=clock.total,
            )
            self._set_loading(False)
        finally:
            unbind_contextvars("navigation_id")

    def _resolve(self, path: str) -> tuple[Route, dict[str, str]]:
        outcome = self._matcher.resolve(path)
        if isinstance(outcome, RouteMiss) and self._table.fallback is not None:
            logger.info("route_fallback", path=path, fallback=self._table.fallback.pattern)
            return self._table.fallback, {}
        found = outcome.unwrap()
        return found.route, found.params

    async def _run_preload(self, route: Route) -> None:
        calls = []
        for task in route.preload_tasks:
            callback = self._registry.get(task.name)
            if callback is None:
                logger.debug("preload_skipped", name=task.name)
                continue
            calls.append(self._invoke(callback, task.params))
        if calls:
            await asyncio.gather(*calls)

    @staticmethod
    async def _invoke(callback: Callback, params: tuple[Any, ...]) -> None:
        result = callback(*params)
        if inspect.isawaitable(result):
            await result

    def _abort(
        self,
        path: str,
        previous: NavigationState,
        hooks: tuple[ActivateHook | None, DeactivateHook | None],
        clock: PhaseClock,
        error: BaseException,
    ) -> None:
        failed_phase = self._state.phase
        clock.stop()
        self._state.current_path = previous.current_path
        self._state.current_route = previous.current_route
        self._state.params = previous.params
        # The previous page keeps its hooks
        self._registry.set_activate(hooks[0])
        self._registry.set_deactivate(hooks[1])
        self._state.phase = LoadState.IDLE
        logger.error(
            "navigation_failed",
            path=path,
            phase=failed_phase.value,
            error=str(error) or type(error).__name__,
            error_type=type(error).__name__,
        )
        self._set_loading(False, error=f"{type(error).__name__}: {error}")

    def _enter(self, phase: LoadState, clock: PhaseClock) -> None:
        self._state.phase = phase
        clock.enter(phase.value)
        logger.debug("navigation_phase", phase=phase.value)
        self._bus.publish(PhaseEvent(phase=phase))

    def _set_loading(self, value: bool, cancelled: bool = False, error: str | None = None) -> None:
        previous = self._state.is_navigating
        self._state.is_navigating = value
        self._bus.publish(
            LoadChangeEvent(
                previous_loading=previous,
                new_loading=value,
                cancelled_by_deactivate=cancelled,
                error=error,
            )
        )

    # -- activation ----------------------------------------------------------

    def _on_load_change(self, event: LoadChangeEvent) -> None:
        if not event.finished:
            return
        hook = self._registry.activate
        if hook is None:
            return
        result = hook()
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._background.add(task)
            task.add_done_callback(self._activation_done)

    def _activation_done(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("activate_hook_failed", error=str(task.exception()))

    async def drain(self) -> None:
        """Wait for scheduled async activate hooks to finish."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
