import asyncio

import pytest

from swapnav.events import LoadChangeEvent
from swapnav.exceptions import (
    AssetLoadStalled,
    NavigationError,
    PartialFetchError,
    PatternDecodeError,
    RouteNotFound,
)
from swapnav.navigation.controller import NavigationController
from swapnav.registry import CallbackRegistry
from swapnav.routing.table import RouteTable
from swapnav.surface.memory import MemoryHistory, MemorySurface, StaticContentFetcher
from swapnav.types import PHASE_ORDER, AssetType, LoadState

PHASES = [p.value for p in PHASE_ORDER]


@pytest.mark.unit
class TestNavigate:
    @pytest.mark.asyncio
    async def test_successful_navigation(self, controller, surface, history, recorder) -> None:
        accepted = await controller.navigate("/users/42")

        assert accepted is True
        assert controller.current_path == "/users/42"
        assert controller.current_route.pattern == "/users/:id"
        assert controller.params == {"id": "42"}
        assert controller.is_navigating is False
        assert controller.phase == LoadState.IDLE
        assert surface.content == '<h1>User</h1><a swapnav-href="/">Home</a>'
        assert history.title == "User"
        assert [(e.path, e.title) for e in history.entries] == [("/users/42", "User")]

    @pytest.mark.asyncio
    async def test_phase_events_in_fixed_order(self, controller, recorder) -> None:
        await controller.navigate("/")

        assert recorder.phases == PHASES
        changes = recorder.load_changes
        assert changes[0] == LoadChangeEvent(previous_loading=False, new_loading=True)
        finished = [e for e in changes if not e.new_loading]
        assert len(finished) == 1
        assert finished[0].cancelled_by_deactivate is False
        assert finished[0].previous_loading is True
        # Started first, finished last
        assert recorder.events[0] is changes[0]
        assert recorder.events[-1] is finished[0]

    @pytest.mark.asyncio
    async def test_state_snapshot_is_read_only(self, controller) -> None:
        await controller.navigate("/users/5")
        snapshot = controller.state
        with pytest.raises(TypeError):
            snapshot.params["id"] = "6"  # type: ignore[index]
        assert snapshot.current_path == "/users/5"

    @pytest.mark.asyncio
    async def test_location_is_cleaned(self, controller) -> None:
        await controller.navigate("https://example.com/users/3?tab=posts#top")
        assert controller.current_path == "/users/3"
        assert controller.params == {"id": "3"}

    @pytest.mark.asyncio
    async def test_semicolon_stays_in_path(self, controller) -> None:
        await controller.navigate("/users/a;b")
        assert controller.current_path == "/users/a;b"
        assert controller.params == {"id": "a;b"}

    @pytest.mark.asyncio
    async def test_params_reset_for_route_without_variables(self, controller) -> None:
        await controller.navigate("/users/1")
        await controller.navigate("/about")
        assert controller.params == {}

    @pytest.mark.asyncio
    async def test_assets_swapped_between_routes(self, controller, surface) -> None:
        await controller.navigate("/")
        assert surface.urls(AssetType.STYLE) == ["/css/base.css", "/css/home.css"]
        assert surface.urls(AssetType.SCRIPT) == ["/js/app.js"]

        surface.attached.clear()
        await controller.navigate("/users/1")

        assert surface.urls(AssetType.STYLE) == ["/css/base.css", "/css/user.css"]
        assert surface.urls(AssetType.SCRIPT) == ["/js/app.js", "/js/user.js"]
        assert surface.attached == [
            (AssetType.STYLE, "/css/user.css"),
            (AssetType.SCRIPT, "/js/user.js"),
        ]
        assert [a.url for a in surface.detached] == ["/css/home.css"]

    @pytest.mark.asyncio
    async def test_same_route_twice_touches_no_assets(self, controller, surface) -> None:
        await controller.navigate("/users/1")
        surface.attached.clear()
        surface.detached.clear()

        await controller.navigate("/users/2")

        assert surface.attached == []
        assert surface.detached == []

    @pytest.mark.asyncio
    async def test_obsolete_assets_detached_after_content_swap(self, table, history, fetcher) -> None:
        order: list[str] = []

        class TracingSurface(MemorySurface):
            async def set_content(self, markup: str) -> None:
                order.append("content")
                await super().set_content(markup)

            async def detach_asset(self, asset) -> None:
                order.append(f"detach:{asset.url}")
                await super().detach_asset(asset)

        surface = TracingSurface()
        controller = NavigationController(table, surface, history, fetcher)
        await controller.navigate("/")
        order.clear()

        await controller.navigate("/about")

        assert order == [
            "content",
            "detach:/css/base.css",
            "detach:/css/home.css",
            "detach:/js/app.js",
        ]

    @pytest.mark.asyncio
    async def test_triggers_rebound_after_content_swap(self, controller, surface) -> None:
        await controller.navigate("/")
        assert surface.bound_triggers == ["/about"]

    @pytest.mark.asyncio
    async def test_push_history_can_be_skipped(self, controller, history) -> None:
        await controller.navigate("/about", push_history=False)
        assert history.entries == []
        assert history.title == "About"


@pytest.mark.unit
class TestDeactivateGuard:
    @pytest.mark.asyncio
    async def test_refusal_cancels(self, controller, registry, surface, recorder) -> None:
        await controller.navigate("/users/1")
        registry.set_deactivate(lambda: False)
        recorder.clear()

        accepted = await controller.navigate("/about")

        assert accepted is False
        assert controller.current_path == "/users/1"
        assert controller.current_route.pattern == "/users/:id"
        assert controller.phase == LoadState.IDLE
        assert recorder.phases == []
        assert recorder.load_changes == [
            LoadChangeEvent(previous_loading=False, new_loading=False, cancelled_by_deactivate=True)
        ]

    @pytest.mark.asyncio
    async def test_async_refusal(self, controller, registry) -> None:
        await controller.navigate("/")

        async def deny() -> bool:
            await asyncio.sleep(0)
            return False

        registry.set_deactivate(deny)
        assert await controller.navigate("/about") is False
        assert controller.current_path == "/"

    @pytest.mark.asyncio
    async def test_approval_proceeds_and_clears_hooks(self, controller, registry) -> None:
        await controller.navigate("/")
        calls: list[str] = []
        registry.set_deactivate(lambda: calls.append("deactivate") or True)
        registry.set_activate(lambda: calls.append("stale activate"))

        assert await controller.navigate("/about") is True

        assert calls == ["deactivate"]
        assert registry.deactivate is None
        assert registry.activate is None

    @pytest.mark.asyncio
    async def test_not_consulted_without_current_route(self, controller, registry) -> None:
        registry.set_deactivate(lambda: False)
        assert await controller.navigate("/") is True


@pytest.mark.unit
class TestActivateHook:
    @pytest.mark.asyncio
    async def test_hook_registered_by_new_content_runs_on_finish(
        self, table, surface, history, registry
    ) -> None:
        calls: list[str] = []

        class ScriptedFetcher(StaticContentFetcher):
            async def fetch_partial(self, name: str) -> str:
                # The loaded page registers its own activate hook
                registry.set_activate(lambda: calls.append(f"activate:{name}"))
                return await super().fetch_partial(name)

        fetcher = ScriptedFetcher({"about.html": "<p>about</p>"})
        controller = NavigationController(table, surface, history, fetcher, registry=registry)

        await controller.navigate("/about")

        assert calls == ["activate:about.html"]

    @pytest.mark.asyncio
    async def test_async_hook_is_scheduled(self, controller, registry, fetcher) -> None:
        done = asyncio.Event()

        async def activate() -> None:
            done.set()

        original = fetcher.fetch_partial

        async def fetch_and_register(name: str) -> str:
            registry.set_activate(activate)
            return await original(name)

        fetcher.fetch_partial = fetch_and_register  # type: ignore[method-assign]
        await controller.navigate("/about")
        await controller.drain()

        assert done.is_set()

    @pytest.mark.asyncio
    async def test_not_run_on_cancel(self, controller, registry) -> None:
        await controller.navigate("/")
        calls: list[str] = []
        registry.set_activate(lambda: calls.append("activate"))
        registry.set_deactivate(lambda: False)

        await controller.navigate("/about")

        assert calls == []


@pytest.mark.unit
class TestPreload:
    @pytest.mark.asyncio
    async def test_registered_tasks_run_with_params(self, controller, registry) -> None:
        calls: list[tuple] = []
        registry.register("loadUser", lambda *args: calls.append(args))

        await controller.navigate("/users/1")

        # "missingTask" is not registered and is skipped
        assert calls == [(1, "full")]

    @pytest.mark.asyncio
    async def test_tasks_run_concurrently_and_are_awaited(self, history, fetcher) -> None:
        table = RouteTable()
        table.register(
            {
                "route": "/",
                "partial": "index.html",
                "title": "Home",
                "preload": ["first", "second"],
            }
        )
        registry = CallbackRegistry()
        both_started = asyncio.Event()
        started: list[str] = []
        finished: list[str] = []

        def make(name: str):
            async def task() -> None:
                started.append(name)
                if len(started) == 2:
                    both_started.set()
                await asyncio.wait_for(both_started.wait(), timeout=1.0)
                finished.append(name)

            return task

        registry.register("first", make("first"))
        registry.register("second", make("second"))
        surface = MemorySurface()
        controller = NavigationController(table, surface, history, fetcher, registry=registry)

        await controller.navigate("/")

        assert sorted(finished) == ["first", "second"]

    @pytest.mark.asyncio
    async def test_failing_task_aborts(self, controller, registry, recorder) -> None:
        def explode(*args: object) -> None:
            raise ValueError("no user")

        registry.register("loadUser", explode)

        with pytest.raises(NavigationError, match="no user") as exc_info:
            await controller.navigate("/users/1")

        assert isinstance(exc_info.value.__cause__, ValueError)
        assert controller.current_path is None
        assert controller.is_navigating is False
        assert recorder.load_changes[-1].error == "ValueError: no user"


@pytest.mark.unit
class TestFailurePolicy:
    @pytest.mark.asyncio
    async def test_not_found_restores_state(self, controller, recorder) -> None:
        await controller.navigate("/users/1")
        recorder.clear()

        with pytest.raises(RouteNotFound):
            await controller.navigate("/missing/page/here")

        assert controller.current_path == "/users/1"
        assert controller.params == {"id": "1"}
        assert controller.is_navigating is False
        assert controller.phase == LoadState.IDLE
        assert recorder.phases == ["FETCHING_ROUTE"]
        last = recorder.load_changes[-1]
        assert last.new_loading is False
        assert last.finished is False
        assert last.error.startswith("RouteNotFound")

    @pytest.mark.asyncio
    async def test_not_found_uses_fallback(self, controller, table, surface) -> None:
        table.set_fallback({"route": "/404", "partial": "404.html", "title": "Not Found"})

        assert await controller.navigate("/missing/page/here") is True

        assert controller.current_path == "/missing/page/here"
        assert controller.current_route.pattern == "/404"
        assert controller.params == {}
        assert surface.content == "<h1>Not found</h1>"

    @pytest.mark.asyncio
    async def test_decode_failure_aborts(self, controller) -> None:
        with pytest.raises(PatternDecodeError):
            await controller.navigate("/users/%E0%A4%A")
        assert controller.current_path is None

    @pytest.mark.asyncio
    async def test_missing_partial_aborts(self, controller, fetcher, table) -> None:
        table.register({"route": "/ghost", "partial": "ghost.html", "title": "Ghost"})

        with pytest.raises(PartialFetchError):
            await controller.navigate("/ghost")

        assert controller.current_route is None
        assert controller.is_navigating is False

    @pytest.mark.asyncio
    async def test_stalled_asset_aborts(self, table, history, fetcher) -> None:
        surface = MemorySurface(auto_load=False)
        controller = NavigationController(table, surface, history, fetcher, asset_load_timeout=0.05)

        with pytest.raises(AssetLoadStalled):
            await controller.navigate("/")

        assert controller.is_navigating is False
        assert controller.current_path is None

    @pytest.mark.asyncio
    async def test_retry_after_stall_waits_for_load_again(self, table, history, fetcher) -> None:
        surface = MemorySurface(auto_load=False)
        controller = NavigationController(table, surface, history, fetcher, asset_load_timeout=0.05)

        with pytest.raises(AssetLoadStalled):
            await controller.navigate("/")
        assert surface.urls(AssetType.STYLE) == []

        with pytest.raises(AssetLoadStalled):
            await controller.navigate("/")
        assert controller.current_path is None

        for url in ("/css/base.css", "/css/home.css", "/js/app.js"):
            surface.signal_load(url)
        assert await controller.navigate("/") is True
        assert surface.urls(AssetType.STYLE) == ["/css/base.css", "/css/home.css"]

    @pytest.mark.asyncio
    async def test_failed_navigation_keeps_previous_hooks(self, controller, registry) -> None:
        await controller.navigate("/")
        leave_calls: list[str] = []

        def deactivate() -> bool:
            leave_calls.append("home")
            return len(leave_calls) == 1

        def activate() -> None:
            pass

        registry.set_deactivate(deactivate)
        registry.set_activate(activate)

        with pytest.raises(RouteNotFound):
            await controller.navigate("/missing/page/here")

        assert registry.activate is activate
        assert registry.deactivate is deactivate
        # The restored guard still protects the page
        assert await controller.navigate("/about") is False
        assert leave_calls == ["home", "home"]
        assert controller.current_path == "/"

    @pytest.mark.asyncio
    async def test_controller_usable_after_failure(self, controller) -> None:
        with pytest.raises(RouteNotFound):
            await controller.navigate("/missing/page/here")
        assert await controller.navigate("/about") is True


@pytest.mark.unit
class TestOverlap:
    @pytest.mark.asyncio
    async def test_second_navigation_rejected_while_running(self, table, history, fetcher) -> None:
        surface = MemorySurface(auto_load=False)
        controller = NavigationController(table, surface, history, fetcher)

        first = asyncio.ensure_future(controller.navigate("/"))
        for _ in range(5):
            await asyncio.sleep(0)
        assert controller.is_navigating is True

        assert await controller.navigate("/about") is False

        for url in ("/css/base.css", "/css/home.css", "/js/app.js"):
            surface.signal_load(url)
            for _ in range(5):
                await asyncio.sleep(0)
        assert await asyncio.wait_for(first, timeout=1.0) is True
        assert controller.current_path == "/"

    @pytest.mark.asyncio
    async def test_rejected_while_deactivate_hook_pending(self, controller, registry) -> None:
        await controller.navigate("/")
        release = asyncio.Event()

        async def slow_deactivate() -> bool:
            await release.wait()
            return True

        registry.set_deactivate(slow_deactivate)
        first = asyncio.ensure_future(controller.navigate("/about"))
        await asyncio.sleep(0)

        assert await controller.navigate("/users/2") is False

        release.set()
        assert await first is True
        assert controller.current_path == "/about"


@pytest.mark.unit
class TestSystemTriggers:
    @pytest.mark.asyncio
    async def test_start_does_not_push_history(self, controller, history) -> None:
        assert await controller.start("http://localhost/about") is True
        assert controller.current_path == "/about"
        assert history.entries == []

    @pytest.mark.asyncio
    async def test_history_pop_navigates_without_push(self, controller, history) -> None:
        await controller.navigate("/")
        await controller.navigate("/about")

        assert await controller.on_history_pop("http://localhost/") is True

        assert controller.current_path == "/"
        assert [e.path for e in history.entries] == ["/", "/about"]

    @pytest.mark.asyncio
    async def test_history_pop_to_current_path_is_ignored(self, controller, recorder) -> None:
        await controller.navigate("/about")
        recorder.clear()

        assert await controller.on_history_pop("/about") is False
        assert recorder.events == []

    @pytest.mark.asyncio
    async def test_link_click_navigates(self, controller, surface) -> None:
        await controller.navigate("/")
        assert await surface.click("/about") is True
        assert controller.current_path == "/about"
