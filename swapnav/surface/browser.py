"""Playwright-backed collaborators driving a real browser page."""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING, Any

import structlog

from swapnav.constants import (
    CONTENT_ROOT_SELECTOR,
    NAV_TARGET_ATTR,
    NAVIGATE_BINDING,
    SCRIPT_MARKER_ATTR,
    STYLE_MARKER_ATTR,
)
from swapnav.exceptions import NavigationError
from swapnav.models.domain import InjectedAsset
from swapnav.surface.base import HistoryTitle, NavigateCallback, RenderingSurface
from swapnav.types import AssetType

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from playwright.async_api import Page

logger = structlog.get_logger(__name__)

POPSTATE_BINDING = "__swapnav_popstate"

# Managed assets of one type; the marker value is the element handle
LIST_ASSETS_JS = """
([attr, srcAttr]) => [...document.querySelectorAll(`[${attr}]`)].map(el => ({
    url: el.getAttribute(srcAttr),
    handle: el.getAttribute(attr),
}))
"""

# Resolves once the element fires load (true) or error (false)
ATTACH_ASSET_JS = """
([tag, attr, handle, url]) => new Promise((resolve) => {
    const el = document.createElement(tag);
    el.setAttribute(attr, handle);
    if (tag === 'script') {
        el.src = url;
    } else {
        el.rel = 'stylesheet';
        el.href = url;
    }
    el.onload = () => resolve(true);
    el.onerror = () => resolve(false);
    (tag === 'script' ? document.body : document.head).appendChild(el);
})
"""

DETACH_ASSET_JS = """
([attr, handle]) => {
    const el = document.querySelector(`[${attr}="${handle}"]`);
    if (el) el.remove();
    return !!el;
}
"""

SET_CONTENT_JS = """
([selector, markup]) => {
    const root = document.querySelector(selector);
    if (!root) return false;
    root.innerHTML = markup;
    return true;
}
"""

REBIND_TRIGGERS_JS = """
([attr, binding]) => {
    const elements = document.querySelectorAll(`[${attr}]`);
    elements.forEach(el => {
        const target = el.getAttribute(attr);
        el.setAttribute('href', target);
        el.onclick = (e) => {
            e.preventDefault();
            window[binding](target);
        };
    });
    return elements.length;
}
"""

INSTALL_POPSTATE_JS = """
(binding) => {
    if (window.__swapnav_popstate_installed) return;
    window.__swapnav_popstate_installed = true;
    window.addEventListener('popstate', () => window[binding](window.location.href));
}
"""

_MARKERS = {
    AssetType.SCRIPT: (SCRIPT_MARKER_ATTR, "src", "script"),
    AssetType.STYLE: (STYLE_MARKER_ATTR, "href", "link"),
}


class PlaywrightSurface(RenderingSurface):
    """Renders into a Playwright page by evaluating small DOM scripts."""

    def __init__(self, page: Page, content_selector: str = CONTENT_ROOT_SELECTOR) -> None:
        self._page = page
        self._content_selector = content_selector
        self._navigate: NavigateCallback | None = None
        self._exposed = False
        self._ids = itertools.count(1)

    async def set_content(self, markup: str) -> None:
        found = await self._page.evaluate(SET_CONTENT_JS, [self._content_selector, markup])
        if not found:
            raise NavigationError(f"Content root {self._content_selector!r} not found on page")

    async def get_injected_assets(self, asset_type: AssetType) -> list[InjectedAsset]:
        attr, src_attr, _tag = _MARKERS[asset_type]
        raw: list[dict[str, Any]] = await self._page.evaluate(LIST_ASSETS_JS, [attr, src_attr])
        return [
            InjectedAsset(asset_type=asset_type, url=item["url"] or "", handle=item["handle"])
            for item in raw
        ]

    async def attach_asset(self, asset_type: AssetType, url: str) -> None:
        attr, _src_attr, tag = _MARKERS[asset_type]
        handle = f"swapnav-{next(self._ids)}"
        loaded = await self._page.evaluate(ATTACH_ASSET_JS, [tag, attr, handle, url])
        if not loaded:
            # The element signalled completion; the asset itself is broken
            logger.warning("asset_load_failed", asset_type=asset_type.value, url=url)

    async def detach_asset(self, asset: InjectedAsset) -> None:
        attr, _src_attr, _tag = _MARKERS[asset.asset_type]
        removed = await self._page.evaluate(DETACH_ASSET_JS, [attr, asset.handle])
        if not removed:
            logger.debug("asset_already_detached", url=asset.url, handle=asset.handle)

    async def rebind_navigation_triggers(self) -> None:
        if self._navigate is not None and not self._exposed:
            await self._page.expose_function(NAVIGATE_BINDING, self._on_navigate)
            self._exposed = True
        count = await self._page.evaluate(REBIND_TRIGGERS_JS, [NAV_TARGET_ATTR, NAVIGATE_BINDING])
        logger.debug("navigation_triggers_bound", count=count)

    def bind_navigator(self, navigate: NavigateCallback) -> None:
        self._navigate = navigate

    async def _on_navigate(self, target: str) -> Any:
        if self._navigate is None:
            return None
        return await self._navigate(target)


class PlaywrightHistory(HistoryTitle):
    """Title and History API access on a Playwright page."""

    def __init__(self, page: Page) -> None:
        self._page = page
        self._listening = False

    async def set_title(self, title: str) -> None:
        await self._page.evaluate("(title) => { document.title = title; }", title)

    async def push_path(self, path: str, title: str) -> None:
        await self._page.evaluate(
            "([path, title]) => history.pushState('', title, path)", [path, title]
        )

    async def listen(self, on_pop: Callable[[str], Awaitable[Any]]) -> None:
        """Forward browser back/forward navigation to ``on_pop(location)``."""
        if self._listening:
            return
        await self._page.expose_function(POPSTATE_BINDING, on_pop)
        await self._page.evaluate(INSTALL_POPSTATE_JS, POPSTATE_BINDING)
        self._listening = True
