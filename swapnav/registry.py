"""Named callbacks for preload tasks and the per-page hook pair."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

Callback = Callable[..., Any]
DeactivateHook = Callable[[], bool | Awaitable[bool]]
ActivateHook = Callable[[], Any]


class CallbackRegistry:
    """Explicit name -> callback mapping the host application populates.

    Preload tasks are looked up by name. The activate/deactivate hooks are
    registered by the currently loaded page and cleared on every navigation.
    """

    def __init__(self) -> None:
        self._callbacks: dict[str, Callback] = {}
        self._activate: ActivateHook | None = None
        self._deactivate: DeactivateHook | None = None

    def register(self, name: str, callback: Callback) -> None:
        self._callbacks[name] = callback
        logger.debug("callback_registered", name=name)

    def unregister(self, name: str) -> None:
        self._callbacks.pop(name, None)

    def get(self, name: str) -> Callback | None:
        return self._callbacks.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._callbacks

    def set_activate(self, hook: ActivateHook | None) -> None:
        self._activate = hook

    def set_deactivate(self, hook: DeactivateHook | None) -> None:
        self._deactivate = hook

    @property
    def activate(self) -> ActivateHook | None:
        return self._activate

    @property
    def deactivate(self) -> DeactivateHook | None:
        return self._deactivate

    def clear_hooks(self) -> None:
        """Drop both page hooks; the next page must register its own."""
        self._activate = None
        self._deactivate = None
