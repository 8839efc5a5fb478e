"""Filter and action hooks.

A ``Hooks`` instance is created at boot and passed to whatever needs it
(the ``Router``, the ``Site``, plugins). There is no module-level
registry: tests build their own instance or call ``reset()``.

Filters transform a value::

    hooks.add_filter("router.before_match", intercept, priority=5)
    match = hooks.apply("router.before_match", None, request, router)

Actions are fire-and-forget notifications::

    hooks.add_action("site.ready", warm_caches)
    hooks.do_action("site.ready", site)

Callbacks run in ascending priority; equal priorities keep registration
order. Registration is lock-guarded; dispatch iterates a snapshot, so a
callback registering another hook never disturbs the running chain.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

# Routing seam: callbacks receive (match, request, router) and return
# a RouteMatch, a raw response, or the incoming value unchanged.
BEFORE_MATCH = "router.before_match"

DEFAULT_PRIORITY = 10


@dataclass(frozen=True, slots=True)
class _Callback:
    priority: int
    sequence: int
    fn: Callable[..., Any]


class Hooks:
    """Ordered filter and action registries."""

    __slots__ = ("_actions", "_filters", "_lock", "_sequence")

    def __init__(self) -> None:
        self._filters: dict[str, tuple[_Callback, ...]] = {}
        self._actions: dict[str, tuple[_Callback, ...]] = {}
        self._lock = threading.Lock()
        self._sequence = 0

    # -- Filters --

    def add_filter(
        self, name: str, callback: Callable[..., Any], priority: int = DEFAULT_PRIORITY
    ) -> None:
        """Register *callback* to transform the value of filter *name*."""
        self._add(self._filters, name, callback, priority)

    def apply(self, name: str, value: Any, *args: Any) -> Any:
        """Thread *value* through every filter registered under *name*.

        Each callback is called as ``callback(value, *args)`` and its return
        value becomes the next callback's input. Unregistered names return
        *value* unchanged.
        """
        for entry in self._filters.get(name, ()):
            value = entry.fn(value, *args)
        return value

    def has_filter(self, name: str) -> bool:
        return bool(self._filters.get(name))

    def registered_filters(self) -> list[str]:
        return list(self._filters)

    # -- Actions --

    def add_action(
        self, name: str, callback: Callable[..., Any], priority: int = DEFAULT_PRIORITY
    ) -> None:
        """Register *callback* to run when action *name* fires."""
        self._add(self._actions, name, callback, priority)

    def do_action(self, name: str, *args: Any) -> None:
        """Run every callback registered under *name*; return values are ignored."""
        for entry in self._actions.get(name, ()):
            entry.fn(*args)

    def has_action(self, name: str) -> bool:
        return bool(self._actions.get(name))

    def registered_actions(self) -> list[str]:
        return list(self._actions)

    # -- Management --

    def remove_all(self, name: str) -> None:
        """Drop every filter and action registered under *name*."""
        with self._lock:
            self._filters.pop(name, None)
            self._actions.pop(name, None)

    def reset(self) -> None:
        """Forget every registered hook."""
        with self._lock:
            self._filters.clear()
            self._actions.clear()
            self._sequence = 0

    def _add(
        self,
        registry: dict[str, tuple[_Callback, ...]],
        name: str,
        callback: Callable[..., Any],
        priority: int,
    ) -> None:
        if not callable(callback):
            msg = f"Hook callback for {name!r} is not callable: {callback!r}"
            raise TypeError(msg)
        with self._lock:
            self._sequence += 1
            entry = _Callback(priority=priority, sequence=self._sequence, fn=callback)
            chain = (*registry.get(name, ()), entry)
            # Tuples are replaced, never mutated: readers see old or new chain
            registry[name] = tuple(sorted(chain, key=lambda c: (c.priority, c.sequence)))
