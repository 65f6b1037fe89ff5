"""
Named filter hooks, the way the host's upload pipeline calls into plugins.

A filter receives a value (plus any extra arguments) and returns the value
for the next callback. Callbacks run by ascending priority, then in the order
they were added.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)

FilterCallback = Callable[..., Any]

DEFAULT_PRIORITY = 10


@dataclass(order=True)
class _Registered:
    priority: int
    seq: int
    callback: FilterCallback = field(compare=False)


class HookRegistry:
    """Holds the filters registered by plugins."""

    def __init__(self):
        self._filters: dict[str, list[_Registered]] = {}
        self._seq = itertools.count()

    def add_filter(
        self,
        name: str,
        callback: FilterCallback,
        priority: int = DEFAULT_PRIORITY,
    ) -> None:
        callbacks = self._filters.setdefault(name, [])
        callbacks.append(_Registered(priority, next(self._seq), callback))
        callbacks.sort()
        logger.debug("Added filter %s (priority %d)", name, priority)

    def remove_filter(self, name: str, callback: FilterCallback) -> bool:
        callbacks = self._filters.get(name, [])
        kept = [r for r in callbacks if r.callback != callback]
        if len(kept) == len(callbacks):
            return False
        if kept:
            self._filters[name] = kept
        else:
            del self._filters[name]
        return True

    def has_filter(self, name: str, callback: FilterCallback | None = None) -> bool:
        callbacks = self._filters.get(name, [])
        if callback is None:
            return bool(callbacks)
        return any(r.callback == callback for r in callbacks)

    def apply_filters(self, name: str, value: Any, *args: Any) -> Any:
        for registered in list(self._filters.get(name, [])):
            value = registered.callback(value, *args)
        return value
