"""Pure Python signals, no Qt dependency.

``Signal`` is the observer primitive shared by the filter set, the viewport
tracker and the window view model. ``ObservableProperty`` wraps a single value
and announces changes.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

_logger = logging.getLogger(__name__)


class Signal:
    """Thread-safe list of callbacks.

    A failing handler is logged and skipped; the remaining handlers still run.
    """

    def __init__(self) -> None:
        self._handlers: list[Callable] = []
        self._lock = threading.Lock()

    def connect(self, handler: Callable) -> Callable[[], None]:
        """Register *handler* and return a callable that disconnects it."""
        with self._lock:
            if handler not in self._handlers:
                self._handlers.append(handler)
        return lambda: self.disconnect(handler)

    def disconnect(self, handler: Callable) -> bool:
        with self._lock:
            try:
                self._handlers.remove(handler)
            except ValueError:
                return False
            return True

    def disconnect_all(self) -> None:
        with self._lock:
            self._handlers.clear()

    def emit(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(*args, **kwargs)
            except Exception:
                _logger.exception("Signal handler %r failed", handler)

    @property
    def handler_count(self) -> int:
        with self._lock:
            return len(self._handlers)


class ObservableProperty:
    """Value holder emitting ``changed(new_value, old_value)`` on change."""

    def __init__(self, initial_value: Any = None) -> None:
        self._value = initial_value
        self.changed = Signal()

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, new_value: Any) -> None:
        if self._value != new_value:
            old_value = self._value
            self._value = new_value
            self.changed.emit(new_value, old_value)
