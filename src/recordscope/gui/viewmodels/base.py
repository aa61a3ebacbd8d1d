"""BaseViewModel: pure Python, no Qt dependency.

Tracks signal connections and transport subscriptions so a view model releases
everything it holds in :meth:`dispose`.
"""

from __future__ import annotations

from typing import Callable


class BaseViewModel:
    def __init__(self) -> None:
        self._disposers: list[Callable[[], object]] = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def track(self, disposer: Callable[[], object]) -> None:
        """Remember a disconnect callable to run on dispose, newest first."""
        self._disposers.append(disposer)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        while self._disposers:
            self._disposers.pop()()
