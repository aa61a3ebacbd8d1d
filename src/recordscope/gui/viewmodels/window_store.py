"""Window state machine: ``Idle -> Loading(mode) -> Idle``.

Every fetch runs as an :class:`asyncio.Task` tagged with the generation that
was current when it was issued. :meth:`WindowStore.reset` bumps the
generation, so results of older fetches are dropped when they arrive instead
of being cancelled. Only results that pass that check reach the merge
functions, which keeps a single writer for the window.

Requests made while a fetch is outstanding:

* ``reset`` always starts a new replace fetch,
* ``request_append`` is a no-op,
* ``request_merge`` sets one coalesced follow-up, run after the current fetch
  as a merge when the viewport is at the top, or as a ``pending_new`` bump
  otherwise.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence, Set, Tuple

from recordscope.application.services import window_merger
from recordscope.application.services.paginator import Paginator
from recordscope.domain.models import Cursor, FetchMode, Filter, Row, WindowState
from recordscope.errors import FetchFailedError
from recordscope.events.signal import Signal
from recordscope.utils.clock import now_ms

LOGGER = logging.getLogger(__name__)


class WindowStore:
    def __init__(
        self,
        paginator: Paginator,
        *,
        clock: Callable[[], int] = now_ms,
        is_at_top: Callable[[], bool] = lambda: True,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._paginator = paginator
        self._clock = clock
        self._is_at_top = is_at_top
        self._loop = loop

        self._state = WindowState()
        self._filters: Tuple[Filter, ...] = ()
        self._generation = 0
        self._merge_followup = False
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

        self.state_changed = Signal()
        self.fetch_failed = Signal()

    # -- properties --------------------------------------------------------

    @property
    def state(self) -> WindowState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def filters(self) -> Tuple[Filter, ...]:
        return self._filters

    @property
    def merge_pending(self) -> bool:
        return self._merge_followup

    # -- requests ----------------------------------------------------------

    def reset(self, filters: Sequence[Filter]) -> Optional[asyncio.Task]:
        """Discard the window and load the head page for *filters*."""
        if self._closed:
            return None
        self._filters = tuple(filters)
        self._generation += 1
        self._merge_followup = False
        self._set_state(WindowState(loading=True))
        return self._start(FetchMode.REPLACE, None)

    def request_append(self) -> Optional[asyncio.Task]:
        state = self._state
        if self._closed or state.loading or not state.has_more or state.cursor is None:
            return None
        self._set_state(dataclasses.replace(state, loading=True))
        return self._start(FetchMode.APPEND, state.cursor)

    def request_merge(self) -> Optional[asyncio.Task]:
        if self._closed:
            return None
        if self._state.loading:
            self._merge_followup = True
            return None
        self._set_state(dataclasses.replace(self._state, loading=True))
        return self._start(FetchMode.MERGE, None)

    def note_new_record(self) -> None:
        """Count a live record that arrived while the viewport is away from the top."""
        if self._closed:
            return
        self._set_state(dataclasses.replace(self._state, pending_new=self._state.pending_new + 1))

    def apply_row(self, row: Row, generation: int) -> bool:
        """Swap a re-read row into the window if *generation* is still current."""
        if generation != self._generation or self._closed:
            LOGGER.debug("discarding stale row %d (generation %d)", row.id, generation)
            return False
        updated = window_merger.update_row(self._state, row)
        if updated is self._state:
            return False
        self._set_state(updated)
        return True

    # -- task bookkeeping --------------------------------------------------

    def spawn(self, coro: Awaitable[Any]) -> asyncio.Task:
        """Run *coro* on the store's loop and include it in :meth:`wait_idle`."""
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait until no fetch (including follow-ups) is outstanding."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def close(self) -> None:
        """Stop accepting requests; results still in flight are dropped."""
        self._closed = True
        self._generation += 1
        self._merge_followup = False
        self.state_changed.disconnect_all()
        self.fetch_failed.disconnect_all()

    # -- internal ----------------------------------------------------------

    def _start(self, mode: FetchMode, cursor: Optional[Cursor]) -> asyncio.Task:
        return self.spawn(self._fetch(mode, cursor, self._generation, self._filters))

    async def _fetch(
        self,
        mode: FetchMode,
        cursor: Optional[Cursor],
        generation: int,
        filters: Tuple[Filter, ...],
    ) -> None:
        try:
            page = await self._paginator.fetch(filters, cursor, mode=mode)
        except FetchFailedError as exc:
            if generation != self._generation:
                LOGGER.debug("ignoring failure of stale %s fetch: %s", mode.value, exc)
                return
            self._set_state(dataclasses.replace(self._state, loading=False, error=exc))
            self.fetch_failed.emit(exc)
            self._run_followup()
            return

        if generation != self._generation:
            LOGGER.debug(
                "discarding stale %s result (generation %d, current %d)",
                mode.value,
                generation,
                self._generation,
            )
            return

        if mode is FetchMode.REPLACE:
            state = window_merger.replace(self._state, page)
        elif mode is FetchMode.APPEND:
            state = window_merger.append(self._state, page)
        else:
            state = window_merger.merge(self._state, page, self._clock())
        LOGGER.debug("%s landed: %d rows, has_more=%s", mode.value, len(state.rows), state.has_more)
        self._set_state(state)
        self._run_followup()

    def _run_followup(self) -> None:
        if not self._merge_followup or self._state.loading:
            return
        self._merge_followup = False
        if self._is_at_top():
            self.request_merge()
        else:
            self.note_new_record()

    def _set_state(self, state: WindowState) -> None:
        if state is self._state:
            return
        self._state = state
        self.state_changed.emit(state)
