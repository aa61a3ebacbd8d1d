"""RecordWindowViewModel: the public face of the windowed record engine.

Pure Python, no Qt dependency. It wires a :class:`FilterSet`, a
:class:`ViewportTracker`, a :class:`WindowStore` and (when a transport is
given) a :class:`LiveSignalCoordinator` together, and reports fetch failures
through the :class:`ErrorHandler`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Sequence, Tuple

from recordscope.application.services.paginator import Paginator
from recordscope.config import ROWS_CHUNK_SIZE, VIEWPORT_OVERSCAN
from recordscope.domain.models import Filter, FilterMode, FilterSet, MarkerKind, WindowState
from recordscope.domain.repositories import RecordSource, TickTransport
from recordscope.errors import FetchFailedError
from recordscope.errors.handler import ErrorHandler
from recordscope.events.bus import EventBus
from recordscope.events.signal import ObservableProperty, Signal
from recordscope.utils.clock import now_ms

from .base import BaseViewModel
from .live_signal import LiveSignalCoordinator
from .viewport_tracker import ViewportTracker
from .window_store import WindowStore

LOGGER = logging.getLogger(__name__)


class RecordWindowViewModel(BaseViewModel):
    """Bounded, live view over the records table.

    Signals:
        state_changed(WindowState): after every window transition.
        filters_changed(tuple): after the active filters change, for persistence.
        error_occurred(str): when a fetch, count or marker write fails.

    ``total`` is an :class:`ObservableProperty` holding the row count for the
    current filters. It is refreshed on every reload and on live ticks that
    arrive while the viewport is at the top.
    """

    def __init__(
        self,
        source: RecordSource,
        transport: Optional[TickTransport] = None,
        *,
        event_bus: Optional[EventBus] = None,
        error_handler: Optional[ErrorHandler] = None,
        page_size: int = ROWS_CHUNK_SIZE,
        overscan: int = VIEWPORT_OVERSCAN,
        filter_mode: FilterMode = FilterMode.REPLACE,
        initial_filters: Sequence[Filter] = (),
        clock: Callable[[], int] = now_ms,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        super().__init__()
        self._source = source
        self._transport = transport
        self._loop = loop
        self._errors = error_handler or ErrorHandler(LOGGER, event_bus or EventBus(LOGGER))

        self._paginator = Paginator(source, page_size)
        self._filters = FilterSet(filter_mode)
        for filter_ in initial_filters:
            self._filters.add(filter_)
        self._tracker = ViewportTracker(overscan)
        self._store = WindowStore(
            self._paginator,
            clock=clock,
            is_at_top=lambda: self._tracker.at_top,
            loop=loop,
        )
        self._coordinator: Optional[LiveSignalCoordinator] = None
        self._started = False

        self.total = ObservableProperty(0)
        self.state_changed = Signal()
        self.error_occurred = Signal()
        self.filters_changed = Signal()

        self.track(self._store.state_changed.connect(self.state_changed.emit))
        self.track(self._store.fetch_failed.connect(self._report_failure))
        self.track(self._filters.changed.connect(self._on_filters_changed))

    # -- read side ---------------------------------------------------------

    @property
    def state(self) -> WindowState:
        return self._store.state

    @property
    def filters(self) -> Tuple[Filter, ...]:
        return self._filters.snapshot()

    @property
    def filter_mode(self) -> FilterMode:
        return self._filters.mode

    @property
    def viewport(self) -> ViewportTracker:
        return self._tracker

    @property
    def started(self) -> bool:
        return self._started

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> Optional[asyncio.Task]:
        """Subscribe to live ticks and load the head page."""
        if self._started or self.disposed:
            return None
        self._started = True
        if self._transport is not None:
            self._coordinator = LiveSignalCoordinator(
                self._transport,
                self._store,
                self._tracker,
                on_head_changed=self.refresh_total,
                loop=self._loop,
            )
        return self._reload()

    def dispose(self) -> None:
        if self.disposed:
            return
        if self._coordinator is not None:
            self._coordinator.dispose()
            self._coordinator = None
        self._store.close()
        super().dispose()

    async def wait_idle(self) -> None:
        await self._store.wait_idle()

    # -- filters -----------------------------------------------------------

    def apply_filter(self, filter_: Filter) -> None:
        self._filters.add(filter_)

    def remove_filter(self, index: int) -> None:
        self._filters.remove(index)

    def clear_filters(self) -> None:
        self._filters.clear()

    # -- window requests ---------------------------------------------------

    def load_more(self) -> Optional[asyncio.Task]:
        """Fetch the next older page; a no-op without more rows or while loading."""
        if not self._started:
            return None
        return self._store.request_append()

    def refresh(self) -> Optional[asyncio.Task]:
        """Rebuild the window from the head page with the current filters."""
        if not self._started:
            return None
        return self._reload()

    def report_viewport(
        self, first_visible_index: int, last_visible_index: int, total_row_count: int
    ) -> None:
        position = self._tracker.report(first_visible_index, last_visible_index, total_row_count)
        state = self._store.state
        if position.at_bottom and not position.at_top and state.has_more and not state.loading:
            self.load_more()

    def refresh_total(self) -> Optional[asyncio.Task]:
        if not self._started or self.disposed:
            return None
        return self._store.spawn(self._load_total(self._store.generation, self._store.filters))

    def refresh_row(self, record_id: int) -> Optional[asyncio.Task]:
        """Re-read one record and swap it into the window in place."""
        if not self._started or self.disposed:
            return None
        return self._store.spawn(self._load_row(record_id, self._store.generation))

    def set_marker(
        self, record_id: int, kind: Optional[MarkerKind], note: Optional[str] = None
    ) -> Optional[asyncio.Task]:
        """Persist a marker on a record, then refresh that row."""
        if self.disposed:
            return None
        return self._store.spawn(self._write_marker(record_id, kind, note))

    # -- internal ----------------------------------------------------------

    def _reload(self) -> Optional[asyncio.Task]:
        task = self._store.reset(self._filters.snapshot())
        self.refresh_total()
        return task

    def _on_filters_changed(self, filters: Tuple[Filter, ...]) -> None:
        LOGGER.debug("filters changed: %s", filters)
        self.filters_changed.emit(filters)
        if self._started and not self.disposed:
            self._reload()

    async def _load_total(self, generation: int, filters: Tuple[Filter, ...]) -> None:
        try:
            total = await self._paginator.count(filters)
        except FetchFailedError as exc:
            if generation == self._store.generation:
                self._report_failure(exc)
            return
        if generation == self._store.generation:
            self.total.value = total

    async def _load_row(self, record_id: int, generation: int) -> None:
        try:
            row = await self._paginator.get(record_id)
        except FetchFailedError as exc:
            if generation == self._store.generation:
                self._report_failure(exc)
            else:
                LOGGER.debug("ignoring failure of stale row %d refresh: %s", record_id, exc)
            return
        if row is None:
            LOGGER.debug("record %d vanished before it could be refreshed", record_id)
            return
        self._store.apply_row(row, generation)

    async def _write_marker(
        self, record_id: int, kind: Optional[MarkerKind], note: Optional[str]
    ) -> None:
        generation = self._store.generation
        try:
            await self._source.set_marker(record_id, None if kind is None else int(kind), note)
        except Exception as exc:
            self._report_failure(exc)
            return
        await self._load_row(record_id, generation)

    def _report_failure(self, error: Exception) -> None:
        if self.disposed:
            return
        self._errors.handle(error, context={"filters": [repr(f) for f in self._filters]})
        self.error_occurred.emit(str(error))
