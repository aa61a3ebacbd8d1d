"""Tracks whether the visible range touches the top or the bottom of the window."""

from __future__ import annotations

import logging

from recordscope.config import VIEWPORT_OVERSCAN
from recordscope.domain.models import ViewportPosition
from recordscope.events.signal import Signal

LOGGER = logging.getLogger(__name__)


class ViewportTracker:
    """Derives ``at_top``/``at_bottom`` from the rendering layer's reports.

    Reporting only stores the flags and emits ``position_changed(new, old)``
    when one of them flips; it never starts a fetch.
    """

    def __init__(self, overscan: int = VIEWPORT_OVERSCAN) -> None:
        if overscan < 0:
            raise ValueError("overscan must not be negative")
        self.overscan = overscan
        self._position = ViewportPosition()
        self.position_changed = Signal()

    @property
    def position(self) -> ViewportPosition:
        return self._position

    @property
    def at_top(self) -> bool:
        return self._position.at_top

    @property
    def at_bottom(self) -> bool:
        return self._position.at_bottom

    def report(
        self, first_visible_index: int, last_visible_index: int, total_row_count: int
    ) -> ViewportPosition:
        position = ViewportPosition(
            at_top=first_visible_index - self.overscan <= 0,
            at_bottom=last_visible_index + self.overscan >= total_row_count - 1,
        )
        previous, self._position = self._position, position
        if position != previous:
            LOGGER.debug("viewport %s -> %s", previous, position)
            self.position_changed.emit(position, previous)
        return position
