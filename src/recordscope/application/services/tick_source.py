"""Live tail transport that watches the records table for new rows.

A writer in another process has no way to call into the viewer, so the
viewer polls ``MAX(id)`` and publishes one :class:`DataReceivedEvent` per
poll that saw growth. Bursts of inserts between two polls collapse into a
single tick.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from recordscope.config import TICK_POLL_INTERVAL_SEC
from recordscope.events import DataReceivedEvent, EventBus

LOGGER = logging.getLogger(__name__)


class DatabaseTickSource:
    def __init__(
        self,
        max_id: Callable[[], int],
        event_bus: EventBus,
        interval: float = TICK_POLL_INTERVAL_SEC,
        session_id: str = "",
    ) -> None:
        self._max_id = max_id
        self._bus = event_bus
        self._interval = interval
        self._session_id = session_id
        self._last_seen: Optional[int] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def last_seen(self) -> Optional[int]:
        return self._last_seen

    async def poll_once(self) -> bool:
        """Check for growth once; returns ``True`` when a tick was published."""
        current = await asyncio.to_thread(self._max_id)
        previous, self._last_seen = self._last_seen, current
        if previous is None or current <= previous:
            return False
        LOGGER.debug("records grew %d -> %d", previous, current)
        self._bus.publish(
            DataReceivedEvent(source="db-poll", session_id=self._session_id, record_id=current)
        )
        return True

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="record-tick-poll")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception:
                LOGGER.exception("Polling the records table failed")
            await asyncio.sleep(self._interval)
