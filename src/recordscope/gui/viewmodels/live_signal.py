"""Turns live "records were written" ticks into window merges."""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any, Callable, Mapping, Optional

from recordscope.config import EVENT_RECEIVED
from recordscope.domain.models import ViewportPosition
from recordscope.domain.repositories import TickCallback, TickTransport
from recordscope.events import (
    DataReceivedEvent,
    EventBus,
    PeerConnectedEvent,
    PeerDisconnectedEvent,
    StreamEvent,
)

from .viewport_tracker import ViewportTracker
from .window_store import WindowStore

LOGGER = logging.getLogger(__name__)

_PEER_EVENTS = frozenset({"Connect", "Disconnect"})


class TickKind(enum.Enum):
    DATA = "data"
    PEER = "peer"


def classify_tick(payload: Any) -> Optional[TickKind]:
    """Decide whether a transport payload means "new records".

    Accepted shapes: stream events from the bus, the raw notification body
    (``{"event": {"Data": ...}}`` for records, ``{"event": "Connect"}`` or
    ``{"event": "Disconnect"}`` for peers) and a bare ``None`` tick from
    transports that carry no payload. A notification envelope named
    ``got_event`` is unwrapped first. Anything else is unclassifiable.
    """
    if payload is None or isinstance(payload, DataReceivedEvent):
        return TickKind.DATA
    if isinstance(payload, (PeerConnectedEvent, PeerDisconnectedEvent)):
        return TickKind.PEER
    if isinstance(payload, Mapping):
        event = payload.get("event")
        if event == EVENT_RECEIVED and "payload" in payload:
            return classify_tick(payload["payload"])
        if isinstance(event, Mapping) and "Data" in event:
            return TickKind.DATA
        if isinstance(event, str) and event in _PEER_EVENTS:
            return TickKind.PEER
    return None


class EventBusTickTransport(TickTransport):
    """Delivers every :class:`StreamEvent` published on the bus as a tick."""

    def __init__(self, event_bus: EventBus) -> None:
        self._bus = event_bus

    def subscribe(self, on_tick: TickCallback) -> Callable[[], None]:
        subscription = self._bus.subscribe(StreamEvent, on_tick)
        return lambda: self._bus.unsubscribe(subscription)


class LiveSignalCoordinator:
    """Owns the live tick subscription for one window.

    The subscription is taken in the constructor and released by
    :meth:`dispose`. Ticks raised on another thread are handed to *loop*
    with ``call_soon_threadsafe`` so the window is only touched from the loop.
    """

    def __init__(
        self,
        transport: TickTransport,
        store: WindowStore,
        tracker: ViewportTracker,
        *,
        on_head_changed: Optional[Callable[[], None]] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._store = store
        self._tracker = tracker
        self._on_head_changed = on_head_changed
        self._loop = loop
        self._disposed = False
        self.ticks_seen = 0

        self._disconnect_viewport = tracker.position_changed.connect(self._on_position_changed)
        self._unsubscribe: Optional[Callable[[], None]] = transport.subscribe(self._on_tick)

    @property
    def active(self) -> bool:
        return not self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()
        self._disconnect_viewport()

    def _on_tick(self, payload: Any = None) -> None:
        if self._loop is not None and not self._on_loop_thread():
            self._loop.call_soon_threadsafe(self.handle_tick, payload)
            return
        self.handle_tick(payload)

    def handle_tick(self, payload: Any = None) -> None:
        if self._disposed:
            return
        kind = classify_tick(payload)
        if kind is not TickKind.DATA:
            LOGGER.debug("ignoring %s tick: %r", kind.value if kind else "unknown", payload)
            return
        self.ticks_seen += 1
        at_top = self._tracker.at_top
        if self._store.state.loading or at_top:
            # While a fetch is in flight this becomes the store's follow-up,
            # which merges or counts once that fetch lands.
            self._store.request_merge()
        else:
            self._store.note_new_record()
        if at_top and self._on_head_changed is not None:
            self._on_head_changed()

    def _on_position_changed(self, position: ViewportPosition, previous: ViewportPosition) -> None:
        if self._disposed:
            return
        if position.at_top and not previous.at_top and self._store.state.pending_new > 0:
            LOGGER.debug("back at top with %d pending rows", self._store.state.pending_new)
            self._store.request_merge()
            if self._on_head_changed is not None:
                self._on_head_changed()

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False
