from .bus import Event, EventBus, Subscription
from .signal import ObservableProperty, Signal
from .stream_events import (
    DataReceivedEvent,
    DomainEvent,
    PeerConnectedEvent,
    PeerDisconnectedEvent,
    StreamEvent,
)

__all__ = [
    "DataReceivedEvent",
    "DomainEvent",
    "Event",
    "EventBus",
    "ObservableProperty",
    "PeerConnectedEvent",
    "PeerDisconnectedEvent",
    "Signal",
    "StreamEvent",
    "Subscription",
]
