from .base import BaseViewModel
from .live_signal import EventBusTickTransport, LiveSignalCoordinator, TickKind, classify_tick
from .record_window import RecordWindowViewModel
from .viewport_tracker import ViewportTracker
from .window_store import WindowStore

__all__ = [
    "BaseViewModel",
    "EventBusTickTransport",
    "LiveSignalCoordinator",
    "RecordWindowViewModel",
    "TickKind",
    "ViewportTracker",
    "WindowStore",
    "classify_tick",
]
