"""Events published by the record stream transport.

Only :class:`DataReceivedEvent` means "the records table changed"; peer
connection events share the transport but never invalidate the window.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import uuid4


@dataclass(frozen=True)
class DomainEvent:
    """Immutable fact about the record log; ``source`` names the publisher."""

    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)
    source: str = ""


@dataclass(frozen=True)
class StreamEvent(DomainEvent):
    session_id: str = ""


@dataclass(frozen=True)
class DataReceivedEvent(StreamEvent):
    record_id: Optional[int] = None


@dataclass(frozen=True)
class PeerConnectedEvent(StreamEvent):
    pass


@dataclass(frozen=True)
class PeerDisconnectedEvent(StreamEvent):
    reason: Optional[str] = None
