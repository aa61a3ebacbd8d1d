from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Protocol, Sequence

from .models import Cursor, Filter, Row

TickCallback = Callable[[Any], None]


class RecordFinder(Protocol):
    """Query side of a record source, all the paginator needs."""

    async def fetch_page(
        self, filters: Sequence[Filter], cursor: Optional[Cursor], limit: int
    ) -> List[Row]: ...

    async def count(self, filters: Sequence[Filter]) -> int: ...

    async def get(self, record_id: int) -> Optional[Row]: ...


class RecordSource(ABC):
    """Asynchronous query executor the window pages against."""

    @abstractmethod
    async def fetch_page(
        self, filters: Sequence[Filter], cursor: Optional[Cursor], limit: int
    ) -> List[Row]:
        """Return up to *limit* rows older than *cursor*, newest first."""

    @abstractmethod
    async def count(self, filters: Sequence[Filter]) -> int:
        """Total rows matching *filters*."""

    @abstractmethod
    async def get(self, record_id: int) -> Optional[Row]:
        pass

    @abstractmethod
    async def set_marker(
        self, record_id: int, kind: Optional[int], note: Optional[str]
    ) -> None:
        pass


class TickTransport(ABC):
    """Push channel announcing that new records may exist."""

    @abstractmethod
    def subscribe(self, on_tick: TickCallback) -> Callable[[], None]:
        """Start delivering ticks to *on_tick*; returns the unsubscribe call."""
