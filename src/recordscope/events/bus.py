"""In-process publish/subscribe bus.

Stream transports publish here; the live tick coordinator and the error
handler are the main consumers. Handlers subscribed to a base class receive
every subclass event, so subscribing to ``StreamEvent`` sees data as well as
peer events.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import defaultdict
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Type


@dataclass(kw_only=True)
class Event:
    """Base event class for bus-only notifications."""
    timestamp: datetime = field(default_factory=datetime.now)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class Subscription:
    """Handle returned by subscribe(); can be used to unsubscribe."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    event_type: Type = Event
    handler: Callable = field(default=lambda e: None)
    background: bool = False
    active: bool = True

    def cancel(self) -> None:
        self.active = False


class EventBus:
    def __init__(self, logger: Optional[logging.Logger] = None, max_workers: int = 2):
        self._logger = logger or logging.getLogger(__name__)
        self._subscriptions: Dict[type, List[Subscription]] = defaultdict(list)
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    def subscribe(self, event_type: type, handler: Callable, background: bool = False) -> Subscription:
        sub = Subscription(event_type=event_type, handler=handler, background=background)
        with self._lock:
            self._subscriptions[event_type].append(sub)
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.cancel()
        with self._lock:
            subs = self._subscriptions.get(subscription.event_type, [])
            if subscription in subs:
                subs.remove(subscription)

    def subscriber_count(self, event_type: type) -> int:
        with self._lock:
            return sum(1 for sub in self._subscriptions.get(event_type, []) if sub.active)

    def publish(self, event: object) -> List[Future]:
        """Deliver *event* to every handler registered for its type or a base.

        Foreground handlers run inline on the publisher's thread; background
        handlers are submitted to a small pool and their futures returned.
        """
        futures: List[Future] = []
        for sub in self._matching(type(event)):
            if not sub.active:
                continue
            if sub.background:
                futures.append(self._pool().submit(self._safe_call, sub, event))
            else:
                self._safe_call(sub, event)
        return futures

    def shutdown(self) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    # -- internal ----------------------------------------------------------

    def _matching(self, event_type: type) -> List[Subscription]:
        with self._lock:
            matched: List[Subscription] = []
            for klass in event_type.__mro__:
                matched.extend(self._subscriptions.get(klass, []))
            return matched

    def _pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="event-bus"
                )
            return self._executor

    def _safe_call(self, sub: Subscription, event: object) -> None:
        try:
            sub.handler(event)
        except Exception:
            self._logger.exception(
                "Handler %r failed for %s", sub.handler, type(event).__name__
            )
