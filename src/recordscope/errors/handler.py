"""Central reporting for recoverable errors.

Window fetch failures never propagate out of the engine; they are routed here
so they are logged once, published on the bus, and surfaced to whatever UI
callback is registered.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from recordscope.errors import FetchFailedError, RecordScopeError
from recordscope.events.bus import Event, EventBus


class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass(kw_only=True)
class ErrorOccurredEvent(Event):
    error: Exception
    severity: ErrorSeverity
    context: dict = field(default_factory=dict)


def severity_for(error: Exception) -> ErrorSeverity:
    """Fetch failures can be retried, everything unexpected is an error."""
    if isinstance(error, FetchFailedError):
        return ErrorSeverity.WARNING
    if isinstance(error, RecordScopeError):
        return ErrorSeverity.ERROR
    return ErrorSeverity.CRITICAL


class ErrorHandler:
    def __init__(self, logger: logging.Logger, event_bus: EventBus):
        self._logger = logger
        self._events = event_bus
        self._ui_callback: Optional[Callable[[str, ErrorSeverity], None]] = None

    def register_ui_callback(self, callback: Callable[[str, ErrorSeverity], None]) -> None:
        self._ui_callback = callback

    def handle(
        self,
        error: Exception,
        severity: Optional[ErrorSeverity] = None,
        context: Optional[dict] = None,
    ) -> ErrorSeverity:
        severity = severity or severity_for(error)
        context = dict(context or {})
        mode = getattr(error, "mode", None)
        if mode is not None:
            context.setdefault("fetch_mode", mode)

        log_method = getattr(self._logger, severity.value, self._logger.error)
        log_method("%s: %s", error.__class__.__name__, error, extra={"context": context})

        self._events.publish(ErrorOccurredEvent(error=error, severity=severity, context=context))

        if self._ui_callback and severity is not ErrorSeverity.INFO:
            self._ui_callback(str(error), severity)
        return severity
