"""Tests for the event bus, signals and the error handler."""

from __future__ import annotations

import logging
from unittest.mock import Mock

from recordscope.errors import FetchFailedError, InvalidFilterError
from recordscope.errors.handler import ErrorHandler, ErrorOccurredEvent, ErrorSeverity, severity_for
from recordscope.events import (
    DataReceivedEvent,
    EventBus,
    ObservableProperty,
    PeerConnectedEvent,
    Signal,
    StreamEvent,
)


class TestEventBus:
    def test_base_class_subscribers_see_subclasses(self) -> None:
        bus = EventBus()
        stream, data = [], []
        bus.subscribe(StreamEvent, stream.append)
        bus.subscribe(DataReceivedEvent, data.append)

        bus.publish(DataReceivedEvent(record_id=1))
        bus.publish(PeerConnectedEvent())

        assert len(stream) == 2
        assert len(data) == 1

    def test_unsubscribe(self) -> None:
        bus = EventBus()
        handler = Mock()
        sub = bus.subscribe(DataReceivedEvent, handler)
        assert bus.subscriber_count(DataReceivedEvent) == 1
        bus.unsubscribe(sub)
        bus.publish(DataReceivedEvent())
        handler.assert_not_called()
        assert bus.subscriber_count(DataReceivedEvent) == 0

    def test_failing_handler_does_not_block_others(self, caplog) -> None:
        bus = EventBus()
        seen = []
        bus.subscribe(DataReceivedEvent, Mock(side_effect=RuntimeError("boom")))
        bus.subscribe(DataReceivedEvent, seen.append)
        with caplog.at_level(logging.ERROR):
            bus.publish(DataReceivedEvent())
        assert len(seen) == 1
        assert "failed for DataReceivedEvent" in caplog.text

    def test_background_handlers_return_futures(self) -> None:
        bus = EventBus()
        seen = []
        bus.subscribe(DataReceivedEvent, seen.append, background=True)
        futures = bus.publish(DataReceivedEvent(record_id=9))
        for future in futures:
            future.result(timeout=5)
        bus.shutdown()
        assert [event.record_id for event in seen] == [9]


class TestSignal:
    def test_connect_returns_disconnect(self) -> None:
        signal = Signal()
        seen = []
        disconnect = signal.connect(seen.append)
        signal.emit(1)
        disconnect()
        signal.emit(2)
        assert seen == [1]
        assert signal.handler_count == 0

    def test_observable_property_emits_on_change_only(self) -> None:
        prop = ObservableProperty(0)
        changes = []
        prop.changed.connect(lambda new, old: changes.append((new, old)))
        prop.value = 0
        prop.value = 3
        assert changes == [(3, 0)]


class TestErrorHandler:
    def test_severity_for(self) -> None:
        assert severity_for(FetchFailedError("x")) is ErrorSeverity.WARNING
        assert severity_for(InvalidFilterError("x")) is ErrorSeverity.ERROR
        assert severity_for(KeyError("x")) is ErrorSeverity.CRITICAL

    def test_handle_logs_publishes_and_notifies(self, caplog) -> None:
        bus = EventBus()
        published = []
        bus.subscribe(ErrorOccurredEvent, published.append)
        handler = ErrorHandler(logging.getLogger("recordscope.test"), bus)
        callback = Mock()
        handler.register_ui_callback(callback)

        with caplog.at_level(logging.WARNING, logger="recordscope.test"):
            severity = handler.handle(FetchFailedError("timeout", mode="merge"), context={"a": 1})

        assert severity is ErrorSeverity.WARNING
        assert published[0].context == {"a": 1, "fetch_mode": "merge"}
        callback.assert_called_once_with("timeout", ErrorSeverity.WARNING)
        assert "FetchFailedError: timeout" in caplog.text

    def test_info_does_not_reach_ui(self) -> None:
        handler = ErrorHandler(logging.getLogger("recordscope.test"), EventBus())
        callback = Mock()
        handler.register_ui_callback(callback)
        handler.handle(ValueError("quiet"), severity=ErrorSeverity.INFO)
        callback.assert_not_called()
