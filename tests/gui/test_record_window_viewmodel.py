"""End-to-end scenarios for RecordWindowViewModel over in-memory fakes."""

from __future__ import annotations

import asyncio

from record_fakes import FakeRecordSource, FakeTransport, FixedClock, make_rows, settle
from recordscope.domain.models import Filter, FilterMode, MarkerKind
from recordscope.errors import FetchFailedError
from recordscope.errors.handler import ErrorOccurredEvent, ErrorSeverity
from recordscope.events import EventBus
from recordscope.gui.viewmodels import RecordWindowViewModel


def _view_model(source, transport=None, **kwargs) -> RecordWindowViewModel:
    kwargs.setdefault("page_size", 100)
    kwargs.setdefault("clock", FixedClock())
    return RecordWindowViewModel(source, transport, **kwargs)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def test_empty_store() -> None:
    vm = _view_model(FakeRecordSource())

    async def scenario():
        vm.start()
        await vm.wait_idle()

    asyncio.run(scenario())
    assert vm.state.rows == ()
    assert vm.state.has_more is False
    assert vm.state.loaded is True
    assert vm.total.value == 0


def test_first_page_then_load_more() -> None:
    source = FakeRecordSource(make_rows(range(1, 102)))
    vm = _view_model(source)

    async def scenario():
        vm.start()
        await vm.wait_idle()
        first = vm.state
        vm.load_more()
        await vm.wait_idle()
        return first

    first = asyncio.run(scenario())
    assert len(first.rows) == 100
    assert first.has_more is True
    assert first.cursor == first.rows[-1].key
    assert len(vm.state.rows) == 101
    assert vm.state.has_more is False
    assert vm.total.value == 101


def test_requests_before_start_are_ignored() -> None:
    source = FakeRecordSource(make_rows(range(1, 4)))
    vm = _view_model(source)
    assert vm.load_more() is None
    assert vm.refresh() is None
    assert vm.refresh_total() is None
    vm.apply_filter(Filter("source", "api"))
    assert source.calls == []


def test_report_viewport_loads_more_at_bottom() -> None:
    source = FakeRecordSource(make_rows(range(1, 251)))
    vm = _view_model(source, overscan=10)

    async def scenario():
        vm.start()
        await vm.wait_idle()
        vm.report_viewport(40, 60, 100)
        await vm.wait_idle()
        middle = len(vm.state.rows)
        vm.report_viewport(80, 95, 100)
        await vm.wait_idle()
        return middle

    middle = asyncio.run(scenario())
    assert middle == 100
    assert len(vm.state.rows) == 200


def test_report_viewport_at_top_of_short_window_does_not_append() -> None:
    source = FakeRecordSource(make_rows(range(1, 251)))
    vm = _view_model(source, overscan=10)

    async def scenario():
        vm.start()
        await vm.wait_idle()
        # Both edges visible: the user has not scrolled anywhere yet.
        vm.report_viewport(0, 95, 100)
        await vm.wait_idle()

    asyncio.run(scenario())
    assert len(source.calls) == 1


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


def test_replace_mode_swaps_filter_on_same_column() -> None:
    source = FakeRecordSource(make_rows(range(1, 11)))
    vm = _view_model(source)

    async def scenario():
        vm.start()
        await vm.wait_idle()
        vm.apply_filter(Filter("source", "api"))
        await vm.wait_idle()
        odd = vm.state.row_ids()
        vm.apply_filter(Filter("source", "worker"))
        await vm.wait_idle()
        return odd

    odd = asyncio.run(scenario())
    assert odd == [9, 7, 5, 3, 1]
    assert vm.state.row_ids() == [10, 8, 6, 4, 2]
    assert vm.filters == (Filter("source", "worker"),)
    assert vm.total.value == 5


def test_multi_mode_ors_values_and_clear_restores_all() -> None:
    source = FakeRecordSource(make_rows(range(1, 11)))
    vm = _view_model(source, filter_mode=FilterMode.MULTI)

    async def scenario():
        vm.start()
        await vm.wait_idle()
        vm.apply_filter(Filter("level", 1))
        vm.apply_filter(Filter("level", 2))
        await vm.wait_idle()
        both = vm.state.row_ids()
        vm.remove_filter(0)
        await vm.wait_idle()
        single = vm.state.row_ids()
        vm.clear_filters()
        await vm.wait_idle()
        return both, single

    both, single = asyncio.run(scenario())
    assert both == [7, 6, 2, 1]
    assert single == [7, 2]
    assert vm.state.row_ids() == list(range(10, 0, -1))


def test_filter_change_discards_in_flight_page() -> None:
    source = FakeRecordSource(make_rows(range(1, 11)))
    source.hold = True
    seen = []

    async def scenario():
        vm = _view_model(source)
        vm.state_changed.connect(seen.append)
        vm.start()
        await settle()
        vm.apply_filter(Filter("source", "worker"))
        await settle()
        source.release(1)
        await settle()
        source.release(0)
        await vm.wait_idle()
        return vm.state

    state = asyncio.run(scenario())
    assert state.row_ids() == [10, 8, 6, 4, 2]
    assert all(row.source == "worker" for state in seen for row in state.rows)


def test_initial_filters_drive_the_first_fetch() -> None:
    source = FakeRecordSource(make_rows(range(1, 11)))
    vm = _view_model(source, initial_filters=[Filter("source", "worker")])
    saved = []
    vm.filters_changed.connect(saved.append)

    async def scenario():
        vm.start()
        await vm.wait_idle()
        vm.apply_filter(Filter("level", 2))
        await vm.wait_idle()

    asyncio.run(scenario())
    assert source.calls[0][0] == (Filter("source", "worker"),)
    assert saved == [(Filter("source", "worker"), Filter("level", 2))]
    assert vm.state.row_ids() == [2]


# ---------------------------------------------------------------------------
# Live updates
# ---------------------------------------------------------------------------


def test_live_tick_at_top_marks_new_rows() -> None:
    source = FakeRecordSource(make_rows(range(1, 51)))
    transport = FakeTransport()
    vm = _view_model(source, transport, clock=FixedClock(77_000))

    async def scenario():
        vm.start()
        await vm.wait_idle()
        source.add(make_rows(range(51, 56)))
        transport.fire()
        await vm.wait_idle()

    asyncio.run(scenario())
    assert vm.state.row_ids() == list(range(55, 0, -1))
    marked = [row.id for row in vm.state.rows if row.added_at == 77_000]
    assert marked == [55, 54, 53, 52, 51]
    assert vm.total.value == 55


def test_live_ticks_while_scrolled_accumulate() -> None:
    source = FakeRecordSource(make_rows(range(1, 151)))
    transport = FakeTransport()
    vm = _view_model(source, transport, overscan=10)

    async def scenario():
        vm.start()
        await vm.wait_idle()
        vm.report_viewport(30, 40, 100)
        source.add(make_rows([151, 152]))
        transport.fire()
        transport.fire()
        await vm.wait_idle()
        scrolled = (vm.state.pending_new, vm.state.rows[0].id)
        vm.report_viewport(0, 20, 100)
        await vm.wait_idle()
        return scrolled

    scrolled = asyncio.run(scenario())
    assert scrolled == (2, 150)
    assert vm.state.pending_new == 0
    assert vm.state.row_ids()[:3] == [152, 151, 150]


def test_tick_while_replace_in_flight_merges_once_afterwards() -> None:
    source = FakeRecordSource(make_rows(range(1, 6)))
    source.hold = True
    transport = FakeTransport()
    vm = _view_model(source, transport)

    async def scenario():
        vm.start()
        await settle()
        source.add(make_rows([6]))
        transport.fire()
        transport.fire()
        source.release()
        await settle()
        source.release()
        await vm.wait_idle()

    asyncio.run(scenario())
    assert len(source.calls) == 2
    assert vm.state.row_ids() == [6, 5, 4, 3, 2, 1]


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


def test_failed_load_more_reports_and_keeps_rows() -> None:
    source = FakeRecordSource(make_rows(range(1, 151)))
    bus = EventBus()
    published = []
    bus.subscribe(ErrorOccurredEvent, published.append)
    messages = []
    vm = _view_model(source, event_bus=bus)
    vm.error_occurred.connect(messages.append)

    async def scenario():
        vm.start()
        await vm.wait_idle()
        source.fail = RuntimeError("connection reset")
        vm.load_more()
        await vm.wait_idle()
        failed = vm.state
        source.fail = None
        vm.load_more()
        await vm.wait_idle()
        return failed

    failed = asyncio.run(scenario())
    assert len(failed.rows) == 100
    assert isinstance(failed.error, FetchFailedError)
    assert failed.loading is False
    assert len(messages) == 1 and "connection reset" in messages[0]
    assert len(published) == 1
    assert published[0].severity is ErrorSeverity.WARNING
    assert published[0].context["fetch_mode"] == "append"
    assert len(vm.state.rows) == 150
    assert vm.state.error is None


def test_row_refresh_failures_report_only_when_current() -> None:
    source = FakeRecordSource(make_rows(range(1, 11)))
    vm = _view_model(source)
    messages = []
    vm.error_occurred.connect(messages.append)

    async def scenario():
        vm.start()
        await vm.wait_idle()
        source.fail_get = OSError("locked")
        vm.refresh_row(4)
        # A filter change before the read resolves makes it stale.
        vm.apply_filter(Filter("source", "worker"))
        await vm.wait_idle()
        stale = list(messages)
        vm.refresh_row(4)
        await vm.wait_idle()
        return stale

    stale = asyncio.run(scenario())
    assert stale == []
    assert len(messages) == 1
    assert "Failed to reload record 4" in messages[0]
    assert vm.state.error is None


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------


def test_set_marker_refreshes_row_in_place() -> None:
    source = FakeRecordSource(make_rows(range(1, 11)))
    vm = _view_model(source)

    async def scenario():
        vm.start()
        await vm.wait_idle()
        vm.set_marker(4, MarkerKind.ERROR, "broken")
        await vm.wait_idle()

    asyncio.run(scenario())
    row = vm.state.rows[6]
    assert row.id == 4
    assert row.marker_kind == MarkerKind.ERROR
    assert row.marker_note == "broken"
    assert vm.state.row_ids() == list(range(10, 0, -1))


def test_set_marker_on_unknown_record_reports_error() -> None:
    source = FakeRecordSource(make_rows(range(1, 4)))
    vm = _view_model(source)
    messages = []
    vm.error_occurred.connect(messages.append)

    async def scenario():
        vm.start()
        await vm.wait_idle()
        vm.set_marker(99, MarkerKind.NOTE)
        await vm.wait_idle()

    asyncio.run(scenario())
    assert messages == ["99"]


# ---------------------------------------------------------------------------
# Disposal
# ---------------------------------------------------------------------------


def test_dispose_unsubscribes_and_stops_updates() -> None:
    source = FakeRecordSource(make_rows(range(1, 4)))
    transport = FakeTransport()
    vm = _view_model(source, transport)
    seen = []

    async def scenario():
        vm.start()
        await vm.wait_idle()
        vm.state_changed.connect(seen.append)
        vm.dispose()
        vm.dispose()
        return vm.start(), vm.set_marker(1, MarkerKind.INFO)

    started, marker = asyncio.run(scenario())
    assert started is None
    assert marker is None
    assert transport.listeners == []
    assert vm.disposed
    assert seen == []
