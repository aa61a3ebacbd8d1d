"""Qt table model presenting a :class:`RecordWindowViewModel`."""

from __future__ import annotations

from typing import Any, Callable

from PySide6.QtCore import QAbstractTableModel, QModelIndex, QObject, Qt, Signal
from PySide6.QtGui import QColor

from ....config import FLASH_DURATION_MS
from ....domain.models import Row, WindowState
from ....gui.viewmodels.record_window import RecordWindowViewModel
from ....utils.clock import format_timestamp, now_ms
from ..flash import flash_state
from .roles import Roles, role_names

COLUMNS: tuple[str, ...] = ("Timestamp", "Level", "Source", "Message")

_FLASH_COLOR = QColor(255, 214, 102)


class RecordTableModel(QAbstractTableModel):
    """Thin adapter: rows come from the view model, scrolling goes back to it.

    The view should call :meth:`report_visible_range` on every scroll or
    resize so the view model can page older rows and track the live tail.
    """

    pendingNewChanged = Signal(int)  # noqa: N815
    loadingChanged = Signal(bool)  # noqa: N815

    def __init__(
        self,
        view_model: RecordWindowViewModel,
        parent: QObject | None = None,
        *,
        clock: Callable[[], int] = now_ms,
        flash_duration_ms: int = FLASH_DURATION_MS,
    ) -> None:
        super().__init__(parent)
        self._view_model = view_model
        self._clock = clock
        self._flash_duration_ms = flash_duration_ms
        self._rows: tuple[Row, ...] = view_model.state.rows
        self._pending_new = view_model.state.pending_new
        self._loading = view_model.state.loading
        self._disconnect = view_model.state_changed.connect(self._on_state_changed)

    def roleNames(self) -> dict[int, bytes]:  # noqa: N802  # Qt override
        return role_names(super().roleNames())

    def rowCount(self, parent: QModelIndex | None = None) -> int:  # noqa: N802  # Qt override
        if parent is not None and parent.isValid():
            return 0
        return len(self._rows)

    def columnCount(self, parent: QModelIndex | None = None) -> int:  # noqa: N802  # Qt override
        if parent is not None and parent.isValid():
            return 0
        return len(COLUMNS)

    def headerData(  # noqa: N802  # Qt override
        self, section: int, orientation: Qt.Orientation, role: int = Qt.ItemDataRole.DisplayRole
    ) -> Any:
        if (
            role == Qt.ItemDataRole.DisplayRole
            and orientation == Qt.Orientation.Horizontal
            and 0 <= section < len(COLUMNS)
        ):
            return COLUMNS[section]
        return None

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole) -> Any:
        row_index = index.row()
        if not index.isValid() or row_index < 0 or row_index >= len(self._rows):
            return None
        row = self._rows[row_index]

        if role == Qt.ItemDataRole.DisplayRole:
            column = index.column()
            if column == 0:
                return format_timestamp(row.timestamp_ms)
            if column == 1:
                return row.level_name
            if column == 2:
                return row.source or ""
            if column == 3:
                return row.message
            return None
        if role == Qt.ItemDataRole.ToolTipRole:
            return row.marker_note or None
        if role == Qt.ItemDataRole.BackgroundRole:
            if flash_state(row, self._clock(), self._flash_duration_ms).active:
                return _FLASH_COLOR
            return None
        if role == Roles.RECORD_ID:
            return row.id
        if role == Roles.TIMESTAMP_MS:
            return row.timestamp_ms
        if role == Roles.LEVEL:
            return row.level
        if role == Roles.SOURCE:
            return row.source
        if role == Roles.FIELDS:
            return row.fields
        if role == Roles.IS_FLASHING:
            return flash_state(row, self._clock(), self._flash_duration_ms).active
        if role == Roles.FLASH_PROGRESS:
            return flash_state(row, self._clock(), self._flash_duration_ms).progress
        if role == Roles.MARKER_KIND:
            return row.marker_kind
        if role == Roles.MARKER_NOTE:
            return row.marker_note
        return None

    def row_at(self, row_index: int) -> Row | None:
        if 0 <= row_index < len(self._rows):
            return self._rows[row_index]
        return None

    def report_visible_range(self, first_visible_row: int, last_visible_row: int) -> None:
        self._view_model.report_viewport(first_visible_row, last_visible_row, len(self._rows))

    def detach(self) -> None:
        self._disconnect()

    def _on_state_changed(self, state: WindowState) -> None:
        if state.rows is not self._rows:
            self.beginResetModel()
            self._rows = state.rows
            self.endResetModel()
        if state.pending_new != self._pending_new:
            self._pending_new = state.pending_new
            self.pendingNewChanged.emit(state.pending_new)
        if state.loading != self._loading:
            self._loading = state.loading
            self.loadingChanged.emit(state.loading)
