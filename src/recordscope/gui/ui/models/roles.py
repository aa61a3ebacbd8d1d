"""Role definitions for the record table model."""

from __future__ import annotations

from enum import IntEnum
from typing import Dict

from PySide6.QtCore import Qt


class Roles(IntEnum):
    RECORD_ID = Qt.UserRole + 1
    TIMESTAMP_MS = Qt.UserRole + 2
    LEVEL = Qt.UserRole + 3
    SOURCE = Qt.UserRole + 4
    FIELDS = Qt.UserRole + 5
    IS_FLASHING = Qt.UserRole + 6
    FLASH_PROGRESS = Qt.UserRole + 7
    MARKER_KIND = Qt.UserRole + 8
    MARKER_NOTE = Qt.UserRole + 9


def role_names(base: Dict[int, bytes] | None = None) -> Dict[int, bytes]:
    """Return a mapping of Qt role numbers to byte names."""

    mapping: Dict[int, bytes] = {} if base is None else dict(base)
    mapping.update(
        {
            Roles.RECORD_ID: b"recordId",
            Roles.TIMESTAMP_MS: b"timestampMs",
            Roles.LEVEL: b"level",
            Roles.SOURCE: b"source",
            Roles.FIELDS: b"fields",
            Roles.IS_FLASHING: b"isFlashing",
            Roles.FLASH_PROGRESS: b"flashProgress",
            Roles.MARKER_KIND: b"markerKind",
            Roles.MARKER_NOTE: b"markerNote",
        }
    )
    return mapping
