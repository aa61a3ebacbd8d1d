from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional

from ...config import FILTERABLE_COLUMNS
from ...errors import InvalidFilterError


class Level(IntEnum):
    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    OFF = 5

    @classmethod
    def parse(cls, value: Any) -> Optional["Level"]:
        """Accept an int, a numeric string or a level name (``"warn"``)."""
        if value is None:
            return None
        if isinstance(value, Level):
            return value
        if isinstance(value, int):
            return cls(value)
        text = str(value).strip()
        if text.lstrip("-").isdigit():
            return cls(int(text))
        name = text.upper()
        if name == "WARNING":
            name = "WARN"
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown level: {value!r}") from None


class MarkerKind(IntEnum):
    INFO = 0
    WARNING = 1
    ERROR = 2
    SUCCESS = 3
    NOTE = 4


@dataclass(frozen=True, order=True)
class Cursor:
    """Keyset position of a row: ``(timestamp_ms, id)``.

    Ordering compares ``timestamp_ms`` first and ``id`` second, which is the
    sort key of the window.
    """

    timestamp_ms: int
    id: int

    def encode(self) -> str:
        payload = json.dumps({"ts": self.timestamp_ms, "id": self.id}, separators=(",", ":"))
        return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")

    @classmethod
    def decode(cls, token: str) -> "Cursor":
        try:
            raw = base64.urlsafe_b64decode(token.encode("ascii"))
            payload = json.loads(raw.decode("utf-8"))
        except (binascii.Error, UnicodeError, ValueError) as exc:
            raise ValueError(f"Invalid cursor format: {token!r}") from exc
        if not isinstance(payload, dict) or "ts" not in payload or "id" not in payload:
            raise ValueError("Cursor payload missing required fields 'ts' and 'id'")
        try:
            return cls(timestamp_ms=int(payload["ts"]), id=int(payload["id"]))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid cursor format: {token!r}") from exc


@dataclass(frozen=True)
class Row:
    """A single record as shown in the window.

    ``added_at`` is a transient, client-side mark (epoch ms) set when the row
    arrived through a live merge. It never takes part in equality and is not
    stored.
    """

    id: int
    timestamp_ms: int
    message: str = ""
    level: Optional[int] = None
    source: Optional[str] = None
    fields: str = "{}"
    kind: int = 0
    received_ms: Optional[int] = None
    marker_kind: Optional[int] = None
    marker_note: Optional[str] = None
    added_at: Optional[int] = field(default=None, compare=False)

    @property
    def key(self) -> Cursor:
        return Cursor(timestamp_ms=self.timestamp_ms, id=self.id)

    @property
    def level_name(self) -> str:
        if self.level is None:
            return ""
        try:
            return Level(self.level).name
        except ValueError:
            return str(self.level)


@dataclass(frozen=True)
class Filter:
    """Equality predicate on a record column; ``value=None`` means ``IS NULL``."""

    column: str
    value: Any = None

    def __post_init__(self) -> None:
        if self.column not in FILTERABLE_COLUMNS:
            raise InvalidFilterError(
                f"Cannot filter on {self.column!r}; expected one of {sorted(FILTERABLE_COLUMNS)}"
            )

    def matches(self, row: Row) -> bool:
        return getattr(row, self.column) == self.value

    @classmethod
    def parse(cls, text: str) -> "Filter":
        """Build a filter from ``column=value`` (``column=`` means NULL)."""
        column, sep, raw = text.partition("=")
        if not sep:
            raise InvalidFilterError(f"Expected column=value, got {text!r}")
        column = column.strip()
        raw = raw.strip()
        value: Any
        if raw == "" or raw.lower() == "null":
            value = None
        elif column == "level":
            try:
                value = int(Level.parse(raw))
            except ValueError as exc:
                raise InvalidFilterError(str(exc)) from exc
        elif column == "marker_kind":
            try:
                value = int(raw) if raw.isdigit() else int(MarkerKind[raw.upper()])
            except KeyError as exc:
                raise InvalidFilterError(f"Unknown marker kind: {raw!r}") from exc
        else:
            value = raw
        return cls(column=column, value=value)
