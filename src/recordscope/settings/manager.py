"""Settings file management with validation and change notifications."""

from __future__ import annotations

import os
import sys
from copy import deepcopy
from pathlib import Path
from typing import Any, Sequence

from jsonschema import ValidationError
from PySide6.QtCore import QObject, Signal, Slot

from ..domain.models import Filter, FilterMode
from ..errors import SettingsLoadError, SettingsValidationError
from ..utils.jsonio import read_json, write_json
from .schema import DEFAULT_SETTINGS, merge_with_defaults


def default_settings_path() -> Path:
    """Return the default settings.json location for the current platform."""

    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / "recordscope" / "settings.json"
        return Path.home() / "AppData" / "Roaming" / "recordscope" / "settings.json"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "recordscope" / "settings.json"
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / "recordscope" / "settings.json"
    return Path.home() / ".config" / "recordscope" / "settings.json"


class SettingsManager(QObject):
    """Load, validate and persist user settings."""

    settingsChanged = Signal(str, object)

    def __init__(self, path: Path | None = None) -> None:
        super().__init__()
        self._path = path
        self._data: dict[str, Any] = deepcopy(DEFAULT_SETTINGS)

    @property
    def path(self) -> Path:
        return self._path or default_settings_path()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def load(self) -> None:
        """Load the settings JSON from disk, creating defaults if missing."""

        path = self.path
        self._path = path
        payload = None
        if path.exists():
            try:
                payload = read_json(path)
            except (OSError, ValueError) as exc:
                raise SettingsLoadError(f"Cannot read {path}: {exc}") from exc
            if not isinstance(payload, dict):
                raise SettingsLoadError(f"{path} does not contain a JSON object")
        try:
            self._data = merge_with_defaults(payload)
        except ValidationError as exc:
            raise SettingsValidationError(exc.message) from exc
        self._write()

    @Slot(str, result="QVariant")
    @Slot(str, "QVariant", result="QVariant")
    def get(self, key: str, default: Any | None = None) -> Any:
        """Return the value for *key*, supporting dotted access for nested keys."""

        target = self._data
        parts = key.split(".")
        for index, part in enumerate(parts):
            if not isinstance(target, dict) or part not in target:
                return default
            value = target[part]
            if index == len(parts) - 1:
                return value
            target = value
        return default

    @Slot(str, "QVariant")
    def set(self, key: str, value: Any) -> None:
        """Update *key* with *value*, validate and persist the change.

        An invalid value leaves the current settings untouched.
        """

        if isinstance(value, Path):
            value = str(value)

        candidate = deepcopy(self._data)
        parts = key.split(".")
        target: dict[str, Any] = candidate
        for part in parts[:-1]:
            branch = target.get(part)
            if not isinstance(branch, dict):
                branch = {}
                target[part] = branch
            target = branch
        if target.get(parts[-1]) == value:
            return
        target[parts[-1]] = value
        try:
            self._data = merge_with_defaults(candidate)
        except ValidationError as exc:
            raise SettingsValidationError(f"{key}: {exc.message}") from exc
        self._write()
        self.settingsChanged.emit(key, value)

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------
    def db_path(self) -> Path | None:
        value = self.get("db_path")
        return Path(value) if value else None

    def page_size(self) -> int:
        return int(self.get("records.page_size"))

    def overscan(self) -> int:
        return int(self.get("records.overscan"))

    def flash_duration_ms(self) -> int:
        return int(self.get("records.flash_duration_ms"))

    def filter_mode(self) -> FilterMode:
        return FilterMode(self.get("records.filter_mode"))

    def poll_interval(self) -> float:
        return float(self.get("stream.poll_interval_sec"))

    def filters(self) -> list[Filter]:
        """Filters saved by the last session, oldest first."""
        saved = self.get("records.filters") or []
        return [Filter(item["column"], item.get("value")) for item in saved]

    def set_filters(self, filters: Sequence[Filter]) -> None:
        payload = []
        for item in filters:
            value = int(item.value) if isinstance(item.value, int) else item.value
            payload.append({"column": item.column, "value": value})
        self.set("records.filters", payload)

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------
    def _write(self) -> None:
        path = self.path
        self._path = path
        write_json(path, self._data)


__all__ = ["SettingsManager", "default_settings_path"]
