"""Schema helpers for the recordscope settings file."""

from __future__ import annotations

import os
from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from ..config import (
    FILTERABLE_COLUMNS,
    FLASH_DURATION_MS,
    ROWS_CHUNK_SIZE,
    TICK_POLL_INTERVAL_SEC,
    VIEWPORT_OVERSCAN,
)

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "recordscope/settings.schema.json",
    "type": "object",
    "required": ["schema", "records", "stream"],
    "properties": {
        "schema": {"const": "recordscope/settings@1"},
        "db_path": {"type": ["string", "null"]},
        "records": {
            "type": "object",
            "properties": {
                "page_size": {"type": "integer", "minimum": 1, "maximum": 10000},
                "overscan": {"type": "integer", "minimum": 0},
                "flash_duration_ms": {"type": "integer", "minimum": 0},
                "filter_mode": {"type": "string", "enum": ["replace", "multi"]},
                "filters": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "required": ["column"],
                        "properties": {
                            "column": {"type": "string", "enum": sorted(FILTERABLE_COLUMNS)},
                            "value": {"type": ["string", "integer", "null"]},
                        },
                        "additionalProperties": False,
                    },
                },
            },
            "additionalProperties": True,
        },
        "stream": {
            "type": "object",
            "properties": {
                "poll_interval_sec": {"type": "number", "exclusiveMinimum": 0},
            },
            "additionalProperties": True,
        },
    },
    "additionalProperties": True,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": "recordscope/settings@1",
    "db_path": None,
    "records": {
        "page_size": ROWS_CHUNK_SIZE,
        "overscan": VIEWPORT_OVERSCAN,
        "flash_duration_ms": FLASH_DURATION_MS,
        "filter_mode": "replace",
        "filters": [],
    },
    "stream": {
        "poll_interval_sec": TICK_POLL_INTERVAL_SEC,
    },
}

_validator = Draft202012Validator(SETTINGS_SCHEMA)

_SECTIONS = ("records", "stream")


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* over :data:`DEFAULT_SETTINGS` and validate the result.

    Nested sections are merged key by key so a file that only sets
    ``records.page_size`` keeps the other record defaults.
    """

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        for key, value in data.items():
            if key in _SECTIONS and isinstance(value, dict):
                target = merged.setdefault(key, {})
                for sub_key, sub_value in value.items():
                    target[sub_key] = sub_value
                continue
            if key == "db_path":
                if value is None or value == "":
                    merged[key] = None
                    continue
                try:
                    merged[key] = os.fspath(value)
                except TypeError:
                    continue
                continue
            merged[key] = value
    _validator.validate(merged)
    return merged


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_SCHEMA", "merge_with_defaults"]
