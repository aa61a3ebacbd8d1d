"""Default configuration values for recordscope."""

from __future__ import annotations

from typing import Final

# Rows requested per window page. The paginator asks the source for one extra
# row to learn whether an older page exists.
ROWS_CHUNK_SIZE: Final[int] = 100

# How long a freshly merged row stays highlighted after it was marked.
FLASH_DURATION_MS: Final[int] = 5000

# Rows of slack around the visible range when deciding whether the viewport
# sits at the top or the bottom of the window.
VIEWPORT_OVERSCAN: Final[int] = 10

# Only records of this ``kind`` are shown in the window; other kinds (span
# open/close bookkeeping) stay in the table but are never paged.
BASE_RECORD_KIND: Final[int] = 0

# Name of the transport notification that carries "records were written".
EVENT_RECEIVED: Final[str] = "got_event"

# ---------------------------------------------------------------------------
# Storage and live tail
# ---------------------------------------------------------------------------
DB_FILE_NAME: Final[str] = "records.db"
TICK_POLL_INTERVAL_SEC: Final[float] = 0.5

# Columns a filter may target. Anything else is rejected before it reaches SQL.
FILTERABLE_COLUMNS: Final[frozenset[str]] = frozenset({"level", "source", "marker_kind"})
