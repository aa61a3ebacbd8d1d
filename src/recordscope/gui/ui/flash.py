"""Read-time highlight for rows that arrived through a live merge.

Nothing here owns a timer: the state is recomputed from ``added_at`` and the
current time whenever a row is drawn.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ...config import FLASH_DURATION_MS
from ...domain.models import Row


@dataclass(frozen=True)
class FlashState:
    active: bool
    elapsed_ms: Optional[int] = None
    remaining_ms: int = 0

    @property
    def progress(self) -> float:
        """Fraction of the highlight already spent, ``1.0`` once it is over."""
        if not self.active or self.elapsed_ms is None:
            return 1.0
        total = self.elapsed_ms + self.remaining_ms
        return self.elapsed_ms / total if total else 1.0


INACTIVE = FlashState(active=False)


def flash_state(row: Row, now_ms: int, duration_ms: int = FLASH_DURATION_MS) -> FlashState:
    if row.added_at is None:
        return INACTIVE
    elapsed = max(0, now_ms - row.added_at)
    if elapsed >= duration_ms:
        return FlashState(active=False, elapsed_ms=elapsed, remaining_ms=0)
    return FlashState(active=True, elapsed_ms=elapsed, remaining_ms=duration_ms - elapsed)


def is_flash_active(row: Row, now_ms: int, duration_ms: int = FLASH_DURATION_MS) -> bool:
    return flash_state(row, now_ms, duration_ms).active
