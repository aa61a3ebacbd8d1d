"""Custom exception hierarchy for recordscope."""

from __future__ import annotations

from typing import Optional


class RecordScopeError(Exception):
    """Base class for all custom errors raised by recordscope."""


# --- 3-layer hierarchy ---

class DomainError(RecordScopeError):
    """Base class for domain-level errors."""


class InfrastructureError(RecordScopeError):
    """Base class for infrastructure-level errors."""


class ApplicationError(RecordScopeError):
    """Base class for application-level errors."""


# --- Domain errors ---

class InvalidFilterError(DomainError):
    """Raised when a filter targets a column that cannot be filtered on."""


class RecordNotFoundError(DomainError):
    """Raised when the requested record cannot be located."""


# --- Infrastructure errors ---

class DatabaseError(InfrastructureError):
    """Raised when a database operation fails."""


# --- Application errors ---

class FetchFailedError(ApplicationError):
    """Raised when a page fetch against the record source fails.

    ``mode`` names the window operation (``"replace"``, ``"append"``,
    ``"merge"``, ``"count"`` or ``"row"``) that issued the fetch. The window
    keeps its last good rows; callers may retry.
    """

    def __init__(self, message: str, mode: Optional[str] = None) -> None:
        super().__init__(message)
        self.mode = mode


# --- Settings errors ---

class SettingsError(RecordScopeError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""
