"""SQLite storage for records."""

from .engine import DatabaseManager
from .migrations import SchemaMigrator
from .queries import QueryBuilder
from .repository import RecordRepository

__all__ = ["DatabaseManager", "QueryBuilder", "RecordRepository", "SchemaMigrator"]
