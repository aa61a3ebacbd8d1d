from .paginator import Paginator
from .record_source import SqliteRecordSource
from .tick_source import DatabaseTickSource

__all__ = ["DatabaseTickSource", "Paginator", "SqliteRecordSource"]
