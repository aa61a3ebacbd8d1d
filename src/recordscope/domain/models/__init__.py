from .core import Cursor, Filter, Level, MarkerKind, Row
from .filters import FilterMode, FilterSet
from .window import FetchMode, Page, ViewportPosition, WindowState

__all__ = [
    "Cursor",
    "FetchMode",
    "Filter",
    "FilterMode",
    "FilterSet",
    "Level",
    "MarkerKind",
    "Page",
    "Row",
    "ViewportPosition",
    "WindowState",
]
