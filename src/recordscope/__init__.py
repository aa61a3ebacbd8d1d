"""recordscope: a windowed, live view over an append-only record log."""

__version__ = "0.1.0"
