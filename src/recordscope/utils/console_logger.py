from __future__ import annotations

import logging
import sys

_FORMATS = {
    logging.DEBUG: "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    logging.INFO: "%(message)s",
}


def ensure_console_logger(
    logger: logging.Logger,
    handler_name: str,
    *,
    level: int = logging.INFO,
) -> None:
    """Attach a single stderr handler named *handler_name* to *logger*.

    Calling it again with a lower *level* only lowers the threshold.
    """
    for handler in logger.handlers:
        if getattr(handler, "name", None) == handler_name:
            if level < handler.level:
                handler.setLevel(level)
                handler.setFormatter(logging.Formatter(_FORMATS.get(level, _FORMATS[logging.INFO])))
                logger.setLevel(level)
            return
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.name = handler_name
    handler.setFormatter(logging.Formatter(_FORMATS.get(level, _FORMATS[logging.INFO])))
    logger.addHandler(handler)
    logger.setLevel(level)
