"""JSON log output for the CLI and for applications embedding feed_store."""

from __future__ import annotations

import logging
from typing import IO

from pythonjsonlogger import json as jsonlogger

# httpx logs every dispatch at INFO; one line per queue entry is too chatty.
_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(log_level: str = "info", stream: IO[str] | None = None) -> logging.Handler:
    """Route all records to one JSON handler on the root logger.

    Output format: {"ts": "...", "level": "...", "name": "...", "msg": "..."}

    Args:
        log_level: Level name (e.g. "info", "debug").  Unknown names fall
                   back to INFO.
        stream:    Where to write; defaults to stderr so CLI output on stdout
                   stays parseable.

    Returns:
        The installed handler.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "ts", "levelname": "level", "message": "msg"},
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)
    return handler
