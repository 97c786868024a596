"""Logging setup for event-layers.

Every module logs through a child of the ``event_layers`` logger, which writes
to stderr and stays at WARNING unless told otherwise:

- EVENT_LAYERS_LOG_LEVEL sets the package level.
- EVENT_LAYERS_LOG_LEVEL_<MODULE> overrides it for one module, e.g.
  EVENT_LAYERS_LOG_LEVEL_AGGREGATOR=DEBUG traces tracker decisions only.

The CLI's ``--verbose`` flag calls set_log_level("DEBUG").
"""

from __future__ import annotations

import logging
import os
import sys

LOGGER_NAME = "event_layers"
ENV_PREFIX = "EVENT_LAYERS_LOG_LEVEL"

LOG_FORMAT = "%(levelname)-8s %(name)s: %(message)s"


def _parse_level(value: str | None) -> int | None:
    if not value:
        return None
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else None


def _module_log_level(module: str) -> int | None:
    """Level override for a package module such as ``"aggregator"``, if set."""
    return _parse_level(os.getenv(f"{ENV_PREFIX}_{module.upper()}"))


def _root_logger() -> logging.Logger:
    root = logging.getLogger(LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(_parse_level(os.getenv(ENV_PREFIX)) or logging.WARNING)
        # Host applications configure their own handlers
        root.propagate = False
    return root


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the package logger, or the logger for one of its modules.

    ``name`` is usually ``__name__``; a bare module name such as
    ``"timeline"`` is accepted too.
    """
    root = _root_logger()
    if name is None or name == LOGGER_NAME:
        return root

    module = name.removeprefix(f"{LOGGER_NAME}.")
    module_logger = root.getChild(module)
    level = _module_log_level(module)
    if level is not None:
        module_logger.setLevel(level)
    return module_logger


def set_log_level(level: int | str) -> None:
    """Set the package log level at runtime.

    Raises:
        ValueError: If ``level`` is not a known level name.
    """
    if isinstance(level, str):
        parsed = _parse_level(level)
        if parsed is None:
            raise ValueError(f"Unknown log level: {level!r}")
        level = parsed
    _root_logger().setLevel(level)


__all__ = ["LOGGER_NAME", "get_logger", "set_log_level"]
