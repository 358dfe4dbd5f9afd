"""Centralized logging configuration for the ``cobros`` package.

- ``configure_logging(level)``: attach a single ``StreamHandler`` to the
  package root logger (``"cobros"``). Called once by the dashboard entrypoint.
- ``get_logger(name)``: acquire a logger by name. Until logging is configured
  the package root logger carries a ``NullHandler`` so library use stays
  silent.

Library modules never attach their own handlers.
"""

from __future__ import annotations

import logging
import sys

_PKG_LOGGER_NAME = "cobros"
_CONFIGURED = False


def _parse_level(level: str) -> int:
    numeric = getattr(logging, level.strip().upper(), None)
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(level: str = "INFO") -> None:
    """Configure the package root logger exactly once."""

    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))

    logger.setLevel(_parse_level(level))
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
