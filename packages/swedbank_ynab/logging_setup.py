"""Logging for ``swedbank_ynab``.

Modules log through ``get_logger("swedbank_ynab.<module>")`` and stay silent
until the CLI calls :func:`configure_logging`, which attaches one stderr
handler to the ``swedbank_ynab`` logger.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "swedbank_ynab"
LEVEL_ENV = "SWEDBANK_YNAB_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_CONFIGURED = False


def resolve_level(level: int | str | None) -> int:
    """``"debug"``, ``"10"`` or ``10`` → ``10``; anything unknown → ``INFO``."""

    if isinstance(level, int):
        return level
    name = (level or "").strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelNamesMapping().get(name)
    return numeric if numeric is not None else logging.INFO


def configure_logging(level: int | str | None = None, *, stream: IO[str] = sys.stderr) -> None:
    """Attach the stderr handler once; later calls are no-ops.

    Without an explicit ``level`` the ``SWEDBANK_YNAB_LOG_LEVEL`` environment
    variable is used, then ``INFO``.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    if level is None:
        level = os.getenv(LEVEL_ENV)
    resolved = resolve_level(level)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in [h for h in logger.handlers if isinstance(h, logging.NullHandler)]:
        logger.removeHandler(h)
    logger.addHandler(handler)
    logger.setLevel(resolved)
    # The handler above is the only sink; keep records off the root logger.
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["LEVEL_ENV", "configure_logging", "get_logger", "resolve_level"]
