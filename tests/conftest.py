"""Pytest configuration for test isolation.

The CLI loads ``.env`` from the working directory and reads YNAB credentials
and vendor overrides from the environment. Tests run in their own temporary
directory with those variables cleared, and the package logger is restored
after each test so ``configure_logging`` calls made by CLI tests do not leak
into ``caplog`` assertions elsewhere.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from swedbank_ynab import logging_setup

_ENV_VARS = (
    "YNAB_TOKEN",
    "YNAB_BUDGET_ID",
    "YNAB_ACCOUNT_ID",
    "YNAB_API_URL",
    "SWEDBANK_YNAB_EXTRA_VENDORS",
    "SWEDBANK_YNAB_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _restore_package_logger(monkeypatch: pytest.MonkeyPatch):
    logger = logging.getLogger("swedbank_ynab")
    handlers = list(logger.handlers)
    propagate = logger.propagate
    level = logger.level
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    yield
    for h in list(logger.handlers):
        if h not in handlers:
            logger.removeHandler(h)
    logger.propagate = propagate
    logger.setLevel(level)
