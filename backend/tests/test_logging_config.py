from __future__ import annotations

import logging

import pytest

from curriculum_engine.config import get_settings
from curriculum_engine.logging_config import TRAVERSAL_LOGGERS, configure_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name in TRAVERSAL_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)


def test_root_level_comes_from_settings(monkeypatch) -> None:
    monkeypatch.setenv("CURRICULUM_LOG_LEVEL", "warning")
    monkeypatch.delenv("CURRICULUM_DEBUG_TRAVERSAL", raising=False)

    configure_logging()

    assert logging.getLogger().level == logging.WARNING
    for name in TRAVERSAL_LOGGERS:
        assert logging.getLogger(name).level == logging.NOTSET


def test_traversal_flag_enables_planner_debug(monkeypatch) -> None:
    monkeypatch.setenv("CURRICULUM_LOG_LEVEL", "INFO")
    monkeypatch.setenv("CURRICULUM_DEBUG_TRAVERSAL", "1")

    configure_logging(get_settings())

    assert logging.getLogger("curriculum_engine.path_planner").isEnabledFor(logging.DEBUG)
    assert logging.getLogger("curriculum_engine.navigator").isEnabledFor(logging.DEBUG)
    assert not logging.getLogger("curriculum_engine.plan_assembler").isEnabledFor(logging.DEBUG)
