"""Tests for logging setup."""

from __future__ import annotations

import logging
import os

import pytest

from country_mcp.display.logging_config import BASE_LOG_CFG, setup_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    saved_root = (list(root.handlers), root.level)
    yield
    for name in BASE_LOG_CFG["loggers"]:
        lg = logging.getLogger(name)
        for handler in lg.handlers:
            handler.close()
        lg.handlers.clear()
        lg.propagate = True
        lg.setLevel(logging.NOTSET)
    for handler in root.handlers:
        if handler not in saved_root[0]:
            handler.close()
    root.handlers[:] = saved_root[0]
    root.setLevel(saved_root[1])


class TestSetupLogging:
    def test_creates_log_file(self, tmp_path) -> None:
        log_fpath, level = setup_logging("debug", log_dir=str(tmp_path))
        assert level == "DEBUG"
        assert os.path.dirname(log_fpath) == str(tmp_path)
        logging.getLogger("country_mcp.test").debug("hello")
        assert os.path.exists(log_fpath)
        assert logging.getLogger("country_mcp").level == logging.DEBUG

    def test_invalid_level_falls_back(self, tmp_path) -> None:
        _, level = setup_logging("loud", log_dir=str(tmp_path))
        assert level == "INFO"

    def test_console_disabled(self, tmp_path) -> None:
        setup_logging("info", log_dir=str(tmp_path), console=False)
        handlers = logging.getLogger("country_mcp").handlers
        assert all(not isinstance(h, logging.StreamHandler) or isinstance(h, logging.FileHandler) for h in handlers)
        assert len(handlers) == 1
