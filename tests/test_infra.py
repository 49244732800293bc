"""Tests for logging setup and the error taxonomy."""
from __future__ import annotations

import logging
import sys
import threading

import pytest

from qrscan.config import LoggingConfig
from qrscan.infra import (
    EmptyScanResultError,
    MalformedURLError,
    ScanError,
    StorageError,
    UnsupportedEffectError,
    configure_logging,
    install_exception_hook,
)


@pytest.fixture()
def restore_hooks():
    original, original_thread = sys.excepthook, threading.excepthook
    yield
    sys.excepthook, threading.excepthook = original, original_thread


def test_configure_logging_writes_rotating_file(tmp_path):
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    log_path = tmp_path / "logs" / "app.log"
    try:
        configure_logging(LoggingConfig(level="DEBUG", filepath=log_path, console=False))
        logging.getLogger("scanner.test").debug("hello from test")
        for handler in root.handlers:
            handler.flush()
    finally:
        # basicConfig(force=True) replaced pytest's own handlers.
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    content = log_path.read_text(encoding="utf-8")
    assert "| DEBUG    | scanner.test | hello from test" in content
    assert logging.getLogger("statemachine").level == logging.WARNING


def test_exception_hook_logs_and_chains(caplog, restore_hooks):
    seen = []
    sys.excepthook = lambda *args: seen.append(args[0])
    install_exception_hook()

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        sys.excepthook(*sys.exc_info())

    assert seen == [RuntimeError]
    assert "Unhandled exception: boom" in caplog.text


@pytest.mark.parametrize(
    "error",
    [
        MalformedURLError("http://", "missing host"),
        UnsupportedEffectError("myapp://x"),
        EmptyScanResultError("photo.png"),
        StorageError("disk full"),
    ],
)
def test_errors_share_a_base(error):
    assert isinstance(error, ScanError)


def test_malformed_url_message():
    error = MalformedURLError("http://", "missing host")
    assert str(error) == "Malformed URL 'http://': missing host"
    assert isinstance(error, ValueError)
