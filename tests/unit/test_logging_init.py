from __future__ import annotations

import logging

from result_ingest.logging.init import (
    LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    enable_debug,
    get_logger,
    log_summary,
    setup_logging,
)


def test_setup_logging_is_idempotent():
    first = setup_logging()
    second = setup_logging()
    assert first is second
    assert first.name == LOGGER_NAME
    assert len(first.handlers) == 1
    assert first.propagate is False


def test_labels(capsys):
    logger = setup_logging()
    logger.info("hello")
    logger.warning("careful")
    logging.getLogger(f"{LOGGER_NAME}.services.orchestrator").error("child")
    log_summary("documents=1/1")
    out = capsys.readouterr().out.splitlines()
    assert out == ["INFO hello", "WARN careful", "ERROR child", "SUMMARY documents=1/1"]


def test_debug_hidden_until_enabled(capsys):
    logger = get_logger()
    logger.debug("quiet")
    enable_debug()
    logger.debug("loud")
    assert capsys.readouterr().out.splitlines() == ["DEBUG loud"]


def test_formatter_appends_traceback():
    try:
        raise ValueError("bad")
    except ValueError:
        import sys

        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())
    text = LabeledFormatter().format(record)
    assert text.startswith("ERROR failed\n")
    assert "ValueError: bad" in text


def test_summary_level_name():
    setup_logging()
    assert logging.getLevelName(SUMMARY_LEVEL) == "SUMMARY"
