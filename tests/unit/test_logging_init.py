from __future__ import annotations

import logging

from roster_import.logging.init import (
    LOGGER_NAME,
    SUMMARY_LEVEL,
    get_logger,
    log_summary,
    reset_logging,
    set_debug,
    setup_logging,
)


def test_setup_logging_creates_logger_with_labeled_formatter():
    logger = setup_logging()
    assert logger.name == "roster_import"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_setup_logging_is_idempotent():
    first = setup_logging()
    second = setup_logging(logging.DEBUG)
    assert first is second
    assert len(first.handlers) == 1
    assert get_logger() is first


def test_logging_labeled_prefixes(capsys):
    logger = setup_logging()
    logger.info("Test info message")
    logger.warning("Test warning message")
    logger.error("Test error message")
    log_summary("rows=1")

    lines = capsys.readouterr().out.strip().splitlines()
    assert lines == [
        "INFO Test info message",
        "WARN Test warning message",
        "ERROR Test error message",
        "SUMMARY rows=1",
    ]


def test_module_loggers_share_the_handler(capsys):
    setup_logging()
    logging.getLogger(f"{LOGGER_NAME}.services.merge").info("row 4: created")
    assert capsys.readouterr().out == "INFO row 4: created\n"


def test_debug_hidden_until_set_debug(capsys):
    logger = setup_logging()
    logger.debug("hidden")
    set_debug(logger)
    logger.debug("shown")
    assert capsys.readouterr().out == "DEBUG shown\n"


def test_summary_level_name_registered():
    setup_logging()
    assert logging.getLevelName(SUMMARY_LEVEL) == "SUMMARY"


def test_reset_logging_detaches_handler():
    setup_logging()
    reset_logging()
    logger = logging.getLogger(LOGGER_NAME)
    assert logger.handlers == []
    assert logger.propagate is True
