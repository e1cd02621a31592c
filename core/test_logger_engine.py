"""
core/test_logger_engine.py

LoggerEngine tests (custom levels, JSON formatter, timing decorator)
"""

import asyncio
import json
import logging

import pytest
from rich.logging import RichHandler

from core.logger_engine import (
    STRUCTURE_LEVEL,
    VERBOSE_LEVEL,
    CustomLogger,
    JSONFormatter,
    get_logger,
    get_logger_engine,
    log_execution_time,
    set_verbose_mode,
)


def console_levels():
    return {h.level for h in logging.getLogger().handlers if isinstance(h, RichHandler)}


def test_singleton():
    assert get_logger_engine() is get_logger_engine()


def test_custom_logger_class():
    logger = get_logger("tests.logger_engine.custom")
    assert isinstance(logger, CustomLogger)
    assert logging.getLevelName(VERBOSE_LEVEL) == "VERBOSE"
    assert logging.getLevelName(STRUCTURE_LEVEL) == "STRUCTURE"


def test_structure_record_carries_payload(caplog):
    logger = get_logger("tests.logger_engine.structure")
    with caplog.at_level(logging.DEBUG):
        logger.structure("BOS bullish (swing)", level=101.5, time=1700000000)

    (record,) = [r for r in caplog.records if r.name == "tests.logger_engine.structure"]
    assert record.levelno == STRUCTURE_LEVEL
    assert record.extra_data == {'level': 101.5, 'time': 1700000000}


def test_verbose_level(caplog):
    logger = get_logger("tests.logger_engine.verbose")
    with caplog.at_level(VERBOSE_LEVEL):
        logger.verbose("pivot confirmed")
    with caplog.at_level(logging.INFO):
        logger.verbose("hidden")

    messages = [r.getMessage() for r in caplog.records if r.name == "tests.logger_engine.verbose"]
    assert messages == ["pivot confirmed"]


def test_set_verbose_mode():
    try:
        set_verbose_mode(True)
        assert console_levels() == {VERBOSE_LEVEL}
    finally:
        set_verbose_mode(False)
    assert console_levels() == {logging.INFO}


def test_json_formatter():
    record = logging.LogRecord(
        name="modules.smc.engine", level=logging.INFO, pathname=__file__, lineno=10,
        msg="SMC calculated: %d bars", args=(300,), exc_info=None,
    )
    record.extra_data = {'swing_trend': 'bullish'}

    data = json.loads(JSONFormatter().format(record))
    assert data['level'] == "INFO"
    assert data['module'] == "modules.smc.engine"
    assert data['message'] == "SMC calculated: 300 bars"
    assert data['data'] == {'swing_trend': 'bullish'}


def test_log_execution_time_sync(caplog):
    @log_execution_time("performance.tests")
    def work(x):
        return x * 2

    with caplog.at_level(logging.DEBUG, logger="performance.tests"):
        assert work(21) == 42

    assert any("work completed" in r.getMessage() for r in caplog.records)


def test_log_execution_time_reraises(caplog):
    @log_execution_time("performance.tests")
    def fail():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        fail()
    assert any(r.levelno == logging.ERROR and "fail failed" in r.getMessage() for r in caplog.records)


def test_log_execution_time_async():
    @log_execution_time("performance.tests")
    async def work():
        await asyncio.sleep(0)
        return "done"

    assert asyncio.run(work()) == "done"
