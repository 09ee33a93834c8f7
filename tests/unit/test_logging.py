"""Tests for the JSON log formatter."""

import json
import logging
import sys

from retailhub.common.logging import JSONFormatter, setup_logging


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "retailhub.imports.base", logging.WARNING, __file__, 1, "Skipped %s", ("row",), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(make_record()))
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "retailhub.imports.base"
        assert entry["message"] == "Skipped row"
        assert "timestamp" in entry

    def test_extra_context_included(self):
        entry = json.loads(JSONFormatter().format(make_record(tenant_id="acme", row=4)))
        assert entry["tenant_id"] == "acme"
        assert entry["row"] == 4
        assert "args" not in entry

    def test_exception_rendered(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord(
                "retailhub", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
            )
        entry = json.loads(JSONFormatter().format(record))
        assert "ValueError: boom" in entry["exception"]


class TestSetupLogging:
    def test_single_handler(self):
        logger = logging.getLogger("retailhub")
        saved = (list(logger.handlers), logger.level, logger.propagate)
        try:
            setup_logging("debug")
            setup_logging("debug")
            json_handlers = [h for h in logger.handlers if isinstance(h.formatter, JSONFormatter)]
            assert len(json_handlers) == 1
            assert logger.level == logging.DEBUG
        finally:
            logger.handlers[:] = saved[0]
            logger.setLevel(saved[1])
            logger.propagate = saved[2]
