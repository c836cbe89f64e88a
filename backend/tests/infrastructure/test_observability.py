"""Structured logging: JSON shape, extra fields, handler idempotence."""

import json
import logging

from app.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "app.test", logging.WARNING, __file__, 1, "saved %s", ("order",), None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_line_has_core_fields():
    line = json.loads(JSONFormatter().format(_record()))
    assert line["level"] == "WARNING"
    assert line["logger"] == "app.test"
    assert line["message"] == "saved order"
    assert "timestamp" in line


def test_known_extras_copied_unknown_ignored():
    line = json.loads(JSONFormatter().format(
        _record(order_id="o-1", temp_file="a.png", colour="blue"),
    ))
    assert line["order_id"] == "o-1"
    assert line["temp_file"] == "a.png"
    assert "colour" not in line


def test_setup_logging_replaces_previous_handler():
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        setup_logging("debug", "text")
        handler = setup_logging("INFO", "json")
        assert root.handlers == [handler]
        assert isinstance(handler.formatter, JSONFormatter)
        assert root.level == logging.INFO
    finally:
        root.handlers[:] = saved[0]
        root.setLevel(saved[1])
