from __future__ import annotations

import json
import logging
import sys

import pytest

from log_metrics.logger import JsonFormatter, log_line_event


def test_json_formatter_includes_line_context() -> None:
    logger = logging.getLogger("test-observability")
    record = logger.makeRecord(
        name=logger.name,
        level=logging.WARNING,
        fn="test",
        lno=1,
        msg="Skipped line %d",
        args=(7,),
        exc_info=None,
        extra={
            "line_number": 7,
            "stage": "envelope",
            "error_code": "invalid_json",
            "outcome": "skipped",
        },
    )
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "Skipped line 7"
    assert payload["level"] == "WARNING"
    assert payload["line_number"] == 7
    assert payload["stage"] == "envelope"
    assert payload["error_code"] == "invalid_json"
    assert payload["outcome"] == "skipped"
    assert "output_path" not in payload


def test_json_formatter_includes_exception_text() -> None:
    logger = logging.getLogger("test-observability-exc")
    try:
        raise OSError("disk full")
    except OSError:
        record = logger.makeRecord(
            name=logger.name,
            level=logging.ERROR,
            fn="test",
            lno=1,
            msg="write failed",
            args=(),
            exc_info=sys.exc_info(),
        )
    payload = json.loads(JsonFormatter().format(record))
    assert "disk full" in payload["exception"]


def test_log_line_event_attaches_extra_fields(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("test-observability-helper")
    with caplog.at_level(logging.INFO, logger=logger.name):
        log_line_event(
            logger,
            logging.INFO,
            "done",
            line_number=3,
            stage="callback_payload",
            error_code="invalid_opaque_payload",
        )
    (record,) = caplog.records
    assert record.line_number == 3
    assert record.stage == "callback_payload"
    assert record.error_code == "invalid_opaque_payload"
    assert not hasattr(record, "outcome")
