from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

_EXTRA_FIELDS = ("line_number", "stage", "error_code", "output_path", "outcome")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                payload[name] = getattr(record, name)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())
    if root.handlers:
        for handler in root.handlers:
            handler.setFormatter(JsonFormatter())
        return
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)


def log_line_event(
    logger: logging.Logger,
    level: int,
    message: str,
    *,
    line_number: int,
    stage: str | None = None,
    error_code: str | None = None,
    outcome: str | None = None,
) -> None:
    extra: dict[str, Any] = {"line_number": line_number}
    if stage is not None:
        extra["stage"] = stage
    if error_code is not None:
        extra["error_code"] = error_code
    if outcome is not None:
        extra["outcome"] = outcome
    logger.log(level, message, extra=extra)
