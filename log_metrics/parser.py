from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from log_metrics.events import CacheHit, Event, JobCompleted, LogLine, MessageSent, MessageStored
from schemas.log_schema import CallbackPayload, JsonLogEnvelope

TIMESTAMP_RE = re.compile(r"(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})")
LOG_LEVEL_RE = re.compile(r"(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}) (\w+):")
JOB_COMPLETED_RE = re.compile(r"Job ID (\d+) completed successfully")
MESSAGE_SENT_RE = re.compile(
    r"wabaNumber (\d+) ::: (\d+) ::: Completed successfully with wamid: ([a-z0-9]+)"
    r" ::: Clevertap MsgID: ([A-Z0-9-]+)"
)
STORE_SUCCESS_RE = re.compile(
    r"(\d+) ::: CleverTapStoreWamidMsgidService: ([a-z0-9]+) ::: ([A-Z0-9-]+) stored successfully"
)
CACHE_HIT_RE = re.compile(r"Cache hit for wabaNumber: (\d+)")

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_RECORDED_LEVELS = {"error", "warn"}
_OPAQUE_MESSAGE_ID_KEYS = ("msgId", "messageId", "message_id", "msg_id")


class LineParseError(ValueError):
    def __init__(self, message: str, code: str = "invalid_json") -> None:
        super().__init__(message)
        self.code = code


class NestedPayloadParseError(ValueError):
    def __init__(self, message: str, code: str = "invalid_callback_payload") -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class ParsedLine:
    events: tuple[Event, ...] = ()
    nested_errors: tuple[NestedPayloadParseError, ...] = ()


def parse_timestamp(text: str) -> datetime:
    try:
        return datetime.strptime(text, _TIMESTAMP_FORMAT)
    except ValueError as exc:
        raise LineParseError(f"Impossible timestamp: {text}", code="invalid_timestamp") from exc


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] not in (None, ""):
            return data[key]
    return default


def is_json_line(line: str) -> bool:
    return line.lstrip().startswith("{")


def parse_line(line: str, *, json_logger_marker: str = "webhook") -> ParsedLine:
    """Extract every event a single log line carries.

    JSON envelopes are detected by their leading brace; everything else goes
    through the plain-text matchers. Raises LineParseError for an envelope
    that cannot be decoded or lacks a required field, and for a timestamp
    that names no real calendar moment.
    """
    if is_json_line(line):
        return _parse_json_line(line, json_logger_marker=json_logger_marker)
    return ParsedLine(events=tuple(_parse_text_line(line)))


def _parse_text_line(line: str) -> list[Event]:
    events: list[Event] = []

    level_match = LOG_LEVEL_RE.search(line)
    if level_match:
        raw_timestamp = level_match.group(1)
        level = level_match.group(2).lower()
        events.append(
            LogLine(
                timestamp=parse_timestamp(raw_timestamp),
                level=level,
                raw_timestamp=raw_timestamp,
                message=line if level in _RECORDED_LEVELS else None,
            )
        )

    timestamp_match = TIMESTAMP_RE.search(line)
    timestamp = parse_timestamp(timestamp_match.group(1)) if timestamp_match else None
    events.extend(_match_content(line, timestamp, match_sent=True))
    return events


def _match_content(text: str, timestamp: datetime | None, *, match_sent: bool) -> list[Event]:
    events: list[Event] = []

    job_match = JOB_COMPLETED_RE.search(text)
    if job_match:
        events.append(JobCompleted(timestamp=timestamp, job_id=job_match.group(1)))

    sent_match = MESSAGE_SENT_RE.search(text) if match_sent else None
    if sent_match:
        events.append(
            MessageSent(
                timestamp=timestamp,
                waba_number=sent_match.group(1),
                identifier=sent_match.group(2),
                wamid=sent_match.group(3),
                message_id=sent_match.group(4),
            )
        )

    store_match = STORE_SUCCESS_RE.search(text)
    if store_match:
        events.append(
            MessageStored(
                timestamp=timestamp,
                waba_number=store_match.group(1),
                wamid=store_match.group(2),
                message_id=store_match.group(3),
            )
        )

    cache_match = CACHE_HIT_RE.search(text)
    if cache_match:
        events.append(CacheHit(timestamp=timestamp, waba_number=cache_match.group(1)))
    return events


def _parse_json_line(line: str, *, json_logger_marker: str) -> ParsedLine:
    try:
        raw = json.loads(line)
    except json.JSONDecodeError as exc:
        raise LineParseError(f"Malformed JSON log line: {exc.msg}", code="invalid_json") from exc
    if not isinstance(raw, dict):
        raise LineParseError("JSON log line must be an object", code="invalid_json")
    try:
        envelope = JsonLogEnvelope.model_validate(raw)
    except ValidationError as exc:
        missing = sorted({".".join(map(str, e["loc"])) for e in exc.errors()})
        raise LineParseError(
            f"JSON log line has invalid or missing fields: {', '.join(missing)}",
            code="invalid_envelope",
        ) from exc

    timestamp = _naive_utc(envelope.timestamp)
    level = envelope.level.strip().lower()
    events: list[Event] = [
        LogLine(
            timestamp=timestamp,
            level=level,
            raw_timestamp=timestamp.strftime(_TIMESTAMP_FORMAT),
            message=envelope.message if level in _RECORDED_LEVELS else None,
        )
    ]
    events.extend(_match_content(envelope.message, timestamp, match_sent=False))

    nested_errors: list[NestedPayloadParseError] = []
    if json_logger_marker in envelope.logger_name:
        try:
            sent = _extract_read_callback(envelope.message, timestamp)
        except NestedPayloadParseError as exc:
            nested_errors.append(exc)
        else:
            if sent is not None:
                events.append(sent)
    return ParsedLine(events=tuple(events), nested_errors=tuple(nested_errors))


def _extract_read_callback(message: str, timestamp: datetime) -> MessageSent | None:
    start = message.find("{")
    end = message.rfind("}")
    if start < 0 or end <= start:
        return None
    try:
        payload = CallbackPayload.model_validate_json(message[start : end + 1])
    except ValidationError as exc:
        raise NestedPayloadParseError(
            f"Embedded callback payload is invalid: {exc.error_count()} error(s)",
            code="invalid_callback_payload",
        ) from exc

    value = payload.value
    if not value.statuses or value.statuses[0].status != "read":
        return None
    if value.metadata is None:
        raise NestedPayloadParseError(
            "Read callback carries no metadata.phone_number_id", code="invalid_callback_payload"
        )
    status = value.statuses[0]
    return MessageSent(
        timestamp=timestamp,
        waba_number=value.metadata.phone_number_id,
        wamid=status.id,
        message_id=_opaque_message_id(status.biz_opaque_callback_data),
    )


def _opaque_message_id(raw: str | None) -> str | None:
    if raw is None or not raw.strip():
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise NestedPayloadParseError(
            "biz_opaque_callback_data is not valid JSON", code="invalid_opaque_payload"
        ) from exc
    if not isinstance(data, dict):
        raise NestedPayloadParseError(
            "biz_opaque_callback_data must be a JSON object", code="invalid_opaque_payload"
        )
    message_id = _pick(data, *_OPAQUE_MESSAGE_ID_KEYS)
    return str(message_id) if message_id is not None else None
