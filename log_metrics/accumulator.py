from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime

from log_metrics.events import CacheHit, Event, JobCompleted, LogLine, MessageSent, MessageStored

BUCKET_KEY_FORMAT = "%Y-%m-%d %H:%M"


@dataclass
class WabaStats:
    message_ids: set[str] = field(default_factory=set)
    wamids: set[str] = field(default_factory=set)
    count: int = 0


@dataclass
class TimeBucket:
    messages: int = 0
    cache_hits: int = 0
    jobs: int = 0
    stores: int = 0


@dataclass(frozen=True)
class PendingMessage:
    waba_number: str
    message_id: str | None
    sent_at: datetime | None


@dataclass(frozen=True)
class ProcessingTime:
    wamid: str
    message_id: str | None
    waba_number: str
    elapsed_ms: float


@dataclass(frozen=True)
class LogRecordEntry:
    timestamp: str | None
    message: str


@dataclass
class MetricsState:
    start_time: datetime | None = None
    end_time: datetime | None = None
    completed_jobs: int = 0
    messages_sent: int = 0
    store_operations: int = 0
    cache_hits: int = 0
    lines_scanned: int = 0
    line_failures: int = 0
    nested_failures: int = 0
    log_levels: Counter[str] = field(default_factory=Counter)
    job_ids: set[str] = field(default_factory=set)
    message_ids: set[str] = field(default_factory=set)
    wamids: set[str] = field(default_factory=set)
    waba_numbers: set[str] = field(default_factory=set)
    waba_stats: dict[str, WabaStats] = field(default_factory=dict)
    buckets: dict[str, TimeBucket] = field(default_factory=dict)
    pending: dict[str, PendingMessage] = field(default_factory=dict)
    processing_times: list[ProcessingTime] = field(default_factory=list)
    errors: list[LogRecordEntry] = field(default_factory=list)
    warnings: list[LogRecordEntry] = field(default_factory=list)

    def bucket_for(self, timestamp: datetime | None) -> TimeBucket | None:
        if timestamp is None:
            return None
        key = bucket_key(timestamp)
        bucket = self.buckets.get(key)
        if bucket is None:
            bucket = TimeBucket()
            self.buckets[key] = bucket
        return bucket


def bucket_key(timestamp: datetime) -> str:
    return timestamp.strftime(BUCKET_KEY_FORMAT)


def fold(state: MetricsState, event: Event) -> MetricsState:
    """Apply one event to the running state and return it."""
    if isinstance(event, LogLine):
        _on_log_line(state, event)
    elif isinstance(event, JobCompleted):
        _on_job_completed(state, event)
    elif isinstance(event, MessageSent):
        _on_message_sent(state, event)
    elif isinstance(event, MessageStored):
        _on_message_stored(state, event)
    elif isinstance(event, CacheHit):
        _on_cache_hit(state, event)
    else:
        raise TypeError(f"Unsupported event type: {type(event).__name__}")
    return state


def _on_log_line(state: MetricsState, event: LogLine) -> None:
    state.log_levels[event.level] += 1
    if event.timestamp is not None:
        if state.start_time is None or event.timestamp < state.start_time:
            state.start_time = event.timestamp
        if state.end_time is None or event.timestamp > state.end_time:
            state.end_time = event.timestamp
    state.bucket_for(event.timestamp)

    if event.level not in {"error", "warn"}:
        return
    entry = LogRecordEntry(timestamp=event.raw_timestamp, message=event.message or "")
    if event.level == "error":
        state.errors.append(entry)
    else:
        state.warnings.append(entry)


def _on_job_completed(state: MetricsState, event: JobCompleted) -> None:
    state.completed_jobs += 1
    state.job_ids.add(event.job_id)
    bucket = state.bucket_for(event.timestamp)
    if bucket is not None:
        bucket.jobs += 1


def _on_message_sent(state: MetricsState, event: MessageSent) -> None:
    state.messages_sent += 1
    state.waba_numbers.add(event.waba_number)
    state.wamids.add(event.wamid)
    if event.message_id is not None:
        state.message_ids.add(event.message_id)

    stats = state.waba_stats.setdefault(event.waba_number, WabaStats())
    if event.message_id is not None:
        stats.message_ids.add(event.message_id)
    stats.wamids.add(event.wamid)
    stats.count += 1

    state.pending[event.wamid] = PendingMessage(
        waba_number=event.waba_number,
        message_id=event.message_id,
        sent_at=event.timestamp,
    )
    bucket = state.bucket_for(event.timestamp)
    if bucket is not None:
        bucket.messages += 1


def _on_message_stored(state: MetricsState, event: MessageStored) -> None:
    state.store_operations += 1
    pending = state.pending.pop(event.wamid, None)
    if pending is not None and pending.sent_at is not None and event.timestamp is not None:
        elapsed = (event.timestamp - pending.sent_at).total_seconds() * 1000
        state.processing_times.append(
            ProcessingTime(
                wamid=event.wamid,
                message_id=event.message_id,
                waba_number=event.waba_number,
                elapsed_ms=elapsed,
            )
        )
    bucket = state.bucket_for(event.timestamp)
    if bucket is not None:
        bucket.stores += 1


def _on_cache_hit(state: MetricsState, event: CacheHit) -> None:
    state.cache_hits += 1
    state.waba_numbers.add(event.waba_number)
    bucket = state.bucket_for(event.timestamp)
    if bucket is not None:
        bucket.cache_hits += 1
