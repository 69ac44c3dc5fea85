from __future__ import annotations

import math

from log_metrics.accumulator import MetricsState
from schemas.report_schema import (
    CacheSummary,
    Duration,
    IdentifierSummary,
    IntervalStats,
    JobSummary,
    LogEntry,
    MessageSummary,
    MetricsReport,
    ParseFailureSummary,
    ProcessingSummary,
    ThroughputSummary,
    WabaShare,
    WabaSummary,
)


class NoTimestampsError(RuntimeError):
    def __init__(self, message: str = "No valid timestamps found in log.", code: str = "no_timestamps") -> None:
        super().__init__(message)
        self.code = code


def _rate(count: int, seconds: float) -> float:
    if seconds == 0:
        return math.nan
    return round(count / seconds, 2)


def _ratio(numerator: float, denominator: float, digits: int = 2) -> float:
    if denominator == 0:
        return 0.0
    return round(numerator / denominator, digits)


def _percent(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return round(part / whole * 100, 2)


def _processing_summary(state: MetricsState) -> ProcessingSummary:
    elapsed = [item.elapsed_ms for item in state.processing_times]
    if not elapsed:
        return ProcessingSummary(measured_messages=0)
    return ProcessingSummary(
        avg_time_ms=round(sum(elapsed) / len(elapsed), 2),
        min_time_ms=round(min(elapsed), 2),
        max_time_ms=round(max(elapsed), 2),
        measured_messages=len(elapsed),
    )


def _throughput_summary(state: MetricsState) -> ThroughputSummary:
    peak_messages = 0
    peak_interval: str | None = None
    intervals: list[IntervalStats] = []
    for key in sorted(state.buckets):
        bucket = state.buckets[key]
        if bucket.messages > peak_messages:
            peak_messages = bucket.messages
            peak_interval = key
        intervals.append(
            IntervalStats(
                time_window=key,
                messages=bucket.messages,
                cache_hits=bucket.cache_hits,
                jobs=bucket.jobs,
                stores=bucket.stores,
            )
        )
    return ThroughputSummary(
        peak_messages_per_minute=peak_messages,
        peak_interval=peak_interval,
        intervals=intervals,
    )


def compute_report(state: MetricsState) -> MetricsReport:
    """Build the read-only report from a finished scan.

    Raises NoTimestampsError when no line ever carried a timestamp.
    """
    if state.start_time is None or state.end_time is None:
        raise NoTimestampsError()

    duration_ms = round((state.end_time - state.start_time).total_seconds() * 1000)
    seconds = duration_ms / 1000
    sent = state.messages_sent

    distribution = {
        waba: WabaShare(
            messages=stats.count,
            unique_message_ids=len(stats.message_ids),
            unique_wamids=len(stats.wamids),
            percent_of_total=_percent(stats.count, sent),
        )
        for waba, stats in state.waba_stats.items()
    }

    return MetricsReport(
        start_time=state.start_time.isoformat(),
        end_time=state.end_time.isoformat(),
        duration=Duration(
            milliseconds=duration_ms,
            seconds=round(seconds, 2),
            minutes=round(seconds / 60, 2),
        ),
        messages=MessageSummary(
            total=sent,
            per_second=_rate(sent, seconds),
            success_rate=_percent(state.store_operations, sent),
        ),
        jobs=JobSummary(
            total=state.completed_jobs,
            unique=len(state.job_ids),
            per_second=_rate(state.completed_jobs, seconds),
        ),
        waba_numbers=WabaSummary(
            numbers=sorted(state.waba_numbers),
            count=len(state.waba_numbers),
            message_distribution=distribution,
        ),
        cache_metrics=CacheSummary(
            hits=state.cache_hits,
            hits_per_waba_number=_ratio(state.cache_hits, len(state.waba_numbers)),
        ),
        store_operations=state.store_operations,
        message_ids=IdentifierSummary(
            unique=len(state.message_ids),
            ratio=_ratio(len(state.message_ids), sent, digits=4),
        ),
        wamids=IdentifierSummary(
            unique=len(state.wamids),
            ratio=_ratio(len(state.wamids), sent, digits=4),
        ),
        processing=_processing_summary(state),
        throughput=_throughput_summary(state),
        log_levels=dict(state.log_levels),
        errors=[LogEntry(timestamp=e.timestamp, message=e.message) for e in state.errors],
        warnings=[LogEntry(timestamp=w.timestamp, message=w.message) for w in state.warnings],
        parse_failures=ParseFailureSummary(
            lines=state.line_failures,
            nested_payloads=state.nested_failures,
        ),
        pending_messages=len(state.pending),
        lines_scanned=state.lines_scanned,
    )
