from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from log_metrics.accumulator import MetricsState, fold
from log_metrics.derived import compute_report
from log_metrics.logger import log_line_event
from log_metrics.parser import LineParseError, NestedPayloadParseError, parse_line
from log_metrics.rejects import RejectedLineStore
from schemas.report_schema import MetricsReport

logger = logging.getLogger(__name__)


def scan_lines(
    lines: Iterable[str],
    *,
    json_logger_marker: str = "webhook",
    rejects: RejectedLineStore | None = None,
    state: MetricsState | None = None,
) -> MetricsState:
    """Fold every line of a log stream into a MetricsState.

    Parse failures are logged, counted and optionally written to the rejected
    line store; they never stop the scan.
    """
    active = state or MetricsState()
    for line_number, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        active.lines_scanned += 1
        try:
            parsed = parse_line(line, json_logger_marker=json_logger_marker)
        except LineParseError as exc:
            active.line_failures += 1
            stage = "timestamp" if exc.code == "invalid_timestamp" else "envelope"
            _report_failure(exc, line, line_number, stage=stage, rejects=rejects)
            continue

        for nested in parsed.nested_errors:
            active.nested_failures += 1
            _report_failure(nested, line, line_number, stage="callback_payload", rejects=rejects)
        for event in parsed.events:
            fold(active, event)
    return active


def _report_failure(
    exc: LineParseError | NestedPayloadParseError,
    line: str,
    line_number: int,
    *,
    stage: str,
    rejects: RejectedLineStore | None,
) -> None:
    log_line_event(
        logger,
        logging.WARNING,
        f"Skipped line {line_number}: {exc}",
        line_number=line_number,
        stage=stage,
        error_code=exc.code,
        outcome="skipped",
    )
    if rejects is not None:
        rejects.reject_line(
            line=line,
            line_number=line_number,
            stage=stage,
            error_code=exc.code,
            error_message=str(exc),
        )


def scan_file(
    path: str | Path,
    *,
    json_logger_marker: str = "webhook",
    rejects: RejectedLineStore | None = None,
) -> MetricsState:
    log_path = Path(path)
    with log_path.open("r", encoding="utf-8", errors="replace") as fh:
        state = scan_lines(fh, json_logger_marker=json_logger_marker, rejects=rejects)
    logger.info(
        "Scanned %d lines from %s (%d line failures, %d payload failures)",
        state.lines_scanned,
        log_path,
        state.line_failures,
        state.nested_failures,
    )
    return state


def analyze_file(
    path: str | Path,
    *,
    json_logger_marker: str = "webhook",
    rejects: RejectedLineStore | None = None,
) -> MetricsReport:
    state = scan_file(path, json_logger_marker=json_logger_marker, rejects=rejects)
    return compute_report(state)
