from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from log_metrics.html_report import format_number, render_html_report
from schemas.report_schema import MetricsReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutputSelection:
    json: bool
    html: bool
    console: bool

    @classmethod
    def from_format(cls, output_format: str) -> "OutputSelection":
        fmt = output_format.strip().lower()
        if fmt not in {"json", "html", "console", "all"}:
            raise ValueError(f"Unknown output format: {output_format}")
        every = fmt == "all"
        return cls(json=every or fmt == "json", html=every or fmt == "html", console=every or fmt == "console")


def write_json_report(report: MetricsReport, out_path: str | Path) -> Path:
    target = Path(out_path)
    target.write_text(report.to_json(), encoding="utf-8")
    logger.info("JSON metrics saved to: %s", target, extra={"output_path": str(target)})
    return target


def write_html_report(report: MetricsReport, out_path: str | Path) -> Path:
    target = Path(out_path)
    target.write_text(render_html_report(report), encoding="utf-8")
    logger.info("HTML report generated at: %s", target, extra={"output_path": str(target)})
    return target


def render_console_summary(report: MetricsReport) -> str:
    processing = report.processing
    throughput = report.throughput
    lines = [
        "Log Metrics Summary:",
        f"Duration: {format_number(report.duration.seconds)}s ({format_number(report.duration.minutes)} min)",
        f"Messages: {report.messages.total} ({format_number(report.messages.per_second)}/sec)",
        f"Success Rate: {format_number(report.messages.success_rate, '%')}",
        f"Unique WABA Numbers: {report.waba_numbers.count}",
        f"Cache Hits: {report.cache_metrics.hits}",
        f"Completed Jobs: {report.jobs.total}",
        f"Average Processing Time: {format_number(processing.avg_time_ms, 'ms')}",
        f"Peak Throughput: {throughput.peak_messages_per_minute} messages/min"
        f" at {throughput.peak_interval or 'N/A'}",
    ]
    if report.errors:
        lines.append("")
        lines.append(f"Errors detected: {len(report.errors)}")
    if report.warnings:
        lines.append(f"Warnings detected: {len(report.warnings)}")
    failures = report.parse_failures
    if failures.lines or failures.nested_payloads:
        lines.append(f"Skipped lines: {failures.lines} (payload failures: {failures.nested_payloads})")
    return "\n".join(lines)


def emit_reports(
    report: MetricsReport,
    *,
    output_format: str,
    output_dir: str | Path,
    json_filename: str = "log-metrics.json",
    html_filename: str = "log-metrics-report.html",
) -> dict[str, Path]:
    """Write or print the report in every format the selection asks for."""
    selection = OutputSelection.from_format(output_format)
    target_dir = Path(output_dir)
    written: dict[str, Path] = {}
    if selection.json:
        written["json"] = write_json_report(report, target_dir / json_filename)
    if selection.console:
        print(render_console_summary(report))
    if selection.html:
        written["html"] = write_html_report(report, target_dir / html_filename)
    return written
