from __future__ import annotations

import json
import math
from html import escape
from string import Template
from typing import Any

from schemas.report_schema import LogEntry, MetricsReport

CHART_JS_URL = "https://cdnjs.cloudflare.com/ajax/libs/Chart.js/3.9.1/chart.min.js"

PIE_COLORS = (
    "#25D366", "#128C7E", "#075E54", "#34B7F1", "#5BC0DE",
    "#4BC0C0", "#36A2EB", "#9966FF", "#FF9F40", "#FF6384",
)

_PAGE = Template(
    """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>WhatsApp Message Log Analysis</title>
  <style>
    body { font-family: Arial, sans-serif; margin: 20px; background-color: #f9f9f9; }
    .container { max-width: 1200px; margin: 0 auto; }
    h1 { color: #25D366; }
    .metric-card { background-color: white; border-radius: 8px; padding: 15px; margin-bottom: 15px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
    .metrics-grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(300px, 1fr)); gap: 15px; }
    .metric-title { font-weight: bold; margin-bottom: 8px; color: #075E54; }
    .metric-value { font-size: 1.2em; }
    .highlight { color: #128C7E; }
    .error { color: #FF0000; }
    .warning { color: #FFA500; }
    .chart-container { height: 300px; margin-bottom: 20px; }
    table { width: 100%; border-collapse: collapse; margin-bottom: 20px; }
    th, td { padding: 8px; text-align: left; border-bottom: 1px solid #ddd; }
    th { background-color: #f2f2f2; }
    tr:hover { background-color: #f5f5f5; }
    .collapsible { background-color: #f2f2f2; color: #075E54; cursor: pointer; padding: 18px; width: 100%; border: none; text-align: left; outline: none; font-size: 15px; border-radius: 8px; margin-bottom: 5px; }
    .active, .collapsible:hover { background-color: #e6e6e6; }
    .content { padding: 0 18px; max-height: 0; overflow: hidden; transition: max-height 0.2s ease-out; background-color: #f9f9f9; border-radius: 0 0 8px 8px; }
  </style>
  <script src="$chart_js_url"></script>
</head>
<body>
  <div class="container">
    <h1>WhatsApp Message Log Analysis</h1>

    <div class="metric-card">
      <div class="metric-title">Time Range &amp; Overview</div>
      <div class="metric-value">From: $start_time</div>
      <div class="metric-value">To: $end_time</div>
      <div class="metric-value">Duration: ${duration_seconds}s ($duration_minutes min)</div>
      <div class="metric-value">Success Rate: <span class="highlight">$success_rate</span></div>
    </div>

    <div class="metrics-grid">
      <div class="metric-card">
        <div class="metric-title">Message Metrics</div>
        <div class="metric-value">Total Messages: <span class="highlight">$messages_total</span></div>
        <div class="metric-value">Messages/Sec: <span class="highlight">$messages_per_second</span></div>
        <div class="metric-value">Unique WAMIDs: $unique_wamids</div>
        <div class="metric-value">Unique Message IDs: $unique_message_ids</div>
      </div>
      <div class="metric-card">
        <div class="metric-title">WABA Numbers</div>
        <div class="metric-value">Count: <span class="highlight">$waba_count</span></div>
      </div>
      <div class="metric-card">
        <div class="metric-title">Job Metrics</div>
        <div class="metric-value">Completed Jobs: $jobs_total</div>
        <div class="metric-value">Jobs/Second: $jobs_per_second</div>
        <div class="metric-value">Unique Job IDs: $jobs_unique</div>
      </div>
      <div class="metric-card">
        <div class="metric-title">Cache Metrics</div>
        <div class="metric-value">Cache Hits: $cache_hits</div>
        <div class="metric-value">Hits/WABA: $hits_per_waba</div>
      </div>
      <div class="metric-card">
        <div class="metric-title">Storage Operations</div>
        <div class="metric-value">Successful Stores: $store_operations</div>
        <div class="metric-value">Awaiting Store: $pending_messages</div>
      </div>
      <div class="metric-card">
        <div class="metric-title">Processing Times</div>
        <div class="metric-value">Average: <span class="highlight">$avg_time</span></div>
        <div class="metric-value">Min: $min_time</div>
        <div class="metric-value">Max: $max_time</div>
        <div class="metric-value">Measured: $measured_messages</div>
      </div>
    </div>

    <div class="metric-card">
      <div class="metric-title">Message Throughput Over Time</div>
      <div class="chart-container"><canvas id="throughputChart"></canvas></div>
    </div>

    <div class="metric-card">
      <div class="metric-title">WABA Number Distribution</div>
      <div class="chart-container"><canvas id="wabaDistributionChart"></canvas></div>
    </div>

    <button class="collapsible">WABA Message Distribution Details</button>
    <div class="content">
      <table>
        <tr><th>WABA Number</th><th>Messages</th><th>Unique Message IDs</th><th>Unique WAMIDs</th><th>% of Total</th></tr>
$waba_rows
      </table>
    </div>

    <button class="collapsible">Throughput by Time Interval</button>
    <div class="content">
      <table>
        <tr><th>Time Window</th><th>Messages</th><th>Store Operations</th><th>Cache Hits</th><th>Jobs</th></tr>
$interval_rows
      </table>
    </div>
$error_section$warning_section
  </div>

  <script>
    const chartData = $chart_data;
    window.onload = function() {
      new Chart(document.getElementById('throughputChart').getContext('2d'), {
        type: 'line',
        data: {
          labels: chartData.labels,
          datasets: [
            { label: 'Messages', data: chartData.messages, borderColor: '#25D366', backgroundColor: 'rgba(37, 211, 102, 0.1)', tension: 0.1 },
            { label: 'Store Operations', data: chartData.stores, borderColor: '#128C7E', backgroundColor: 'rgba(18, 140, 126, 0.1)', tension: 0.1 },
            { label: 'Cache Hits', data: chartData.cacheHits, borderColor: '#075E54', backgroundColor: 'rgba(7, 94, 84, 0.1)', tension: 0.1 }
          ]
        },
        options: { responsive: true, maintainAspectRatio: false, scales: { y: { beginAtZero: true } } }
      });

      new Chart(document.getElementById('wabaDistributionChart').getContext('2d'), {
        type: 'pie',
        data: {
          labels: chartData.waba.labels,
          datasets: [{ data: chartData.waba.messages, backgroundColor: chartData.colors }]
        },
        options: {
          responsive: true,
          maintainAspectRatio: false,
          plugins: {
            legend: { position: 'right' },
            tooltip: {
              callbacks: {
                label: function(context) {
                  const percent = chartData.waba.percents[context.dataIndex];
                  return (context.label || '') + ': ' + (context.raw || 0) + ' (' + percent + '%)';
                }
              }
            }
          }
        }
      });

      const coll = document.getElementsByClassName("collapsible");
      for (let i = 0; i < coll.length; i++) {
        coll[i].addEventListener("click", function() {
          this.classList.toggle("active");
          const content = this.nextElementSibling;
          content.style.maxHeight = content.style.maxHeight ? null : content.scrollHeight + "px";
        });
      }
    };
  </script>
</body>
</html>
"""
)


def format_number(value: float | int | None, suffix: str = "") -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "N/A"
    if isinstance(value, float):
        return f"{value:.2f}{suffix}"
    return f"{value}{suffix}"


def _row(cells: list[Any]) -> str:
    return "        <tr>" + "".join(f"<td>{escape(str(c))}</td>" for c in cells) + "</tr>"


def _log_section(title: str, css_class: str, entries: list[LogEntry]) -> str:
    if not entries:
        return ""
    rows = "\n".join(_row([e.timestamp or "", e.message]) for e in entries)
    return (
        f'\n    <button class="collapsible {css_class}">{title} ({len(entries)})</button>\n'
        '    <div class="content">\n'
        "      <table>\n"
        "        <tr><th>Timestamp</th><th>Message</th></tr>\n"
        f"{rows}\n"
        "      </table>\n"
        "    </div>\n"
    )


def _script_json(data: dict[str, Any]) -> str:
    return json.dumps(data, ensure_ascii=True).replace("</", "<\\/")


def build_chart_data(report: MetricsReport) -> dict[str, Any]:
    intervals = report.throughput.intervals
    distribution = report.waba_numbers.message_distribution
    return {
        "labels": [i.time_window for i in intervals],
        "messages": [i.messages for i in intervals],
        "stores": [i.stores for i in intervals],
        "cacheHits": [i.cache_hits for i in intervals],
        "waba": {
            "labels": list(distribution),
            "messages": [share.messages for share in distribution.values()],
            "percents": [share.percent_of_total for share in distribution.values()],
        },
        "colors": list(PIE_COLORS),
    }


def render_html_report(report: MetricsReport) -> str:
    distribution = report.waba_numbers.message_distribution
    waba_rows = "\n".join(
        _row(
            [
                waba,
                share.messages,
                share.unique_message_ids,
                share.unique_wamids,
                format_number(share.percent_of_total, "%"),
            ]
        )
        for waba, share in distribution.items()
    )
    interval_rows = "\n".join(
        _row([i.time_window, i.messages, i.stores, i.cache_hits, i.jobs])
        for i in report.throughput.intervals
    )
    processing = report.processing
    return _PAGE.substitute(
        chart_js_url=CHART_JS_URL,
        start_time=escape(report.start_time),
        end_time=escape(report.end_time),
        duration_seconds=format_number(report.duration.seconds),
        duration_minutes=format_number(report.duration.minutes),
        success_rate=format_number(report.messages.success_rate, "%"),
        messages_total=report.messages.total,
        messages_per_second=format_number(report.messages.per_second),
        unique_wamids=report.wamids.unique,
        unique_message_ids=report.message_ids.unique,
        waba_count=report.waba_numbers.count,
        jobs_total=report.jobs.total,
        jobs_per_second=format_number(report.jobs.per_second),
        jobs_unique=report.jobs.unique,
        cache_hits=report.cache_metrics.hits,
        hits_per_waba=format_number(report.cache_metrics.hits_per_waba_number),
        store_operations=report.store_operations,
        pending_messages=report.pending_messages,
        avg_time=format_number(processing.avg_time_ms, "ms"),
        min_time=format_number(processing.min_time_ms, "ms"),
        max_time=format_number(processing.max_time_ms, "ms"),
        measured_messages=processing.measured_messages,
        waba_rows=waba_rows,
        interval_rows=interval_rows,
        error_section=_log_section("Errors", "error", report.errors),
        warning_section=_log_section("Warnings", "warning", report.warnings),
        chart_data=_script_json(build_chart_data(report)),
    )
