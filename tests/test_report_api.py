from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from log_metrics.derived import compute_report
from log_metrics.pipeline import scan_lines
from log_metrics.rejects import RejectedLineStore
from log_metrics.reporting import emit_reports
from log_metrics.report_api import create_report_app

LINES = [
    "2025-05-16 10:00:00 info: Job ID 1 completed successfully",
    "2025-05-16 10:00:01 error: first failure",
    "2025-05-16 10:00:02 error: second failure",
    "2025-05-16 10:00:03 warn: slow store",
]


def _write_reports(report_dir: Path) -> None:
    report = compute_report(scan_lines(LINES))
    emit_reports(report, output_format="json", output_dir=report_dir)
    emit_reports(report, output_format="html", output_dir=report_dir)


def test_report_endpoints_serve_written_artifacts(tmp_path: Path) -> None:
    _write_reports(tmp_path)
    client = TestClient(create_report_app(report_dir=tmp_path))

    health = client.get("/health")
    metrics = client.get("/metrics")
    html = client.get("/report")
    errors = client.get("/errors", params={"limit": 1})
    warnings = client.get("/warnings")

    assert health.status_code == 200
    assert health.json()["status"] == "ok"
    assert metrics.status_code == 200
    assert metrics.json()["jobs"]["total"] == 1
    assert html.status_code == 200
    assert "text/html" in html.headers["content-type"]
    assert "WhatsApp Message Log Analysis" in html.text
    assert errors.json()["count"] == 2
    assert len(errors.json()["items"]) == 1
    assert "second failure" in errors.json()["items"][0]["message"]
    assert warnings.json()["count"] == 1


def test_report_endpoints_return_404_without_artifacts(tmp_path: Path) -> None:
    client = TestClient(create_report_app(report_dir=tmp_path))

    assert client.get("/health").status_code == 200
    assert client.get("/metrics").status_code == 404
    assert client.get("/report").status_code == 404
    assert client.get("/errors").status_code == 404


@pytest.mark.parametrize("path", ["/errors", "/warnings", "/rejections"])
@pytest.mark.parametrize("limit", [0, -1])
def test_non_positive_limit_is_rejected(tmp_path: Path, path: str, limit: int) -> None:
    _write_reports(tmp_path)
    client = TestClient(create_report_app(report_dir=tmp_path, rejects_path=tmp_path / "rejected.jsonl"))

    assert client.get(path, params={"limit": limit}).status_code == 422


def test_rejections_endpoint_lists_skipped_lines(tmp_path: Path) -> None:
    rejects_path = tmp_path / "rejected.jsonl"
    scan_lines(
        ["{broken", "2025-02-30 10:00:00 info: Job ID 2 completed successfully", "{also broken"],
        rejects=RejectedLineStore(rejects_path),
    )
    client = TestClient(create_report_app(report_dir=tmp_path, rejects_path=rejects_path))

    everything = client.get("/rejections")
    timestamps = client.get("/rejections", params={"error_code": "invalid_timestamp"})
    latest = client.get("/rejections", params={"limit": 1})

    assert everything.json()["count"] == 3
    assert [r["line_number"] for r in timestamps.json()["items"]] == [2]
    assert [r["line_number"] for r in latest.json()["items"]] == [3]


def test_rejections_endpoint_without_store_returns_404(tmp_path: Path) -> None:
    client = TestClient(create_report_app(report_dir=tmp_path))
    assert client.get("/rejections").status_code == 404
