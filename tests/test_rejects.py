from __future__ import annotations

import json
from pathlib import Path

from log_metrics.rejects import RejectedLineStore


def test_rejected_line_store_appends_and_filters(tmp_path: Path) -> None:
    store = RejectedLineStore(file_path=tmp_path / "nested" / "rejected.jsonl")
    store.write_rejection({"line_number": 1, "error_code": "invalid_json"})
    store.write_rejection({"line_number": 4, "error_code": "invalid_envelope"})

    lines = store.path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["line_number"] == 1
    assert "recorded_at_utc" in first
    assert [r["line_number"] for r in store.list_rejections(error_code="invalid_envelope")] == [4]


def test_list_rejections_on_missing_file(tmp_path: Path) -> None:
    store = RejectedLineStore(file_path=tmp_path / "rejected.jsonl")
    assert store.list_rejections() == []


def test_reject_line_keeps_a_bounded_excerpt(tmp_path: Path) -> None:
    store = RejectedLineStore(file_path=tmp_path / "rejected.jsonl")
    store.reject_line(
        line="{" + "x" * 500,
        line_number=7,
        stage="envelope",
        error_code="invalid_json",
        error_message="Malformed JSON log line",
    )
    store.reject_line(
        line="2025-02-30 10:00:00 info: Job ID 2 completed successfully",
        line_number=8,
        stage="timestamp",
        error_code="invalid_timestamp",
        error_message="Impossible timestamp: 2025-02-30 10:00:00",
    )

    long_line, short_line = store.list_rejections()
    assert len(long_line["line_excerpt"]) == 200
    assert long_line["truncated"] is True
    assert short_line["truncated"] is False
    assert short_line["stage"] == "timestamp"
