from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from log_metrics.pipeline import analyze_file, scan_lines
from log_metrics.rejects import RejectedLineStore


def _sent_line(ts: str, wamid: str, waba: str = "111", msg_id: str = "MSG-1") -> str:
    return (
        f"{ts} info: wabaNumber {waba} ::: 1 ::: Completed successfully with wamid: {wamid}"
        f" ::: Clevertap MsgID: {msg_id}"
    )


def _store_line(ts: str, wamid: str, waba: str = "111", msg_id: str = "MSG-1") -> str:
    return f"{ts} info: {waba} ::: CleverTapStoreWamidMsgidService: {wamid} ::: {msg_id} stored successfully"


def test_three_sends_and_one_matching_store(tmp_path: Path) -> None:
    log_file = tmp_path / "consumer.log"
    log_file.write_text(
        "\n".join(
            [
                _sent_line("2025-05-16 10:00:00", "wamida", msg_id="MSG-A"),
                _sent_line("2025-05-16 10:00:00", "wamidb", msg_id="MSG-B"),
                _sent_line("2025-05-16 10:00:00", "wamidc", msg_id="MSG-C"),
                _store_line("2025-05-16 10:00:02", "wamidb", msg_id="MSG-B"),
            ]
        )
        + "\n",
        encoding="utf-8",
    )

    report = analyze_file(log_file)

    assert report.messages.total == 3
    assert report.store_operations == 1
    assert report.processing.measured_messages == 1
    assert report.processing.avg_time_ms == 2000.0
    assert report.pending_messages == 2
    assert report.lines_scanned == 4


def test_malformed_json_line_is_skipped(caplog: pytest.LogCaptureFixture) -> None:
    lines = [
        '{"level": "error", "message": ',
        json.dumps(
            {
                "level": "error",
                "message": "delivery failed",
                "@timestamp": "2025-05-16T10:00:00Z",
                "logger_name": "consumer",
            }
        ),
    ]
    with caplog.at_level(logging.WARNING, logger="log_metrics.pipeline"):
        state = scan_lines(lines)

    assert state.line_failures == 1
    assert state.log_levels["error"] == 1
    assert len(state.errors) == 1
    assert any("Skipped line 1" in r.getMessage() for r in caplog.records)
    assert any(getattr(r, "error_code", None) == "invalid_json" for r in caplog.records)


def test_mixed_text_and_json_lines_share_one_state() -> None:
    lines = [
        _sent_line("2025-05-16 10:00:00", "wamidx"),
        json.dumps(
            {
                "level": "info",
                "message": "111 ::: CleverTapStoreWamidMsgidService: wamidx ::: MSG-1 stored successfully",
                "@timestamp": "2025-05-16T10:00:05Z",
                "logger_name": "store",
            }
        ),
    ]
    state = scan_lines(lines)
    assert state.messages_sent == 1
    assert state.store_operations == 1
    assert state.processing_times[0].elapsed_ms == 5000.0


def test_bucket_message_counts_sum_to_total() -> None:
    lines = [
        _sent_line("2025-05-16 10:00:10", "a1"),
        _sent_line("2025-05-16 10:01:10", "a2"),
        _sent_line("2025-05-16 10:01:50", "a3"),
        "2025-05-16 10:02:00 info: Cache hit for wabaNumber: 111",
    ]
    state = scan_lines(lines)
    assert sum(b.messages for b in state.buckets.values()) == state.messages_sent == 3


def test_failures_are_written_to_rejected_line_store(tmp_path: Path) -> None:
    store = RejectedLineStore(file_path=tmp_path / "rejected.jsonl")
    bad_callback = json.dumps(
        {
            "level": "info",
            "message": 'status: {"entry": []}',
            "@timestamp": "2025-05-16T10:00:00Z",
            "logger_name": "webhook.status",
        }
    )
    state = scan_lines(["{broken", bad_callback], rejects=store)

    assert state.line_failures == 1
    assert state.nested_failures == 1
    rejected = store.list_rejections()
    assert [r["stage"] for r in rejected] == ["envelope", "callback_payload"]
    assert rejected[0]["line_number"] == 1
    assert store.list_rejections(error_code="invalid_callback_payload")[0]["line_number"] == 2


def test_missing_log_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        analyze_file(tmp_path / "absent.log")


def test_impossible_timestamp_skips_only_that_line(caplog: pytest.LogCaptureFixture) -> None:
    lines = [
        "2025-05-16 10:00:00 info: Job ID 1 completed successfully",
        "2025-02-30 10:00:00 info: Job ID 2 completed successfully",
        "2025-05-16 24:00:00 info: Job ID 3 completed successfully",
        "2025-05-16 10:00:05 info: Job ID 4 completed successfully",
    ]
    with caplog.at_level(logging.WARNING, logger="log_metrics.pipeline"):
        state = scan_lines(lines)

    assert state.line_failures == 2
    assert state.completed_jobs == 2
    assert state.job_ids == {"1", "4"}
    assert [getattr(r, "stage", None) for r in caplog.records] == ["timestamp", "timestamp"]
    assert all(getattr(r, "error_code", None) == "invalid_timestamp" for r in caplog.records)


def test_non_read_callback_without_metadata_is_not_counted_as_failure(tmp_path: Path) -> None:
    store = RejectedLineStore(file_path=tmp_path / "rejected.jsonl")
    body = {"entry": [{"changes": [{"value": {"statuses": [{"id": "w1", "status": "delivered"}]}}]}]}
    line = json.dumps(
        {
            "level": "info",
            "message": f"status: {json.dumps(body)}",
            "@timestamp": "2025-05-16T10:00:00Z",
            "logger_name": "webhook.status",
        }
    )
    state = scan_lines([line], rejects=store)

    assert state.nested_failures == 0
    assert state.messages_sent == 0
    assert store.list_rejections() == []
