from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

LINE_EXCERPT_LENGTH = 200


class RejectedLineStore:
    """Append-only JSONL record of log lines the scanner could not use."""

    def __init__(self, file_path: str | Path = "logs/rejected_lines.jsonl") -> None:
        self._path = Path(file_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def reject_line(
        self,
        *,
        line: str,
        line_number: int,
        stage: str,
        error_code: str,
        error_message: str,
    ) -> None:
        self.write_rejection(
            {
                "line_number": line_number,
                "stage": stage,
                "error_code": error_code,
                "error_message": error_message,
                "line_excerpt": line[:LINE_EXCERPT_LENGTH],
                "truncated": len(line) > LINE_EXCERPT_LENGTH,
            }
        )

    def write_rejection(self, payload: dict[str, Any]) -> None:
        record = {"recorded_at_utc": datetime.now(timezone.utc).isoformat(), **payload}
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, ensure_ascii=True) + "\n")

    def list_rejections(self, error_code: str | None = None) -> list[dict[str, Any]]:
        """Rejected lines in file order, optionally only those with one error code."""
        if not self._path.exists():
            return []
        with self._path.open("r", encoding="utf-8") as fh:
            records = [json.loads(raw) for raw in fh if raw.strip()]
        if error_code:
            records = [r for r in records if r.get("error_code") == error_code]
        return records
