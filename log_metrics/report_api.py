from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import HTMLResponse

from log_metrics.rejects import RejectedLineStore


def create_report_app(
    *,
    report_dir: str | Path = ".",
    json_filename: str = "log-metrics.json",
    html_filename: str = "log-metrics-report.html",
    rejects_path: str | Path | None = None,
) -> FastAPI:
    app = FastAPI(title="Log Metrics Report API", version="0.1.0")
    json_path = Path(report_dir) / json_filename
    html_path = Path(report_dir) / html_filename

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/metrics")
    def metrics() -> dict[str, Any]:
        return _read_report(json_path)

    @app.get("/report", response_class=HTMLResponse)
    def report() -> HTMLResponse:
        if not html_path.exists():
            raise HTTPException(status_code=404, detail=f"No HTML report at {html_path.name}")
        return HTMLResponse(html_path.read_text(encoding="utf-8"))

    @app.get("/errors")
    def errors(limit: int = Query(50, ge=1)) -> dict[str, Any]:
        items = _read_report(json_path).get("errors", [])
        return {"count": len(items), "items": items[-limit:]}

    @app.get("/warnings")
    def warnings(limit: int = Query(50, ge=1)) -> dict[str, Any]:
        items = _read_report(json_path).get("warnings", [])
        return {"count": len(items), "items": items[-limit:]}

    @app.get("/rejections")
    def rejections(
        error_code: str | None = None,
        limit: int = Query(50, ge=1),
    ) -> dict[str, Any]:
        if rejects_path is None:
            raise HTTPException(status_code=404, detail="Rejected line store is not configured")
        items = RejectedLineStore(rejects_path).list_rejections(error_code=error_code)
        return {"count": len(items), "items": items[-limit:]}

    return app


def _read_report(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise HTTPException(status_code=404, detail=f"No metrics report at {path.name}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise HTTPException(status_code=500, detail="Metrics report is not a JSON object")
    return payload
