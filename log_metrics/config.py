from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

OUTPUT_FORMATS: tuple[str, ...] = ("json", "html", "console", "all")


def _parse_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got: {raw}") from exc


def _optional(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    default_output: str = "all"
    json_filename: str = "log-metrics.json"
    html_filename: str = "log-metrics-report.html"
    json_logger_marker: str = "webhook"
    rejects_path: str | None = None
    report_dir: str = "."
    server_host: str = "127.0.0.1"
    server_port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        default_output = os.getenv("LOG_METRICS_DEFAULT_OUTPUT", "all").strip().lower()
        if default_output not in OUTPUT_FORMATS:
            raise ValueError(
                f"LOG_METRICS_DEFAULT_OUTPUT must be one of: {', '.join(OUTPUT_FORMATS)}"
            )

        json_filename = os.getenv("LOG_METRICS_JSON_FILENAME", "log-metrics.json").strip()
        html_filename = os.getenv("LOG_METRICS_HTML_FILENAME", "log-metrics-report.html").strip()
        for key, value in {
            "LOG_METRICS_JSON_FILENAME": json_filename,
            "LOG_METRICS_HTML_FILENAME": html_filename,
        }.items():
            if not value or Path(value).name != value:
                raise ValueError(f"{key} must be a bare file name")

        marker = os.getenv("LOG_METRICS_JSON_LOGGER_MARKER", "webhook").strip()
        if not marker:
            raise ValueError("LOG_METRICS_JSON_LOGGER_MARKER must not be empty")

        port = _parse_int("LOG_METRICS_SERVER_PORT", 8000)
        if not 0 < port < 65536:
            raise ValueError("LOG_METRICS_SERVER_PORT must be between 1 and 65535")

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            default_output=default_output,
            json_filename=json_filename,
            html_filename=html_filename,
            json_logger_marker=marker,
            rejects_path=_optional("LOG_METRICS_REJECTS_PATH"),
            report_dir=os.getenv("LOG_METRICS_REPORT_DIR", "."),
            server_host=os.getenv("LOG_METRICS_SERVER_HOST", "127.0.0.1"),
            server_port=port,
        )


def load_dotenv(path: str | Path = ".env") -> None:
    env_path = Path(path)
    if not env_path.exists():
        return
    for line in env_path.read_text(encoding="utf-8").splitlines():
        entry = line.strip()
        if not entry or entry.startswith("#") or "=" not in entry:
            continue
        key, value = entry.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        os.environ.setdefault(key, value)
