from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from log_metrics.config import OUTPUT_FORMATS, Settings, load_dotenv
from log_metrics.derived import NoTimestampsError
from log_metrics.logger import configure_logging
from log_metrics.pipeline import analyze_file
from log_metrics.rejects import RejectedLineStore
from log_metrics.reporting import emit_reports


def _build_parser(default_output: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="log-metrics",
        description="Summarize WhatsApp message-delivery consumer logs",
    )
    parser.add_argument("logfile", help="Path to the log file to analyze")
    parser.add_argument(
        "--output",
        choices=OUTPUT_FORMATS,
        default=default_output,
        help=f"Report format (default: {default_output})",
    )
    return parser


def run_analysis(log_file: str | Path, output_format: str, settings: Settings) -> int:
    logger = logging.getLogger(__name__)
    log_path = Path(log_file)
    try:
        rejects = RejectedLineStore(settings.rejects_path) if settings.rejects_path else None
        report = analyze_file(
            log_path,
            json_logger_marker=settings.json_logger_marker,
            rejects=rejects,
        )
        emit_reports(
            report,
            output_format=output_format,
            output_dir=log_path.parent,
            json_filename=settings.json_filename,
            html_filename=settings.html_filename,
        )
    except NoTimestampsError as exc:
        logger.error("%s", exc, extra={"error_code": exc.code, "outcome": "failed"})
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        logger.exception("Error processing log file %s", log_path, extra={"outcome": "failed"})
        print(f"Error processing log file: {exc}", file=sys.stderr)
        return 1

    logger.info(
        "Analysis complete for %s: messages=%d stores=%d",
        log_path,
        report.messages.total,
        report.store_operations,
        extra={"outcome": "success"},
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    args = _build_parser(settings.default_output).parse_args(argv)
    return run_analysis(args.logfile, args.output, settings)


if __name__ == "__main__":
    raise SystemExit(main())
