from __future__ import annotations

import uvicorn

from log_metrics.config import Settings, load_dotenv
from log_metrics.logger import configure_logging
from log_metrics.report_api import create_report_app


def main() -> None:
    load_dotenv()
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    app = create_report_app(
        report_dir=settings.report_dir,
        json_filename=settings.json_filename,
        html_filename=settings.html_filename,
        rejects_path=settings.rejects_path,
    )
    uvicorn.run(app, host=settings.server_host, port=settings.server_port, reload=False)


if __name__ == "__main__":
    main()
