"""
Logging Configuration

JSON line logs on stdout. Call configure_logging() once at startup.
"""

import json
import logging
from datetime import UTC, datetime


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record)


def configure_logging(log_level: str) -> None:
    root_logger = logging.getLogger()

    # Avoid stacking handlers when the app is re-created (reloader, tests)
    for handler in root_logger.handlers:
        if isinstance(handler.formatter, JsonFormatter):
            root_logger.setLevel(log_level)
            return

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())

    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)
