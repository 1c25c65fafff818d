"""
Exam Portal - Logging Configuration
Root logger setup with optional single-line JSON output
"""
import json
import logging
import logging.config
from datetime import datetime, timezone


class JsonFormatter(logging.Formatter):
    """Formats each record as one JSON object per line."""

    EXTRA_FIELDS = ("attempt_id", "test_id", "student_id", "status_code", "path")

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in self.EXTRA_FIELDS:
            if hasattr(record, field):
                entry[field] = str(getattr(record, field))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure the root logger. Safe to call more than once."""
    formatter = "json" if json_output else "plain"
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {
                "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            },
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
            },
        },
        "root": {"level": level.upper(), "handlers": ["console"]},
        "loggers": {
            # SQL echo is controlled by DEBUG on the engine
            "sqlalchemy.engine": {"level": "WARNING"},
        },
    })
