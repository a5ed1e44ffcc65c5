"""Logging setup: stdlib logging configured through dictConfig, JSON lines by default."""

import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from app.core.config import settings


class FeeServiceJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps every record with an ISO timestamp, level and logger name."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        for key in ("tenant_id", "cohort_id", "student_id"):
            if hasattr(record, key):
                log_record[key] = str(getattr(record, key))


def build_logging_config(level: str, as_json: bool) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            },
            "json": {
                "()": FeeServiceJsonFormatter,
                "format": "%(timestamp)s %(level)s %(logger)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "level": level,
                "class": "logging.StreamHandler",
                "formatter": "json" if as_json else "standard",
            },
        },
        "loggers": {
            "": {"handlers": ["console"], "level": level},
            "app": {"handlers": ["console"], "level": level, "propagate": False},
            "sqlalchemy.engine": {"handlers": ["console"], "level": "WARNING", "propagate": False},
            "uvicorn.access": {"handlers": ["console"], "level": "INFO", "propagate": False},
        },
    }


def setup_logging() -> logging.Logger:
    """Configure application logging from settings. Safe to call more than once."""
    logging.config.dictConfig(build_logging_config(settings.log_level.upper(), settings.log_json))
    logger = logging.getLogger("app")
    logger.debug("Logging initialized with level: %s", settings.log_level)
    return logger
