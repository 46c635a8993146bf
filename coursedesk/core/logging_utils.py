import json
import logging
import logging.config
import time
from collections import Counter, deque
from typing import Any, Dict

logger = logging.getLogger(__name__)

# Anything on a record beyond these came in through `extra=`
STANDARD_RECORD_FIELDS = set(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "taskName",
}

QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "httpx")


class JsonFormatter(logging.Formatter):
    """One JSON object per line, `extra` fields included"""

    def format(self, record):
        entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in STANDARD_RECORD_FIELDS
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(log_level: str = "INFO", log_format: str = "text"):
    """Configure the root logger for `text` or `json` output"""
    formatters = {
        "text": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
        "json": {"()": JsonFormatter},
    }
    formatter = "json" if log_format.lower() == "json" else "text"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": formatters,
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": formatter}
            },
            "root": {"level": log_level.upper(), "handlers": ["console"]},
            "loggers": {name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        }
    )

    logger.info(f"Logging configured: level={log_level}, format={formatter}")


class ErrorTracker:
    """In-process error counters surfaced by /health"""

    def __init__(self, max_history: int = 100):
        self.error_counts = Counter()
        self.last_errors = deque(maxlen=max_history)

    def track_error(
        self, error_type: str, error_message: str, context: Dict[str, Any] = None
    ):
        self.error_counts[error_type] += 1
        self.last_errors.append(
            {
                "timestamp": time.time(),
                "type": error_type,
                "message": error_message,
                "context": context or {},
            }
        )

        logger.warning(
            f"Error tracked: {error_type} (x{self.error_counts[error_type]})",
            extra={"error_type": error_type, "error_message": error_message, "context": context},
        )

    def get_stats(self) -> Dict[str, Any]:
        return {
            "error_counts": dict(self.error_counts),
            "total_errors": sum(self.error_counts.values()),
            "unique_error_types": len(self.error_counts),
            "last_errors": list(self.last_errors)[-10:],
        }


error_tracker = ErrorTracker()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_business_event(
    event: str, entity_type: str, entity_id: int, details: Dict[str, Any] = None
):
    """
    Log a domain event

    Args:
        event: Event name (enrollment_created, payment_recorded, ...)
        entity_type: Entity kind (enrollment, payment, custom_fee, course)
        entity_id: Entity ID
        details: Extra payload
    """
    logger.info(
        f"Business event: {event}",
        extra={
            "event": event,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "details": details or {},
            "category": "business_event",
        },
    )
