"""Logging configuration for structured JSON logging."""

import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import logfire

# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = frozenset(
    (
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    )
)

LOG_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


class JsonFormatter(logging.Formatter):
    """Formats log records as JSON strings."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "exception": (
                self.formatException(record.exc_info) if record.exc_info else None
            ),
            "stack_info": (
                self.formatStack(record.stack_info) if record.stack_info else None
            ),
        }
        # Extra fields passed to the logger, e.g. event log payloads
        for key, value in record.__dict__.items():
            if key not in log_entry and key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(
            {k: v for k, v in log_entry.items() if v is not None}, default=str
        )


def _resolve_level(log_level_arg: str | None) -> tuple[str, int]:
    level_str = (log_level_arg or os.getenv("LOG_LEVEL", "INFO")).upper()
    if level_str not in LOG_LEVELS:
        level_str = "INFO"
    return level_str, LOG_LEVELS[level_str]


def setup_logging(log_level_arg: str | None = None):
    """Configure the root logger for JSON output to stdout and a rotating file.

    Args:
        log_level_arg: Minimum console level. Falls back to LOG_LEVEL, then INFO.
    """
    log_file_path_obj = Path(os.getenv("LOG_FILE", "logs/app.log"))
    log_file_path_obj.parent.mkdir(parents=True, exist_ok=True)

    log_level_str, log_level = _resolve_level(log_level_arg)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear existing handlers (setup may run more than once)
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    formatter = JsonFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    file_handler = RotatingFileHandler(
        log_file_path_obj, maxBytes=10 * 1024 * 1024, backupCount=5  # 10 MB
    )
    file_handler.setLevel(logging.DEBUG)  # Always capture DEBUG in file
    file_handler.setFormatter(formatter)

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    # --- Optional: Logfire Integration --- #
    if os.getenv("LOGFIRE_ENABLED", "false").lower() == "true":
        logfire_token = os.getenv("LOGFIRE_TOKEN")
        if logfire_token:
            try:
                logfire.configure(send_to_logfire=True, token=logfire_token)
                logfire.instrument_httpx()
                root_logger.addHandler(logfire.LogfireLoggingHandler())
                root_logger.info("Logfire integration enabled and configured.")
            except Exception as e:
                root_logger.error(f"Failed to configure Logfire: {e}")
        else:
            root_logger.warning(
                "Logfire enabled but LOGFIRE_TOKEN environment variable not set."
            )

    # Quieten chatty libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    root_logger.info(
        f"Logging setup complete. Console Level: {log_level_str}, File Level: DEBUG"
    )
