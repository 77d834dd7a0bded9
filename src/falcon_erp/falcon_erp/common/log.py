from __future__ import annotations

import logging

import json_log_formatter

_PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONLineFormatter(json_log_formatter.JSONFormatter):
    """One JSON object per record; tracebacks land in ``exc_info``."""

    def json_record(self, message, extra, record):
        extra = super().json_record(message, extra, record)
        extra["level"] = record.levelname
        extra["logger"] = record.name
        return extra


def configure_logging(level: str = "INFO", *, json_format: bool = False) -> None:
    """Install a single stream handler on the root logger."""

    resolved = getattr(logging, str(level).upper(), logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONLineFormatter() if json_format else logging.Formatter(_PLAIN_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)
    root_logger.handlers = [handler]

    # Reduce noise from third-party libraries
    logging.getLogger("mysql.connector").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
