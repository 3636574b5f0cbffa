"""Logging setup driven by LOG_LEVEL / LOG_FORMAT."""

import json
import logging
import sys
from typing import Any

from assistant_orb.core.config import LogFormatEnum, Settings, settings as default_settings

# Attributes every LogRecord carries; anything else came in through `extra`
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Structured JSON formatter.

    Emits one JSON object per record with the standard fields, the service
    name and environment, exception text when present, and any `extra` keys.
    Non-serializable extras are converted with ``str``.
    """

    def __init__(self, *, env: str | None = None, service: str = "assistant-orb", datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.env = env
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service,
            "env": self.env,
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_record[key] = value

        return json.dumps(log_record, default=str)


def setup_logging(config: Settings | None = None) -> logging.Handler:
    """Install a single stream handler on the package logger.

    Returns the handler so callers (and tests) can remove it again.
    """
    config = config or default_settings
    handler = logging.StreamHandler(sys.stderr)

    if config.log_format == LogFormatEnum.json:
        handler.setFormatter(JsonFormatter(env=config.environment.value, service=config.app_name))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s"))

    package_logger = logging.getLogger("assistant_orb")
    for existing in list(package_logger.handlers):
        package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
    package_logger.setLevel("DEBUG" if config.debug else config.log_level.value)
    return handler
