import json
import logging
import os
import sys
from logging import Logger
from typing import Optional

LOGGER_NAMESPACE = "spdz_client"
LOG_LEVEL_ENV_VARS = ("SPDZ_CLIENT_LOG_LEVEL", "LOG_LEVEL")


class JsonFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%SZ"),
        }
        proxy_url = getattr(record, "proxy_url", None)
        if proxy_url:
            log["proxy_url"] = proxy_url
        if record.exc_info:
            log["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log)


def _level_from_env() -> Optional[str]:
    for name in LOG_LEVEL_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value
    return None


def configure_logging(level: Optional[str] = None, json_output: bool = False, log_file: Optional[str] = None) -> None:
    """
    Configure logging for the client library and the calling application.

    Logs go to stdout; pass ``log_file`` to also append to a file. The level
    falls back to SPDZ_CLIENT_LOG_LEVEL, then LOG_LEVEL, then INFO.
    """
    effective_level = level or _level_from_env() or "INFO"
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    formatter: logging.Formatter
    if json_output:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s | %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    for handler in handlers:
        handler.setFormatter(formatter)
    logging.basicConfig(
        level=getattr(logging, effective_level.upper(), logging.INFO),
        handlers=handlers,
        force=True,
    )


def get_logger(name: str) -> Logger:
    """Return a logger under the ``spdz_client`` namespace."""
    if name == LOGGER_NAMESPACE or name.startswith(LOGGER_NAMESPACE + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
