"""
Logging configuration for the daemon and the uvicorn server.

Requests against the health endpoints are dropped from the access
log; everything else goes to stdout.
"""

import logging
from typing import Any, Dict, Iterable

HEALTH_PATHS = ("/health", "/healthz")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class HealthCheckFilter(logging.Filter):
    """Drops uvicorn access records for health check requests."""

    def __init__(self, paths: Iterable[str] = HEALTH_PATHS):
        super().__init__()
        self.paths = frozenset(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != "uvicorn.access":
            return True

        # uvicorn passes (client, method, path, http_version, status)
        args = record.args
        if isinstance(args, tuple) and len(args) == 5:
            method, path = args[1], str(args[2]).split("?", 1)[0]
            return not (method == "GET" and path in self.paths)

        return True


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """
    Build a ``logging.config.dictConfig`` mapping.

    Args:
        level: Level applied to the daemon and server loggers
    """
    level = level.upper()

    def _logger(handler: str) -> Dict[str, Any]:
        return {"handlers": [handler], "level": level, "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"health_check": {"()": HealthCheckFilter}},
        "formatters": {
            "default": {"format": LOG_FORMAT},
            "access": {"format": "%(asctime)s - %(message)s"},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["health_check"],
            },
        },
        "loggers": {
            "doorlockd": _logger("default"),
            "uvicorn": _logger("default"),
            "uvicorn.error": _logger("default"),
            "uvicorn.access": _logger("access"),
        },
        "root": {"level": level, "handlers": ["default"]},
    }
