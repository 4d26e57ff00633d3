"""
Logging setup for the agent process.

uvicorn, the kubeguard.* module loggers and the kubernetes client all log
to stdout through dictConfig. Probe requests are dropped from the access log
so kubelet liveness checks do not drown out command traffic.
"""

import logging
from typing import Any, Dict

PROBE_PATHS = ("/health", "/healthz")

# Loggers that never take the configured level
FIXED_LEVELS = {
    "uvicorn": "INFO",
    "uvicorn.error": "INFO",
    # Client request logging is noisy at DEBUG
    "kubernetes": "WARNING",
}


class HealthCheckFilter(logging.Filter):
    """Drop uvicorn access records of probe requests."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != "uvicorn.access":
            return True
        message = record.getMessage()
        return not ("GET" in message and any(f"{path} " in message for path in PROBE_PATHS))


def _logger(handler: str, level: str) -> Dict[str, Any]:
    return {"handlers": [handler], "level": level, "propagate": False}


def get_logging_config(log_level: str = "INFO") -> Dict[str, Any]:
    """dictConfig for the agent at the given level."""
    log_level = log_level.upper()

    loggers = {name: _logger("default", level) for name, level in FIXED_LEVELS.items()}
    loggers["uvicorn.access"] = _logger("access", "INFO")
    loggers["kubeguard"] = _logger("default", log_level)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"probes": {"()": HealthCheckFilter}},
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"},
            "access": {"format": "%(asctime)s %(message)s"},
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
                "filters": ["probes"],
            },
        },
        "loggers": loggers,
        "root": {"level": log_level, "handlers": ["default"]},
    }
