"""Logging setup shared by the API process and the CLI helpers."""

import logging
import logging.config

from natours.core import config

_configured = False


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once per process.

    Args:
        level: Overrides ``LOG_LEVEL`` from the environment.
    """
    global _configured

    if _configured:
        return

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {
                "handlers": ["console"],
                "level": level or config.LOG_LEVEL,
            },
            "loggers": {
                "uvicorn.access": {"level": "WARNING"},
            },
        }
    )
    _configured = True
    logging.getLogger(__name__).debug("Logging configured (env=%s)", config.APP_ENV)
