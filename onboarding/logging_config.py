"""Logging setup shared by the API server and the CLI."""
import logging
import logging.config
from typing import Optional


_configured = False


def build_logging_config(level: str = "INFO") -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "default",
            }
        },
        "loggers": {
            "onboarding": {"level": level},
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
        },
        "root": {"level": level, "handlers": ["console"]},
    }


def configure_logging(level: Optional[str] = None) -> None:
    """Configure logging once per process."""
    global _configured
    if _configured:
        return
    if level is None:
        from .config import settings
        level = settings.log_level
    logging.config.dictConfig(build_logging_config(level.upper()))
    _configured = True
