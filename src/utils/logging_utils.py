from __future__ import annotations

import logging.config
import threading


_LOCK = threading.Lock()
_CONFIGURED = False


def build_logging_config(level: str = "INFO") -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
            },
        },
        "root": {"handlers": ["console"], "level": "WARNING"},
        "loggers": {
            "src": {"level": level},
        },
    }


def setup_logging(level: str = "INFO", *, force: bool = False) -> None:
    """Configure logging once per process; later calls are no-ops unless forced.

    Application modules log through `logging.getLogger(__name__)`, which puts
    them under the `src` logger configured here.
    """
    global _CONFIGURED
    with _LOCK:
        if _CONFIGURED and not force:
            return
        logging.config.dictConfig(build_logging_config(level.upper()))
        _CONFIGURED = True
