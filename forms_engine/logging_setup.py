"""Logging for the forms engine.

One stdout handler on the root logger; module loggers propagate to it. The
engine's own loggers follow the configured level while uvicorn keeps INFO and
httpx is limited to warnings so outbound calls do not flood request logs.
"""
from __future__ import annotations
import logging
from logging.config import dictConfig
from typing import Any, Dict

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"


def build_logging_config(level: str = "INFO") -> Dict[str, Any]:
    console = {"level": "INFO", "handlers": ["console"], "propagate": False}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            }
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
        "loggers": {
            "forms_engine": {"level": level},
            "uvicorn": console,
            "uvicorn.access": dict(console),
            "httpx": {"level": "WARNING"},
        },
    }


def configure_logging(level: str = "INFO") -> None:
    """Install the handlers once; later calls only adjust the engine level.

    The root logger already having handlers means pytest or a reloader got
    there first, so only the ``forms_engine`` level is applied.
    """
    if logging.getLogger().handlers:
        logging.getLogger("forms_engine").setLevel(level)
        return
    dictConfig(build_logging_config(level))


__all__ = ["LOG_FORMAT", "build_logging_config", "configure_logging"]
