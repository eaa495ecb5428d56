"""MikroTik RouterOS Prometheus Exporter.

Polls a RouterOS device through its API on demand and translates the
version-dependent replies into Prometheus metrics.
"""

__version__ = "0.1.0"

import os
import sys
from typing import Any, Callable, Dict

from loguru import logger as glogger

glogger.disable(__name__)


def _loguru_skiplog_filter(record: dict) -> bool:  # type: ignore[type-arg]
    """Filter function to hide records with ``extra['skiplog']`` set."""
    return not record.get("extra", {}).get("skiplog", False)


def configure_logging(
    loguru_filter: Callable[[Dict[str, Any]], bool] = _loguru_skiplog_filter,
) -> None:
    """Configure a default ``loguru`` sink with a convenient format and filter."""
    os.environ["LOGURU_LEVEL"] = os.getenv("LOGURU_LEVEL", "INFO")
    glogger.remove()
    logger_fmt: str = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{module}</cyan>::<cyan>{extra[target]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )
    glogger.add(sys.stderr, level=os.getenv("LOGURU_LEVEL"), format=logger_fmt, filter=loguru_filter)  # type: ignore[arg-type]
    glogger.configure(extra={"target": "-", "skiplog": False})
    glogger.enable(__name__)


from ros_exporter.exceptions import (  # noqa: E402
    CollectionError,
    CommandError,
    CommandTimeoutError,
    ConnectError,
    ExporterError,
    FeatureUnsupportedError,
    FormatError,
)
from ros_exporter.models import ScrapeResult, Target  # noqa: E402
from ros_exporter.scrape import Scraper  # noqa: E402
from ros_exporter.session import CommandSession  # noqa: E402

__all__ = [
    "glogger",
    "configure_logging",
    "Scraper",
    "CommandSession",
    "Target",
    "ScrapeResult",
    "ExporterError",
    "ConnectError",
    "CommandError",
    "CommandTimeoutError",
    "FeatureUnsupportedError",
    "CollectionError",
    "FormatError",
]
