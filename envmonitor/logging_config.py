"""
Logging setup for the EnvMonitor system.

The package logs through Loguru. Library modules only call ``logger``; the
entry point (the dashboard) calls ``configure_logging`` once to replace the
default sink with a console sink and a rotating file sink.
"""

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FILE = Path("logs") / "envmonitor.log"
LOG_ROTATION = "10 MB"
LOG_RETENTION = "7 days"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - {message}"
)


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Remove the default Loguru sink, add console and rotating file sinks.

    Args:
        level: Minimum level; ENVMONITOR_LOG_LEVEL or INFO if None
        log_file: Log file path; ENVMONITOR_LOG_FILE or logs/envmonitor.log if None.
            An empty string disables the file sink.
    """
    level = (level or os.getenv("ENVMONITOR_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    if log_file is None:
        log_file = os.getenv("ENVMONITOR_LOG_FILE", str(DEFAULT_LOG_FILE))

    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=level,
            rotation=LOG_ROTATION,
            retention=LOG_RETENTION,
            encoding="utf-8",
            enqueue=True,
        )
