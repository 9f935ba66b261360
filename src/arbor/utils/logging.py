"""Logging utils"""

import os
import sys
from datetime import datetime

from loguru import logger

from arbor.settings import settings_manager
from arbor.utils import data_dir_path

# name: (severity, color, icon); severity None for loguru's own levels
LOG_LEVELS = {
    "ENGINE": (5, "9B59B6", "🧲"),
    "CACHE": (5, "527826", "📜"),
    "CONTENT": (5, "F9E79F", "🗃️ "),
    "HANDLER": (10, "cc6600", "🤖"),
    "PROGRESS": (10, "006989", "⏳"),
    "DRIVE": (20, "e56c49", "🌳"),
    "TRACE": (None, "27F5E7", "✏️ "),
    "DEBUG": (None, "98C1D9", "🐞"),
    "INFO": (None, "818589", "📰"),
    "SUCCESS": (None, "00ff00", "✔️ "),
    "WARNING": (None, "ffcc00", "⚠️ "),
    "CRITICAL": (None, "ff0000", ""),
}

LOG_FORMAT = (
    "<fg #818589>{time:YY-MM-DD} {time:HH:mm:ss}</fg #818589> | "
    "<level>{level.icon}</level> <level>{level: <9}</level> | "
    "<fg #e7e7e7>{module}</fg #e7e7e7>.<fg #e7e7e7>{function}</fg #e7e7e7> - <level>{message}</level>"
)


def _register_level(name: str, no: int | None, color: str, icon: str) -> None:
    color = f"<fg #{os.getenv(f'ARBOR_LOGGER_{name}_FG', color)}>"
    icon = os.getenv(f"ARBOR_LOGGER_{name}_ICON", icon)

    if no is not None:
        try:
            logger.level(name)
        except ValueError:
            # Severity can only be given once per level
            logger.level(name, no=no, color=color, icon=icon)
            return

    logger.level(name, color=color, icon=icon)


def _file_handler(level: str) -> dict:
    log_settings = settings_manager.settings.logging

    logs_dir_path = data_dir_path / "logs"
    os.makedirs(logs_dir_path, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M")

    return {
        "sink": logs_dir_path / f"arbor-{timestamp}.log",
        "level": level,
        "format": LOG_FORMAT,
        "rotation": f"{log_settings.rotation_mb} MB" if log_settings.rotation_mb > 0 else None,
        "retention": f"{log_settings.retention_hours} hours",
        "compression": (
            log_settings.compression if log_settings.compression != "disabled" else None
        ),
        "backtrace": False,
        "diagnose": True,
        "enqueue": True,
    }


def setup_logger(level: str) -> None:
    """Register Arbor's levels and (re)configure sinks; safe to call again."""

    for name, (no, color, icon) in LOG_LEVELS.items():
        _register_level(name, no, color, icon)

    level = (level or "INFO").upper()
    handlers = [
        {
            "sink": sys.stderr,
            "level": level,
            "format": LOG_FORMAT,
            "backtrace": False,
            "diagnose": False,
            "enqueue": True,
        }
    ]

    if settings_manager.settings.logging.enabled:
        handlers.append(_file_handler(level))

    logger.configure(handlers=handlers)


setup_logger(settings_manager.settings.log_level)
