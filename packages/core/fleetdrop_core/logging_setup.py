"""Append-only install log and crash hook setup."""

from __future__ import annotations

import logging
import sys
import tempfile
from pathlib import Path


_LOGGER_NAME = "fleetdrop"
_DATEFMT = "%Y-%m-%d %H:%M:%S"
_LEVEL_PREFIX = {
    logging.WARNING: "WARNING: ",
    logging.ERROR: "ERROR: ",
    logging.CRITICAL: "ERROR: ",
}


class DisplayNameFilter(logging.Filter):
    """Stamps each record with the display name of the package being installed."""

    def __init__(self, display_name: str) -> None:
        super().__init__()
        self.display_name = display_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.display_name = self.display_name
        return True


class InstallLogFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(fmt="%(asctime)s [%(display_name)s] %(message)s", datefmt=_DATEFMT)

    def formatMessage(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "display_name"):
            record.display_name = "-"
        prefix = _LEVEL_PREFIX.get(record.levelno, "")
        if prefix and not record.message.startswith(prefix):
            record.message = prefix + record.message
        return super().formatMessage(record)


def _open_file_handler(log_file: str) -> tuple[logging.Handler, str]:
    try:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_file, mode="a", encoding="utf-8"), log_file
    except OSError:
        fallback = str(Path(tempfile.gettempdir()) / "jamf_installer.log")
        return logging.FileHandler(fallback, mode="a", encoding="utf-8"), fallback


def configure_logging(display_name: str, log_file: str, console: bool = True) -> logging.Logger:
    logger = logging.getLogger(_LOGGER_NAME)

    existing = getattr(logger, "_fleetdrop_filter", None)
    if existing is not None:
        existing.display_name = display_name
        return logger

    logger.setLevel(logging.INFO)
    logger.propagate = False
    name_filter = DisplayNameFilter(display_name)
    formatter = InstallLogFormatter()

    handler, actual = _open_file_handler(log_file)
    handler.setFormatter(formatter)
    handler.addFilter(name_filter)
    logger.addHandler(handler)

    if console:
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)
        stream_handler.addFilter(name_filter)
        logger.addHandler(stream_handler)

    setattr(logger, "_fleetdrop_filter", name_filter)

    if actual != log_file:
        logger.warning("Log file %s is not writable; logging to %s", log_file, actual)
    return logger


def reset_logging() -> None:
    """Detach handlers installed by configure_logging (used between runs in tests)."""
    logger = logging.getLogger(_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    if hasattr(logger, "_fleetdrop_filter"):
        delattr(logger, "_fleetdrop_filter")
    logger.propagate = True


def get_logger() -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME)


def install_crash_hooks() -> None:
    logger = get_logger()

    def _log_uncaught(exc_type, exc_value, exc_tb) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        logger.critical("uncaught exception", exc_info=(exc_type, exc_value, exc_tb))

    sys.excepthook = _log_uncaught
