"""File logging setup shared by every module."""

from logging import INFO, Logger
from logging.handlers import RotatingFileHandler

from pythonjsonlogger.json import JsonFormatter

from halqa.configs.settings import settings

_MAX_BYTES = 5 * 1024 * 1024
_BACKUP_COUNT = 3


def file_logger(logger: Logger) -> Logger:
    """
    Attach a rotating JSON file handler to ``logger`` when file logging is on.

    The handler is added once per logger, so calling this at import time in
    every module is safe.

    Args:
        logger: Logger to configure.

    Returns:
        The same logger instance.
    """
    if not settings.LOG_TO_FILE:
        return logger

    if any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        return logger

    settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        settings.LOG_DIR / "halqa.log",
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(INFO)
    handler.setFormatter(
        JsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s"),
    )
    logger.addHandler(handler)
    return logger
