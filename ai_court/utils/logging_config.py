# ai_court/utils/logging_config.py
import logging
import sys
from typing import Optional
from loguru import logger

from ..config.schemas import LoggingConfig

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"

# Third-party loggers that use the standard library and are forwarded to loguru.
FORWARDED_LOGGERS = ("backoff",)


class _ForwardToLoguru(logging.Handler):
    """Re-emits standard-library records (e.g. backoff's retry notices) through loguru."""

    def emit(self, record: logging.LogRecord):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(config: LoggingConfig):
    """Apply the ``logging`` section of the court configuration."""
    configure_logging(config.level, config.file_path, config.rotation, config.retention)

def configure_logging(level: str = "INFO", file_path: Optional[str] = None,
                      rotation: str = "10 MB", retention: str = "7 days"):
    """
    Route all logging to stderr, keeping stdout free for streamed court output.

    Args:
        level (str): Minimum level for the console sink.
        file_path (str, optional): Also write DEBUG and above to this file.
        rotation (str): Size or interval at which the log file rotates.
        retention (str): How long rotated files are kept.
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=CONSOLE_FORMAT, colorize=True)

    if file_path:
        logger.add(
            file_path,
            level="DEBUG",
            format=FILE_FORMAT,
            rotation=rotation,
            retention=retention,
            enqueue=True,
            encoding="utf-8",
        )

    handler = _ForwardToLoguru()
    for name in FORWARDED_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [handler]
        std_logger.setLevel(logging.INFO)
        std_logger.propagate = False

    logger.debug(f"Logging configured at {level.upper()}")
