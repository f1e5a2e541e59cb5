"""
Loguru setup for the Orders API.

Loguru is the only logging backend. Records sent through the stdlib
``logging`` module (uvicorn, SQLAlchemy) are intercepted and re-emitted
through loguru so everything shares one format.
"""

import logging
import sys

from loguru import logger

from .config import get_settings


def setup_logging() -> None:
    """Configure loguru and intercept stdlib logging. Safe to call twice."""
    settings = get_settings()
    log_level = settings.log_level.upper()

    # Drop loguru's default stderr handler so we control the format
    logger.remove()

    if settings.log_json:
        logger.add(sys.stdout, level=log_level, format="{message}", serialize=True)
    else:
        logger.add(
            sys.stdout,
            level=log_level,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "{message}"
            ),
            colorize=True,
        )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "sqlalchemy.pool"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.debug("Logging configured (level={}, json={})", log_level, settings.log_json)


class _InterceptHandler(logging.Handler):
    """Route stdlib logging records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip frames from inside the logging module so loguru reports the real caller
        frame, depth = logging.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())
