"""Loguru setup shared by the service, the client and the CLI."""

import inspect
import logging
import sys

from loguru import logger

from ..settings import settings

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

# Library loggers routed through loguru
INTERCEPTED_LOGGERS = ("uvicorn", "uvicorn.error", "fastapi", "sqlalchemy", "httpx")


class InterceptHandler(logging.Handler):
    """Forward standard library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        level: str | int
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = inspect.currentframe(), 0
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging() -> None:
    """Configure the console sink, the optional rotating file sink and interception."""
    log_format = settings.log_format or DEFAULT_FORMAT

    logger.remove()
    logger.add(sys.stderr, level=settings.log_level, format=log_format, diagnose=settings.debug)

    if settings.log_to_file:
        log_dir = settings.get_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_dir / "dynfields.log"),
            level=settings.log_level,
            format=log_format,
            rotation=settings.log_rotation,
            retention=settings.log_retention,
            diagnose=settings.debug,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in INTERCEPTED_LOGGERS:
        logging.getLogger(name).handlers = [InterceptHandler()]


setup_logging()

__all__ = ["logger", "setup_logging"]
