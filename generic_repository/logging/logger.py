import sys
import logging
from pathlib import Path
from contextvars import ContextVar
from typing import Optional
from loguru import logger
from generic_repository.config import settings

# Trace id of the request being served, set by LoggingMiddleware
_current_trace_id: ContextVar[Optional[str]] = ContextVar("current_trace_id", default=None)

LOG_DIR = Path(settings.LOG_DIR)

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<magenta>Trace:{extra[trace_id]}</magenta> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | Trace:{extra[trace_id]} - {message}"


class InterceptHandler(logging.Handler):
    """Forward stdlib records (SQLAlchemy engine echo, uvicorn) into loguru."""

    def emit(self, record: logging.LogRecord):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


class LogConfig:
    """Global logging configuration using Loguru."""
    @classmethod
    def setup_logging(cls, level: Optional[str] = None):
        level = level or settings.LOG_LEVEL
        logger.remove()
        logger.configure(extra={"trace_id": "system"})

        logger.add(sys.stdout, enqueue=True, backtrace=True, diagnose=True,
                   format=CONSOLE_FORMAT, level=level)

        if settings.LOG_TO_FILE:
            LOG_DIR.mkdir(parents=True, exist_ok=True)
            logger.add(
                LOG_DIR / "app_{time:YYYY-MM-DD}.log",
                rotation="00:00",
                retention=settings.LOG_RETENTION,
                compression="zip",
                enqueue=True,
                format=FILE_FORMAT,
                level="DEBUG",
            )
            logger.add(
                LOG_DIR / "error_{time:YYYY-MM-DD}.log",
                level="ERROR",
                rotation="100 MB",
                enqueue=True,
                format=FILE_FORMAT,
            )

        # SQL statements only reach the sinks when DB_ECHO is on
        logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
        logging.getLogger("sqlalchemy.engine").setLevel(
            logging.INFO if settings.DB_ECHO else logging.WARNING
        )

def get_logger(name: str = None):
    """Get logger instance bound to the current trace id (if any) and component name."""
    trace_id = _current_trace_id.get() or "system"

    if name:
        return logger.bind(name=name, trace_id=trace_id)
    return logger.bind(trace_id=trace_id)
