import os
import logging
from logging.handlers import RotatingFileHandler
from typing import Any, List, Optional
import structlog
from structlog.stdlib import ProcessorFormatter, BoundLogger, add_logger_name
from structlog.processors import (
    JSONRenderer,
    TimeStamper,
    add_log_level,
    StackInfoRenderer,
    format_exc_info,
)
from rich.console import Console
from rich.logging import RichHandler
from structlog.dev import ConsoleRenderer
from kdeconnect_palette.shared.path_handler import PathHandler


APP_DIR = "kdeconnect-palette"
LOG_FILE_NAME = "kdeconnect-palette.log"
LOGGER_NAME = "kdeconnect_palette"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 1024 * 1024
LOG_BACKUPS = 2


def get_log_file_path() -> str:
    return PathHandler(APP_DIR).get_state_path(LOG_FILE_NAME)


class RepeatFilter(logging.Filter):
    """
    Drops a record when it repeats the previous message verbatim.
    Battery signals tend to arrive in bursts with identical payloads.
    """

    def __init__(self):
        super().__init__()
        self._last_message: Optional[str] = None

    def filter(self, record):
        message = record.getMessage()
        if record.levelno >= logging.WARNING:
            self._last_message = None
            return True
        if message == self._last_message:
            return False
        self._last_message = message
        return True


def _pre_chain() -> List[Any]:
    return [
        add_log_level,
        TimeStamper(fmt=TIMESTAMP_FORMAT, utc=False),
        StackInfoRenderer(),
        format_exc_info,
    ]


def _configure_structlog() -> None:
    structlog.configure(
        processors=_pre_chain() + [add_logger_name, ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _json_file_handler(log_file: str) -> logging.Handler:
    os.makedirs(os.path.dirname(log_file), exist_ok=True)
    handler = RotatingFileHandler(
        log_file, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    handler.setFormatter(
        ProcessorFormatter(
            foreign_pre_chain=_pre_chain() + [add_logger_name],
            processor=JSONRenderer(),
        )
    )
    return handler


def _console_handler(console: Optional[Console] = None) -> logging.Handler:
    handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        markup=False,
        show_path=False,
        show_time=False,
    )
    handler.setFormatter(
        ProcessorFormatter(
            foreign_pre_chain=_pre_chain(),
            processor=ConsoleRenderer(colors=False),
            fmt="%(message)s",
        )
    )
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console: Optional[Console] = None,
) -> BoundLogger:
    """
    Sends the package's records to a rotating JSON file and to the console.
    Calling it again replaces the handlers, e.g. once config.toml is read.
    """
    _configure_structlog()
    std_logger = logging.getLogger(LOGGER_NAME)
    std_logger.setLevel(level)
    std_logger.propagate = False
    for handler in std_logger.handlers[:]:
        std_logger.removeHandler(handler)
        handler.close()
    handlers = (
        _json_file_handler(log_file or get_log_file_path()),
        _console_handler(console),
    )
    for handler in handlers:
        handler.setLevel(level)
        # RepeatFilter is stateful, one per handler
        handler.addFilter(RepeatFilter())
        std_logger.addHandler(handler)
    return structlog.get_logger(LOGGER_NAME)
