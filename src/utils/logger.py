import logging

from rich.console import Console
from rich.logging import RichHandler

from utils import config

_log_console: Console | None = None


class CenteredFormatter(logging.Formatter):
    longest_name_length = 14  # grows with the longest logger name seen

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=14):
        super().__init__(fmt, datefmt, style)
        CenteredFormatter.longest_name_length = initial_width

    def format(self, record):
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(record.name)
        )
        width = CenteredFormatter.longest_name_length
        record.name = record.name.center(width)
        return super().format(record)


def _console() -> Console | None:
    """
    Console shared by all handlers. When FLASHSTORE_LOG_FILE is set the rich
    output goes there, so it does not draw over the running TUI.
    """
    global _log_console
    if config.LOG_FILE and _log_console is None:
        _log_console = Console(
            file=open(config.LOG_FILE, "a", encoding="utf-8"), width=140
        )
    return _log_console


def get_logger(name=None) -> logging.Logger:
    """
    Creates and returns a logger configured with RichHandler for rich output.
    """
    logger = logging.getLogger(name or "flashstore")
    log_level = logging.DEBUG if config.DEBUG else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = RichHandler(
            console=_console(),
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(CenteredFormatter("[%(name)s]  %(message)s"))
        handler.setLevel(log_level)
        logger.addHandler(handler)
        logger.propagate = False

    return logger
