import logging
import os

from rich.logging import RichHandler

LEVEL_NAMES = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class CenteredFormatter(logging.Formatter):
    longest_name_length = 12  # grows with the longest logger name seen

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=12):
        super().__init__(fmt, datefmt, style)
        CenteredFormatter.longest_name_length = initial_width

    def format(self, record):
        CenteredFormatter.longest_name_length = max(
            CenteredFormatter.longest_name_length, len(record.name)
        )

        width = CenteredFormatter.longest_name_length
        record.name = record.name.center(width)
        return super().format(record)


def _resolve_level() -> int:
    """
    DEBUG=1 wins, then KOI_LOG_LEVEL, then INFO.
    """
    if os.getenv("DEBUG"):
        return logging.DEBUG
    name = (os.getenv("KOI_LOG_LEVEL") or "").strip().upper()
    if name in LEVEL_NAMES:
        return getattr(logging, name)
    return logging.INFO


def get_logger(name=None) -> logging.Logger:
    """
    Return a logger for `name` that prints through a RichHandler.

    Handlers are attached once per name, so calling this at import time in
    every module is cheap.
    """
    if name is None:
        name = "koi-store"
    logger = logging.getLogger(name)
    log_level = _resolve_level()
    logger.setLevel(log_level)

    if not logger.handlers:
        formatter = CenteredFormatter("[%(name)s]  %(message)s")

        console_handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        console_handler.setFormatter(formatter)
        console_handler.setLevel(log_level)
        logger.addHandler(console_handler)

        logger.propagate = False
        logger.debug(f"Logger for '{name}' ready at level {logging.getLevelName(log_level)}.")

    return logger
