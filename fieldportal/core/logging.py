# fieldportal/core/logging.py
import logging

import colorlog

formatter = colorlog.ColoredFormatter(
    "%(log_color)s%(asctime)s - %(levelname)s - %(message)s (%(filename)s:%(lineno)d) - %(name)s",
    datefmt="%H:%M:%S",
    reset=True,
    log_colors={
        "DEBUG": "white",
        "INFO": "cyan",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "red,bg_white",
    },
    style="%",
)


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single colored console handler to the ``fieldportal`` logger."""
    loglevel = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(loglevel, int):
        loglevel = logging.INFO

    logger = logging.getLogger("fieldportal")
    # Clear existing handlers so reloads don't duplicate output
    if logger.hasHandlers():
        logger.handlers.clear()
    logger.setLevel(loglevel)
    logger.propagate = False

    console = colorlog.StreamHandler()
    console.setFormatter(formatter)
    console.setLevel(loglevel)
    logger.addHandler(console)
    return logger
