"""Logging setup shared by the web server and scripts."""
import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured = False


def configure_logging(level: int = logging.INFO, logfile: Optional[str] = None) -> logging.Logger:
    """
    Configure the ``rugby_scoring`` logger namespace once per process.

    Args:
        level: Minimum level emitted
        logfile: Optional path of an extra file handler

    Returns:
        The package root logger
    """
    global _configured

    logger = logging.getLogger("rugby_scoring")
    logger.setLevel(level)
    if _configured:
        return logger

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if logfile:
        file_handler = logging.FileHandler(logfile, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    _configured = True
    return logger
