import logging
import os
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(log_dir="app_log", level="INFO") -> Path:
    """
    Send the kitsune loggers to <log_dir>/kitsune.log

    Calling it again only adjusts the level.

    Returns:
        Path of the log file
    """
    log_dir = Path(log_dir)
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)
    log_file = log_dir / "kitsune.log"

    logger = logging.getLogger("kitsune")
    logger.setLevel(level if isinstance(level, int) else str(level).upper())

    if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)

    return log_file
