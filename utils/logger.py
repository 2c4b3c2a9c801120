"""
Logging configuration shared by every layer
"""
import logging
import os

from config.settings import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger writing to the console and the configured log file

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Handlers are attached once per logger name
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if settings.LOG_FILE:
        log_dir = os.path.dirname(settings.LOG_FILE) or '.'
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(settings.LOG_FILE, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def log_banner(logger: logging.Logger, title: str, width: int = 60):
    """Log a section header the way pipeline steps are announced"""
    logger.info("=" * width)
    logger.info(title)
    logger.info("=" * width)
