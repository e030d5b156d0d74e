"""
Logging Configuration
Sets up the package loggers for the pipeline.
"""
import logging
import sys
from typing import Optional

NAMESPACES = ('sca', 'relief', 'config')


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Configures the loggers of the 'sca', 'relief' and 'config' namespaces.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
    """
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    file_handler = None
    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)

    for namespace in NAMESPACES:
        logger = logging.getLogger(namespace)
        logger.setLevel(level)
        # drop handlers from a previous call
        logger.handlers.clear()
        logger.addHandler(console_handler)
        if file_handler is not None:
            logger.addHandler(file_handler)

    logging.getLogger('relief').debug("Logging initialized.")
