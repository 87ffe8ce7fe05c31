"""
Logging Configuration
Sets up the package logger for scripts and the command-line demo.
"""
import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "ellipsoidfactor"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    quiet_numba: bool = True
) -> logging.Logger:
    """
    Configures the logger for the 'ellipsoidfactor' namespace.

    Library code only ever calls ``logging.getLogger(__name__)``; handlers are
    attached here so that importing the package never configures logging.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
        quiet_numba: Keep the JIT compiler's own logger at WARNING, it is very
            chatty at DEBUG level.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # Avoid duplicate handlers when called twice (e.g. in notebooks)
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if quiet_numba:
        logging.getLogger("numba").setLevel(logging.WARNING)

    logger.debug("Logging initialized.")
    return logger
