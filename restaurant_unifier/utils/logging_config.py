import logging
import os
import sys
from typing import Optional, Union

def setup_logging(name: str = "restaurant_unifier", level: Optional[Union[int, str]] = None) -> logging.Logger:
    """
    Sets up the project logger used by every preprocessing stage.

    Args:
        name: Name of the logger.
        level: Logging level or level name. Falls back to UNIFIER_LOG_LEVEL, then INFO.

    Returns:
        logging.Logger: Configured logger instance.
    """
    logger = logging.getLogger(name)

    if level is None:
        level = os.getenv("UNIFIER_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level)

    # Avoid duplicate handlers if already configured
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger

# Default logger for the project
logger = setup_logging()
