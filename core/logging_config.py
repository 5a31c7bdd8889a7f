# core/logging_config.py

import logging
import os
from logging import Logger

# === Logging Setup Configuration ===
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


# === Reusable Logger Factory ===
def get_logger(name: str) -> Logger:
    """
    Return a module logger.

    Handlers and formatters are attached once to the root logger by
    ``core.config_log.setup_logging``; module loggers only carry a level and
    propagate to it.
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    return logger
