import logging
import os
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from typing import List, Optional

from colorlog import ColoredFormatter
from pythonjsonlogger.json import JsonFormatter

_configured = False


def setup_logging(env: Optional[str] = None, log_dir: Optional[str] = None) -> None:
    """Configures logging based on the environment (local vs cloud/docker)."""
    global _configured
    if _configured:
        return

    env = (env or os.getenv("APP_ENV", "local")).lower()
    log_dir = log_dir or os.getenv("LOG_DIR")

    handlers: List[logging.Handler] = []
    console_handler = logging.StreamHandler()
    file_handler: Optional[TimedRotatingFileHandler] = None

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"api_{datetime.now().strftime('%Y%m%d')}.log")
        file_handler = TimedRotatingFileHandler(
            filename=log_file, when="midnight", interval=1, backupCount=7, encoding="utf-8"
        )

    if env == "local":
        # Color logs for local development
        console_handler.setFormatter(
            ColoredFormatter(
                "%(log_color)s%(asctime)s | %(levelname)-8s | %(name)s | "
                "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s%(reset)s",
                datefmt="%Y-%m-%d %H:%M:%S",
                reset=True,
                log_colors={
                    "DEBUG": "cyan",
                    "INFO": "green",
                    "WARNING": "yellow",
                    "ERROR": "red",
                    "CRITICAL": "bold_red",
                },
            )
        )
        if file_handler:
            file_handler.setFormatter(
                logging.Formatter(
                    fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
    else:
        # JSON logs for cloud/docker
        json_formatter = JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s %(filename)s %(lineno)d",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        console_handler.setFormatter(json_formatter)
        if file_handler:
            file_handler.setFormatter(json_formatter)

    handlers.append(console_handler)
    if file_handler:
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG if env == "local" else logging.INFO,
        handlers=handlers,
    )

    # uvicorn's access log duplicates the request logging middleware
    logging.getLogger("uvicorn.access").disabled = True

    _configured = True
    logging.info(f"Logging initialized for environment: {env.upper()}")
