"""Logging configuration for the image reader backend.

Every record carries a `request_id` extra ("-" outside a request); the
recognize endpoint binds it with `log.contextualize(request_id=...)` so a
single upload can be followed from ingestion to OCR.
"""

import sys
from pathlib import Path
from loguru import logger
from core.config import settings

NO_REQUEST = "-"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[request_id]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[request_id]} | "
    "{name}:{function}:{line} - {message}"
)


def setup_logging():
    """Configure loguru logger with file and console handlers."""
    
    # Remove default handler
    logger.remove()
    logger.configure(extra={"request_id": NO_REQUEST})
    
    # Console handler with color
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=settings.LOG_LEVEL,
        colorize=True,
    )
    
    # File handler with rotation
    log_file = Path(settings.LOG_FILE)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    
    logger.add(
        log_file,
        format=FILE_FORMAT,
        level=settings.LOG_LEVEL,
        rotation=settings.LOG_ROTATION,
        retention=settings.LOG_RETENTION,
        compression="zip",
        enqueue=True,
    )
    
    return logger


# Initialize logger
log = setup_logging()
