import logging
import sys
from typing import Optional
from pathlib import Path

from content_moderation.core.config import settings

STRUCTURED_FIELDS = ("request_id", "content_id", "record_id", "status")


class StructuredFormatter(logging.Formatter):
    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def format(self, record):
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'logger': record.name,
            'function': f"{record.funcName}:{record.lineno}",
            'message': record.getMessage(),
            'service': self.service_name
        }

        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        return f"[{record.levelname}] {record.getMessage()} | {log_data}"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    service_name: str = "content-moderation"
) -> logging.Logger:
    """
    Configure logging for the moderation engine.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for structured log output
        service_name: Service name for log formatting

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(service_name)
    logger.setLevel(getattr(logging, level.upper()))

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(StructuredFormatter(service_name))
        logger.addHandler(file_handler)

    return logger


logger = setup_logging(settings.log_level, settings.log_file)
