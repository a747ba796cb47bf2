"""
Service Logger Setup

Configures process-wide logging for a service entrypoint and returns the
service logger.
"""

import logging
import sys
from typing import Optional

from core.config import LoggingConfig

_configured = False


def setup_service_logger(
    service_name: str,
    level: Optional[str] = None,
    config: Optional[LoggingConfig] = None,
) -> logging.Logger:
    """
    Configure root logging once and return the logger for a service.

    Args:
        service_name: Logger name, usually the service name
        level: Log level override (defaults to LOG_LEVEL)
        config: Logging configuration (defaults to environment)
    """
    global _configured

    config = config or LoggingConfig.from_env()
    log_level = (level or config.log_level or "INFO").upper()

    if not _configured:
        handlers = [logging.StreamHandler(sys.stdout)]
        if config.log_file:
            handlers.append(logging.FileHandler(config.log_file))

        logging.basicConfig(
            level=log_level,
            format=config.log_format,
            handlers=handlers,
        )
        _configured = True

    logger = logging.getLogger(service_name)
    logger.setLevel(log_level)
    return logger


__all__ = ["setup_service_logger"]
