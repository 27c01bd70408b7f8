"""Logging Utilities for the Mealie MCP bridge
=============================================

Centralized logging configuration and utilities.

Usage:
    from tools.logging_utils import get_logger

    logger = get_logger(__name__)
    logger.info("Operation completed successfully")
    logger.error("Operation failed")

Standards:
    - All modules MUST use logger, never print() (stdout is the MCP channel)
    - Log levels: CRITICAL, ERROR, WARNING, INFO, DEBUG
    - Configuration: config.LOGGING_CONFIG
    - Console output goes to stderr; set MEALIE_MCP_LOG_FILE for a rotating file
"""

import os
import logging
import logging.config
from typing import Optional

from config import LOGGING_CONFIG

_configured = False


def setup_logging(level: Optional[str] = None):
    """
    Initialize logging configuration once.

    Idempotent - safe to call multiple times. Passing a level re-applies the
    configuration with that console level.

    Args:
        level: Optional console level override (e.g. "DEBUG")
    """
    global _configured
    if _configured and level is None:
        return

    try:
        log_file = LOGGING_CONFIG["handlers"].get("file", {}).get("filename")
        if log_file:
            os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        if level:
            LOGGING_CONFIG["handlers"]["console"]["level"] = level.upper()
        logging.config.dictConfig(LOGGING_CONFIG)
        _configured = True
    except (ValueError, OSError) as e:
        logging.basicConfig(level=logging.INFO)
        logging.getLogger(__name__).warning(f"Logging setup failed: {e}")


def get_logger(name: str) -> logging.Logger:
    """
    Get logger for module.

    Args:
        name: Module name (use __name__)

    Returns:
        Configured logger instance

    Example:
        logger = get_logger(__name__)
        logger.info("Starting process")
    """
    setup_logging()
    return logging.getLogger(name)
