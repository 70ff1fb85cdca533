"""
Logging configuration for the Internal Components Mapper
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime

from config import (
    LOG_LEVEL,
    LOG_FILE,
    LOG_DIR,
    LOG_FORMAT,
    LOG_ROTATION_SIZE,
    LOG_BACKUP_COUNT,
    LOG_TO_FILE,
)


class OperationLogger:
    """Logger for tracking mapping operations with structured context"""

    def __init__(self, name: str = "internal_components"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, LOG_LEVEL.upper()))

        # Setup handlers if not already configured
        if not self.logger.handlers:
            self._setup_handlers()

    def _setup_handlers(self):
        """Setup console handler, and the file handler when LOG_TO_FILE is set"""

        # Console handler, stderr so that JSON on stdout stays clean
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(logging.Formatter("%(levelname)s - %(message)s"))
        self.logger.addHandler(console_handler)

        if LOG_TO_FILE:
            self.enable_file_logging()

    def enable_file_logging(self, log_dir: Optional[Path] = None):
        """Add the rotating file handler; calling it again is a no-op"""
        if any(
            isinstance(handler, logging.handlers.RotatingFileHandler)
            for handler in self.logger.handlers
        ):
            return

        log_dir = log_dir or LOG_DIR
        log_dir.mkdir(parents=True, exist_ok=True)

        # File handler with rotation
        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / LOG_FILE, maxBytes=LOG_ROTATION_SIZE, backupCount=LOG_BACKUP_COUNT
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        self.logger.debug(message, extra={"structured": kwargs})

    def info(self, message: str, **kwargs):
        self.logger.info(message, extra={"structured": kwargs})

    def warning(self, message: str, **kwargs):
        self.logger.warning(message, extra={"structured": kwargs})

    def log_operation_start(self, operation: str, **kwargs):
        """Log the start of an operation with context"""
        context = {
            "operation": operation,
            "timestamp": datetime.now().isoformat(),
            "context": kwargs,
        }
        self.logger.info(f"Starting {operation}", extra={"structured": context})

    def log_operation_end(self, operation: str, success: bool, **kwargs):
        """Log the end of an operation with results"""
        context = {
            "operation": operation,
            "success": success,
            "timestamp": datetime.now().isoformat(),
            "results": kwargs,
        }
        level = logging.INFO if success else logging.ERROR
        self.logger.log(
            level,
            f"Completed {operation} - {'SUCCESS' if success else 'FAILED'}",
            extra={"structured": context},
        )

    def log_api_call(
        self,
        method: str,
        url: str,
        status_code: Optional[int] = None,
        response_time: Optional[float] = None,
        **kwargs,
    ):
        """Log API calls with timing and status"""
        context = {
            "api_call": {
                "method": method,
                "url": url,
                "status_code": status_code,
                "response_time_ms": response_time * 1000 if response_time else None,
                "timestamp": datetime.now().isoformat(),
            },
            **kwargs,
        }

        if status_code:
            level = logging.ERROR if status_code >= 500 else logging.DEBUG
            self.logger.log(
                level,
                f"API {method} {url} - {status_code}",
                extra={"structured": context},
            )
        else:
            self.logger.debug(f"API {method} {url}", extra={"structured": context})

    def log_error(self, error: Exception, context: Optional[dict] = None):
        """Log errors with full context"""
        error_context = {
            "error": {
                "type": type(error).__name__,
                "message": str(error),
                "timestamp": datetime.now().isoformat(),
            },
            "context": context or {},
        }
        self.logger.error(
            f"Error: {type(error).__name__}: {error}",
            extra={"structured": error_context},
            exc_info=True,
        )


def get_logger(name: str = "internal_components") -> OperationLogger:
    """Get a configured logger instance"""
    return OperationLogger(name)


# Global logger instance
logger = get_logger()
