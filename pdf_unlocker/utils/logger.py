"""
Logging utilities for the PDF Unlocker.
"""

import logging
import os
import sys
from typing import Optional


class Logger:
    """Custom logger for the PDF unlocker"""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    def __init__(self, name: str = "pdf_unlocker", log_file: Optional[str] = None,
                 level: int = logging.INFO, console: bool = True):
        """Initialize the logger

        Args:
            name: Logger name
            log_file: Optional file to log to
            level: Logging level
            console: Whether to log to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.logger.propagate = False

        # Clear any existing handlers
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # Console output goes to stderr so it never mixes with a PDF written to stdout
        if console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(level)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

        if not console and not log_file:
            self.logger.addHandler(logging.NullHandler())

    def get_logger(self) -> logging.Logger:
        """Get the logger instance"""
        return self.logger


def get_module_logger(module_name: str) -> logging.Logger:
    """Get a child of the package logger for a module

    Module loggers propagate to the ``pdf_unlocker`` logger, so handlers set up
    by :class:`Logger` apply to them.
    """
    if not module_name.startswith("pdf_unlocker"):
        module_name = f"pdf_unlocker.{module_name}"
    return logging.getLogger(module_name)
