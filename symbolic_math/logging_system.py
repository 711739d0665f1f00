"""
Logging System for Symbolic Math

Centralized logging with verbosity levels. The engine is a library, so the
default level is SILENT; callers opt in with configure_logging().
"""

import logging
import sys
from typing import Optional
from enum import Enum
from datetime import datetime


class LogLevel(Enum):
    """Enumeration of logging levels for the engine"""
    SILENT = 0      # No output
    MINIMAL = 1     # Warnings only
    MODERATE = 2    # Public operation entry points
    DETAILED = 3    # Rule fallbacks and folding failures
    VERBOSE = 4     # All information including debug details


class SymbolicMathLogger:
    """
    Centralized logger for symbolic_math with level-aware filtering
    """

    def __init__(self, log_level: LogLevel = LogLevel.SILENT,
                 log_to_file: bool = False, log_file_path: Optional[str] = None):
        self.log_level = log_level
        self.log_to_file = log_to_file

        self.logger = logging.getLogger('symbolic_math')
        self.logger.setLevel(logging.DEBUG)
        self.logger.handlers.clear()
        self.logger.propagate = False

        formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        )

        if self.log_level != LogLevel.SILENT:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        if log_to_file:
            if log_file_path is None:
                log_file_path = f"symbolic_math_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
            file_handler = logging.FileHandler(log_file_path)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

        if not self.logger.handlers:
            self.logger.addHandler(logging.NullHandler())

    def _should_log(self, required_level: LogLevel) -> bool:
        """Check if message should be logged based on current log level"""
        return self.log_level.value >= required_level.value

    def info(self, message: str, required_level: LogLevel = LogLevel.MODERATE):
        if self._should_log(required_level):
            self.logger.info(message)

    def warning(self, message: str):
        if self._should_log(LogLevel.MINIMAL):
            self.logger.warning(message)

    def fallback(self, operation: str, message: str):
        """A rule-based operation gave up on a node"""
        if self._should_log(LogLevel.DETAILED):
            self.logger.info(f"{operation.upper()}: {message}")

    def debug(self, message: str):
        if self._should_log(LogLevel.VERBOSE):
            self.logger.debug(f"DEBUG: {message}")


_global_logger: Optional[SymbolicMathLogger] = None


def get_logger() -> SymbolicMathLogger:
    """Get or create the global logger instance"""
    global _global_logger
    if _global_logger is None:
        _global_logger = SymbolicMathLogger()
    return _global_logger


def set_log_level(level: LogLevel):
    """Set the global logging level"""
    global _global_logger
    if _global_logger is None or _global_logger.log_level == LogLevel.SILENT:
        # handlers are only attached at construction time
        _global_logger = SymbolicMathLogger(log_level=level)
    else:
        _global_logger.log_level = level


def configure_logging(log_level: LogLevel = LogLevel.MODERATE,
                      log_to_file: bool = False,
                      log_file_path: Optional[str] = None) -> SymbolicMathLogger:
    """Configure the global logging system"""
    global _global_logger
    _global_logger = SymbolicMathLogger(
        log_level=log_level,
        log_to_file=log_to_file,
        log_file_path=log_file_path
    )
    return _global_logger


def log_info(message: str, level: LogLevel = LogLevel.MODERATE):
    get_logger().info(message, level)


def log_warning(message: str):
    get_logger().warning(message)


def log_fallback(operation: str, message: str):
    get_logger().fallback(operation, message)


def log_debug(message: str):
    get_logger().debug(message)
