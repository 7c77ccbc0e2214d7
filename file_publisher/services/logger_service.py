"""
Logger Service for the file publisher.

Centralized logging with console output and an optional log file, a shared
timestamped format, and a configurable level.
"""

import logging
from pathlib import Path
from typing import Optional


DEFAULT_LOGGER_NAME = "file_publisher"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def resolve_log_level(level_name: Optional[str]) -> int:
    """Map a level name such as 'debug' to a logging constant, INFO if unknown."""
    if not level_name:
        return logging.INFO
    level = logging.getLevelName(level_name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


class LoggerService:
    """
    Centralized logging service used by the poller and the application.

    Writes to the console and, when a log file path is given, to that file
    as well.
    """

    def __init__(self, log_file_path: Optional[str] = None,
                 logger_name: str = DEFAULT_LOGGER_NAME,
                 level: Optional[str] = None):
        """
        Initialize the LoggerService with console and optional file logging.

        Args:
            log_file_path: Optional path to log file. If None, only console logging is used.
            logger_name: Name for the logger instance.
            level: Level name (DEBUG, INFO, WARNING, ERROR). Defaults to INFO.
        """
        self.logger_name = logger_name
        self.log_file_path = log_file_path
        self.level = resolve_log_level(level)
        self._logger: Optional[logging.Logger] = None
        self._setup_logger()

    def _setup_logger(self) -> None:
        """Set up the logger with proper formatting and handlers."""
        self._logger = logging.getLogger(self.logger_name)
        self._logger.setLevel(self.level)

        # Clear any existing handlers to avoid duplicates
        for handler in self._logger.handlers[:]:
            handler.close()
            self._logger.removeHandler(handler)

        formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(self.level)
        console_handler.setFormatter(formatter)
        self._logger.addHandler(console_handler)

        if self.log_file_path:
            log_dir = Path(self.log_file_path).parent
            log_dir.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(self.log_file_path, encoding='utf-8')
            file_handler.setLevel(self.level)
            file_handler.setFormatter(formatter)
            self._logger.addHandler(file_handler)

    def log_debug(self, message: str) -> None:
        """Log a debug message."""
        if self._logger:
            self._logger.debug(message)

    def log_info(self, message: str) -> None:
        """
        Log an informational message.

        Args:
            message: The message to log at INFO level.
        """
        if self._logger:
            self._logger.info(message)

    def log_warning(self, message: str) -> None:
        """Log a warning message."""
        if self._logger:
            self._logger.warning(message)

    def log_error(self, message: str, exception: Optional[BaseException] = None) -> None:
        """
        Log an error message with optional exception details.

        Args:
            message: The error message to log.
            exception: Optional exception to include in the log.
        """
        if self._logger:
            if exception:
                self._logger.error(f"{message}: {type(exception).__name__}: {str(exception)}")
            else:
                self._logger.error(message)

    def get_logger(self) -> logging.Logger:
        """
        Get the underlying logger instance for advanced usage.

        Returns:
            The configured logger instance.
        """
        return self._logger

    def close(self) -> None:
        """Close and detach all handlers, releasing any open log file."""
        if self._logger:
            for handler in self._logger.handlers[:]:
                handler.close()
                self._logger.removeHandler(handler)

    @classmethod
    def setup_logger(cls, log_file_path: Optional[str] = None,
                     logger_name: str = DEFAULT_LOGGER_NAME,
                     level: Optional[str] = None) -> 'LoggerService':
        """
        Class method to create and configure a LoggerService instance.

        Args:
            log_file_path: Optional path to log file.
            logger_name: Name for the logger instance.
            level: Optional level name.

        Returns:
            Configured LoggerService instance.
        """
        return cls(log_file_path=log_file_path, logger_name=logger_name, level=level)
