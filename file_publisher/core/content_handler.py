"""
Content handler interface for the directory poller.

A content handler receives the full text of one file and either returns
normally (success) or raises ContentHandlerError (failure). The poller treats
any failure as fatal to the whole poll operation.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from file_publisher.core.exceptions import ContentHandlerError
from file_publisher.services.logger_service import LoggerService

__all__ = [
    'ContentHandler', 'ContentHandlerError', 'NoOpContentHandler',
    'LoggingContentHandler', 'CallableContentHandler'
]


class ContentHandler(ABC):
    """
    Abstract interface for pluggable content handling.

    Implementations are injected into the DirectoryPoller and invoked once
    per eligible file per poll cycle.
    """

    @abstractmethod
    def handle_content(self, content: str) -> None:
        """
        Handle the text content of a single file.

        Args:
            content: Full file content decoded as UTF-8

        Raises:
            ContentHandlerError: If the content cannot be handled
        """
        pass

    def get_handler_name(self) -> str:
        """
        Get the name of this handler implementation.

        Returns:
            str: Name of the handler (defaults to class name)
        """
        return self.__class__.__name__


class NoOpContentHandler(ContentHandler):
    """Default handler: accepts every payload and does nothing with it."""

    def handle_content(self, content: str) -> None:
        return None


class LoggingContentHandler(ContentHandler):
    """Logs each payload. Stands in for a message publisher."""

    def __init__(self, logger_service: LoggerService, max_length: Optional[int] = None):
        """
        Args:
            logger_service: LoggerService used to emit the content
            max_length: Truncate logged content to this many characters if set
        """
        self.logger = logger_service
        self.max_length = max_length

    def handle_content(self, content: str) -> None:
        if self.max_length is not None and len(content) > self.max_length:
            content = content[:self.max_length] + "..."
        self.logger.log_info(f"File content: {content}")


class CallableContentHandler(ContentHandler):
    """Adapts a plain function ``(content) -> None`` to the ContentHandler interface."""

    def __init__(self, func: Callable[[str], None], name: Optional[str] = None):
        if not callable(func):
            raise TypeError("func must be callable")
        self.func = func
        self.name = name or getattr(func, '__name__', None)

    def handle_content(self, content: str) -> None:
        self.func(content)

    def get_handler_name(self) -> str:
        return self.name or super().get_handler_name()
