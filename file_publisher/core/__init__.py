# Core polling engine
from .content_handler import (
    CallableContentHandler,
    ContentHandler,
    LoggingContentHandler,
    NoOpContentHandler,
)
from .directory_poller import DirectoryPoller, PollCycle
from .exceptions import (
    ContentHandlerError,
    DirectoryError,
    DirectoryNotFoundError,
    FileDeletionError,
    FileReadError,
    PathNotDirectoryError,
    PollerError,
)
from .poller_config import PollerConfig, PollerConfigBuilder

__all__ = [
    'DirectoryPoller', 'PollCycle', 'PollerConfig', 'PollerConfigBuilder',
    'ContentHandler', 'NoOpContentHandler', 'LoggingContentHandler', 'CallableContentHandler',
    'PollerError', 'DirectoryError', 'DirectoryNotFoundError', 'PathNotDirectoryError',
    'FileReadError', 'ContentHandlerError', 'FileDeletionError'
]
