"""Error types raised by the directory poller."""

from typing import Optional


class PollerError(Exception):
    """Base class for every failure the poller reports to its caller."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class DirectoryError(PollerError):
    """The target directory is unusable."""


class DirectoryNotFoundError(DirectoryError):
    """The target path does not exist."""


class PathNotDirectoryError(DirectoryError):
    """The target path exists but is not a directory."""


class FileReadError(PollerError):
    """A file's content could not be read as UTF-8 text."""


class ContentHandlerError(PollerError):
    """A content handler could not handle a file's content."""


class FileDeletionError(PollerError):
    """A processed file could not be removed. Never propagated out of a poll."""
