"""
Directory poller.

Repeatedly scans a single directory (non-recursively), hands the text content
of every regular file to a ContentHandler and optionally deletes the file
afterwards. Runs synchronously on the calling thread; the only suspension
point is the sleep between cycles.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from file_publisher.core.content_handler import ContentHandler, NoOpContentHandler
from file_publisher.core.exceptions import (
    ContentHandlerError,
    DirectoryError,
    DirectoryNotFoundError,
    FileDeletionError,
    FileReadError,
    PathNotDirectoryError,
)
from file_publisher.core.poller_config import PollerConfig
from file_publisher.services.logger_service import LoggerService


@dataclass
class PollCycle:
    """Transient state of one pass over the directory."""
    cycle_index: int
    files_seen: int = 0


class DirectoryPoller:
    """
    Polls a directory and feeds file contents to a content handler.

    Read and handler failures abort the whole poll. Deletion failures are
    logged and the file is left in place, so it is picked up again on the
    next cycle. Files that are not deleted are reprocessed every cycle.
    """

    def __init__(self, config: Optional[PollerConfig] = None,
                 content_handler: Optional[ContentHandler] = None,
                 logger_service: Optional[LoggerService] = None):
        """
        Initialize DirectoryPoller.

        Args:
            config: Polling behaviour (defaults to PollerConfig())
            content_handler: Handler invoked per file (defaults to NoOpContentHandler)
            logger_service: LoggerService instance for logging
        """
        self.config = config or PollerConfig()
        self.content_handler = content_handler or NoOpContentHandler()
        self.logger = logger_service or LoggerService.setup_logger()

        self.stats = {
            'polling_cycles': 0,
            'files_seen': 0,
            'files_processed': 0,
            'files_deleted': 0,
            'deletion_failures': 0,
            'last_cycle_files': 0,
            'last_poll_time': 0.0,
            'last_poll_duration': 0.0
        }

    def poll_directory(self, directory: Union[str, Path]) -> int:
        """
        Poll ``directory`` until the configuration says to stop.

        Args:
            directory: Path of the directory to poll

        Returns:
            int: Number of poll cycles completed

        Raises:
            DirectoryNotFoundError: If the directory does not exist
            PathNotDirectoryError: If the path is not a directory
            FileReadError: If a file cannot be read
            ContentHandlerError: If the content handler fails
        """
        directory_path = Path(directory)

        # Checked once: an invalid path will not fix itself between cycles
        self.verify_directory(directory_path)

        self.logger.log_info(
            f"Polling directory: {directory_path} "
            f"(handler: {self.content_handler.get_handler_name()}, "
            f"continuous: {self.config.continuous}, "
            f"delete files: {self.config.delete_after_process}, "
            f"interval: {self.config.poll_interval_millis}ms, "
            f"max cycles: {self.config.max_cycles})"
        )

        cycles_completed = 0
        keep_running = True

        while keep_running:
            cycle = PollCycle(cycle_index=cycles_completed)
            poll_start = time.time()

            for file_path in self._scan_directory(directory_path):
                cycle.files_seen += 1
                self.stats['files_seen'] += 1
                self._process_file(file_path)

            cycles_completed += 1
            poll_end = time.time()
            self.stats['polling_cycles'] = cycles_completed
            self.stats['last_cycle_files'] = cycle.files_seen
            self.stats['last_poll_time'] = poll_end
            self.stats['last_poll_duration'] = poll_end - poll_start

            if cycle.files_seen == 0:
                self.logger.log_info("No files found on this poll cycle")
            else:
                self.logger.log_debug(
                    f"Poll cycle {cycle.cycle_index} finished: {cycle.files_seen} file(s)"
                )

            keep_running = self.should_continue(cycles_completed)
            if keep_running:
                time.sleep(self.config.poll_interval_seconds)

        self.logger.log_info(f"Directory polling finished after {cycles_completed} cycle(s)")
        return cycles_completed

    def verify_directory(self, directory_path: Union[str, Path]) -> None:
        """
        Ensure the target exists and is a directory.

        Raises:
            DirectoryNotFoundError: If the path does not exist
            PathNotDirectoryError: If the path is not a directory
        """
        directory_path = Path(directory_path)

        if not directory_path.exists():
            error = DirectoryNotFoundError(
                f"Directory does not exist: {directory_path}", path=str(directory_path)
            )
            self.logger.log_error(str(error))
            raise error

        if not directory_path.is_dir():
            error = PathNotDirectoryError(
                f"Path is not a directory: {directory_path}", path=str(directory_path)
            )
            self.logger.log_error(str(error))
            raise error

    def should_continue(self, cycles_completed: int) -> bool:
        """
        Decide whether another cycle should run.

        A positive cycle cap takes precedence over the continuous flag.
        """
        if self.config.cycle_cap_enabled:
            return cycles_completed < self.config.max_cycles
        return self.config.continuous

    def get_polling_stats(self) -> dict:
        """
        Get polling statistics.

        Returns:
            dict: Counters for cycles, files seen, processed and deleted
        """
        stats = self.stats.copy()
        stats.update({
            'continuous': self.config.continuous,
            'delete_after_process': self.config.delete_after_process,
            'poll_interval_millis': self.config.poll_interval_millis,
            'max_cycles': self.config.max_cycles,
            'content_handler': self.content_handler.get_handler_name()
        })
        return stats

    def _scan_directory(self, directory_path: Path) -> List[Path]:
        """List regular files directly inside the directory. Symlinks and subdirectories are skipped."""
        try:
            entries = list(directory_path.iterdir())
        except FileNotFoundError as e:
            raise DirectoryNotFoundError(
                f"Directory no longer exists: {directory_path}", path=str(directory_path)
            ) from e
        except OSError as e:
            raise DirectoryError(
                f"Failed to list directory {directory_path}: {e}", path=str(directory_path)
            ) from e

        return [entry for entry in entries if not entry.is_symlink() and entry.is_file()]

    def _process_file(self, file_path: Path) -> None:
        """Read one file, hand it to the content handler, then apply the deletion policy."""
        self.logger.log_info(f"Processing file: {file_path.name}")

        try:
            content = file_path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            self.logger.log_error(f"Failed to read file {file_path.name}", e)
            raise FileReadError(
                f"Failed to read file {file_path}: {e}", path=str(file_path)
            ) from e

        try:
            self.content_handler.handle_content(content)
        except ContentHandlerError as e:
            if e.path is None:
                e.path = str(file_path)
            self.logger.log_error(f"Content handler failed for file {file_path.name}", e)
            raise
        except Exception as e:
            self.logger.log_error(f"Content handler failed for file {file_path.name}", e)
            raise ContentHandlerError(
                f"Content handler {self.content_handler.get_handler_name()} "
                f"failed for file {file_path}: {e}",
                path=str(file_path)
            ) from e

        self.stats['files_processed'] += 1
        self._delete_file(file_path)

    def _delete_file(self, file_path: Path) -> bool:
        """
        Apply the deletion policy to a successfully handled file.

        Returns:
            bool: True if the file was removed
        """
        if not self.config.delete_after_process:
            self.logger.log_info(
                f"File deletion is disabled, skipping deletion for file: {file_path.name}"
            )
            return False

        try:
            self._remove_file(file_path)
        except FileDeletionError as e:
            # Left on disk; it will be processed again next cycle
            self.stats['deletion_failures'] += 1
            self.logger.log_error(str(e), e.__cause__)
            return False

        self.stats['files_deleted'] += 1
        self.logger.log_info(f"Deleted file: {file_path.name}")
        return True

    def _remove_file(self, file_path: Path) -> None:
        try:
            file_path.unlink()
        except OSError as e:
            raise FileDeletionError(
                f"Failed to delete file {file_path.name}", path=str(file_path)
            ) from e
