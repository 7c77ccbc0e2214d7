"""
Unit tests for DirectoryPoller.

Covers directory validation, the poll loop and its continuation policy,
deletion behaviour and error propagation.
"""

import os
import shutil
import tempfile
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from file_publisher.core.content_handler import (
    CallableContentHandler,
    ContentHandler,
    NoOpContentHandler,
)
from file_publisher.core.directory_poller import DirectoryPoller, PollCycle
from file_publisher.core.exceptions import (
    ContentHandlerError,
    DirectoryError,
    DirectoryNotFoundError,
    FileReadError,
    PathNotDirectoryError,
    PollerError,
)
from file_publisher.core.poller_config import PollerConfig
from file_publisher.services.logger_service import LoggerService


SLEEP_TARGET = 'file_publisher.core.directory_poller.time.sleep'


class RecordingHandler(ContentHandler):
    """Remembers every payload it receives."""

    def __init__(self):
        self.contents = []

    def handle_content(self, content: str) -> None:
        self.contents.append(content)


class FailingHandler(ContentHandler):
    """Fails on every payload."""

    def __init__(self):
        self.calls = 0

    def handle_content(self, content: str) -> None:
        self.calls += 1
        raise ContentHandlerError("Simulated error in handler")


class TestDirectoryPoller:
    """Test cases for DirectoryPoller."""

    @pytest.fixture
    def temp_dir(self):
        """Create a temporary directory for polling."""
        temp_dir = tempfile.mkdtemp()
        yield Path(temp_dir)
        shutil.rmtree(temp_dir, ignore_errors=True)

    @pytest.fixture
    def sample_file(self, temp_dir):
        """Create sample.txt containing 'hello'."""
        file_path = temp_dir / "sample.txt"
        file_path.write_text("hello", encoding="utf-8")
        return file_path

    @pytest.fixture
    def mock_logger(self):
        """Create mock logger service."""
        return Mock(spec=LoggerService)

    def _poller(self, mock_logger, handler=None, **options):
        builder = PollerConfig.builder().poll_interval_millis(0)
        for name, value in options.items():
            getattr(builder, name)(value)
        return DirectoryPoller(builder.build(), handler or RecordingHandler(), mock_logger)

    def test_defaults(self, mock_logger):
        """Test that omitted collaborators fall back to defaults."""
        poller = DirectoryPoller(logger_service=mock_logger)

        assert poller.config == PollerConfig()
        assert isinstance(poller.content_handler, NoOpContentHandler)

    def test_missing_directory_raises_before_scanning(self, temp_dir, mock_logger):
        """Test that a missing path fails without listing anything."""
        handler = RecordingHandler()
        poller = self._poller(mock_logger, handler, max_cycles=1)
        missing = temp_dir / "missing"

        with patch.object(Path, 'iterdir') as mock_iterdir:
            with pytest.raises(DirectoryNotFoundError, match="Directory does not exist") as exc_info:
                poller.poll_directory(str(missing))

        mock_iterdir.assert_not_called()
        assert handler.contents == []
        assert exc_info.value.path == str(missing)
        assert isinstance(exc_info.value, DirectoryError)

    def test_file_path_raises_not_a_directory(self, sample_file, mock_logger):
        """Test that a regular file is rejected as target."""
        poller = self._poller(mock_logger, max_cycles=1)

        with patch.object(Path, 'iterdir') as mock_iterdir:
            with pytest.raises(PathNotDirectoryError, match="Path is not a directory"):
                poller.poll_directory(str(sample_file))

        mock_iterdir.assert_not_called()

    def test_verify_directory_accepts_directory(self, temp_dir, mock_logger):
        """Test verify_directory on a valid directory."""
        poller = self._poller(mock_logger)
        poller.verify_directory(temp_dir)
        mock_logger.log_error.assert_not_called()

    def test_deletes_files_when_enabled(self, temp_dir, sample_file, mock_logger):
        """Test that processed files are removed when deletion is enabled."""
        poller = self._poller(mock_logger, delete_after_process=True, max_cycles=1)

        poller.poll_directory(str(temp_dir))

        assert not sample_file.exists()
        assert poller.get_polling_stats()['files_deleted'] == 1

    def test_keeps_files_when_disabled(self, temp_dir, sample_file, mock_logger):
        """Test that files remain when deletion is disabled."""
        poller = self._poller(mock_logger, delete_after_process=False, max_cycles=2)

        poller.poll_directory(str(temp_dir))

        assert sample_file.exists()
        mock_logger.log_info.assert_any_call(
            "File deletion is disabled, skipping deletion for file: sample.txt"
        )

    def test_run_once_invokes_handler_once_without_sleeping(self, temp_dir, sample_file, mock_logger):
        """Test run-once mode: one handler call per file and no sleep."""
        handler = RecordingHandler()
        poller = self._poller(mock_logger, handler, continuous=False)

        with patch(SLEEP_TARGET) as mock_sleep:
            cycles = poller.poll_directory(str(temp_dir))

        assert cycles == 1
        assert handler.contents == ["hello"]
        assert sample_file.exists()
        mock_sleep.assert_not_called()

    def test_max_cycles_scenario(self, temp_dir, sample_file, mock_logger):
        """Test that a file kept on disk is handled once per cycle."""
        handler = RecordingHandler()
        poller = self._poller(mock_logger, handler, delete_after_process=False, max_cycles=3)

        cycles = poller.poll_directory(str(temp_dir))

        assert cycles == 3
        assert handler.contents == ["hello", "hello", "hello"]
        assert sample_file.exists()

    def test_sleeps_between_cycles_only(self, temp_dir, sample_file, mock_logger):
        """Test that the interval is slept between cycles but not after the last."""
        config = (PollerConfig.builder()
                  .poll_interval_millis(250)
                  .max_cycles(3)
                  .build())
        poller = DirectoryPoller(config, RecordingHandler(), mock_logger)

        with patch(SLEEP_TARGET) as mock_sleep:
            poller.poll_directory(str(temp_dir))

        assert mock_sleep.call_count == 2
        mock_sleep.assert_called_with(0.25)

    def test_max_cycles_takes_precedence_over_continuous(self, temp_dir, sample_file, mock_logger):
        """Test that a cycle cap stops a continuous poller."""
        handler = RecordingHandler()
        poller = self._poller(mock_logger, handler, continuous=True, max_cycles=2)

        poller.poll_directory(str(temp_dir))

        assert len(handler.contents) == 2

    def test_continuous_runs_until_handler_fails(self, temp_dir, sample_file, mock_logger):
        """Test that a continuous poller without cap keeps cycling."""
        calls = []

        def handle(content):
            calls.append(content)
            if len(calls) == 4:
                raise RuntimeError("stop")

        poller = self._poller(mock_logger, CallableContentHandler(handle), continuous=True)

        with patch(SLEEP_TARGET) as mock_sleep:
            with pytest.raises(ContentHandlerError):
                poller.poll_directory(str(temp_dir))

        assert len(calls) == 4
        assert mock_sleep.call_count == 3

    def test_handler_failure_aborts_poll(self, temp_dir, mock_logger):
        """Test that the first handler failure stops the whole operation."""
        for name in ("a.txt", "b.txt", "c.txt"):
            (temp_dir / name).write_text(name)
        handler = FailingHandler()
        poller = self._poller(mock_logger, handler, delete_after_process=True, max_cycles=3)

        with pytest.raises(ContentHandlerError, match="Simulated error in handler") as exc_info:
            poller.poll_directory(str(temp_dir))

        assert handler.calls == 1
        assert exc_info.value.path is not None
        # Nothing deleted: the failed file was not handled successfully
        assert len(list(temp_dir.iterdir())) == 3
        assert poller.get_polling_stats()['polling_cycles'] == 0

    def test_unexpected_handler_exception_is_wrapped(self, temp_dir, sample_file, mock_logger):
        """Test that arbitrary handler exceptions surface as ContentHandlerError."""
        def explode(content):
            raise ValueError("bad payload")

        poller = self._poller(mock_logger, CallableContentHandler(explode), max_cycles=1)

        with pytest.raises(ContentHandlerError) as exc_info:
            poller.poll_directory(str(temp_dir))

        assert isinstance(exc_info.value.__cause__, ValueError)
        assert exc_info.value.path == str(sample_file)
        assert sample_file.exists()

    def test_read_failure_is_fatal(self, temp_dir, mock_logger):
        """Test that undecodable content aborts the poll with FileReadError."""
        bad_file = temp_dir / "binary.dat"
        bad_file.write_bytes(b"\xff\xfe\xfa\x00")
        handler = RecordingHandler()
        poller = self._poller(mock_logger, handler, max_cycles=2)

        with pytest.raises(FileReadError) as exc_info:
            poller.poll_directory(str(temp_dir))

        assert isinstance(exc_info.value, PollerError)
        assert exc_info.value.path == str(bad_file)
        assert handler.contents == []
        assert bad_file.exists()

    def test_deletion_failure_is_logged_not_raised(self, temp_dir, sample_file, mock_logger):
        """Test that a failed delete leaves the file to be reprocessed next cycle."""
        handler = RecordingHandler()
        poller = self._poller(mock_logger, handler, delete_after_process=True, max_cycles=2)

        with patch.object(Path, 'unlink', side_effect=PermissionError("denied")):
            cycles = poller.poll_directory(str(temp_dir))

        assert cycles == 2
        assert sample_file.exists()
        assert handler.contents == ["hello", "hello"]
        stats = poller.get_polling_stats()
        assert stats['deletion_failures'] == 2
        assert stats['files_deleted'] == 0
        assert mock_logger.log_error.call_count == 2
        message, cause = mock_logger.log_error.call_args[0]
        assert "Failed to delete file sample.txt" in message
        assert isinstance(cause, PermissionError)

    def test_skips_directories(self, temp_dir, sample_file, mock_logger):
        """Test that subdirectories and their contents are ignored."""
        subdir = temp_dir / "nested"
        subdir.mkdir()
        (subdir / "inner.txt").write_text("inner")
        handler = RecordingHandler()
        poller = self._poller(mock_logger, handler, delete_after_process=True, max_cycles=1)

        poller.poll_directory(str(temp_dir))

        assert handler.contents == ["hello"]
        assert subdir.exists()
        assert (subdir / "inner.txt").exists()

    def test_skips_symlinks(self, temp_dir, mock_logger):
        """Test that symlinks to regular files are never handed to the handler."""
        outside = Path(tempfile.mkdtemp())
        try:
            target = outside / "target.txt"
            target.write_text("linked")
            try:
                os.symlink(target, temp_dir / "link.txt")
            except (OSError, NotImplementedError):
                pytest.skip("symlinks not supported on this platform")

            handler = RecordingHandler()
            poller = self._poller(mock_logger, handler, delete_after_process=True, max_cycles=1)
            poller.poll_directory(str(temp_dir))

            assert handler.contents == []
            assert (temp_dir / "link.txt").is_symlink()
            assert target.exists()
        finally:
            shutil.rmtree(outside, ignore_errors=True)

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="named pipes not available")
    def test_skips_named_pipes(self, temp_dir, sample_file, mock_logger):
        """Test that a FIFO is neither opened nor deleted."""
        fifo = temp_dir / "queue.fifo"
        os.mkfifo(fifo)
        handler = RecordingHandler()
        poller = self._poller(mock_logger, handler, delete_after_process=True, max_cycles=1)

        poller.poll_directory(str(temp_dir))

        assert handler.contents == ["hello"]
        assert fifo.exists()
        assert poller.get_polling_stats()['files_seen'] == 1

    def test_empty_directory_logs_no_files(self, temp_dir, mock_logger):
        """Test the message logged when a cycle finds nothing."""
        poller = self._poller(mock_logger, max_cycles=1)

        poller.poll_directory(str(temp_dir))

        mock_logger.log_info.assert_any_call("No files found on this poll cycle")
        assert poller.get_polling_stats()['last_cycle_files'] == 0

    def test_multiple_files_all_handled(self, temp_dir, mock_logger):
        """Test that every regular file is handled once per cycle, in any order."""
        for index in range(5):
            (temp_dir / f"msg_{index}.txt").write_text(f"payload {index}")
        handler = RecordingHandler()
        poller = self._poller(mock_logger, handler, delete_after_process=True, max_cycles=2)

        poller.poll_directory(str(temp_dir))

        assert sorted(handler.contents) == [f"payload {index}" for index in range(5)]
        assert list(temp_dir.iterdir()) == []
        stats = poller.get_polling_stats()
        assert stats['files_seen'] == 5
        assert stats['files_processed'] == 5
        assert stats['files_deleted'] == 5
        assert stats['polling_cycles'] == 2

    def test_scan_of_vanished_directory(self, temp_dir, mock_logger):
        """Test that listing a removed directory raises DirectoryNotFoundError."""
        poller = self._poller(mock_logger)
        shutil.rmtree(temp_dir)

        with pytest.raises(DirectoryNotFoundError, match="no longer exists"):
            poller._scan_directory(temp_dir)

    def test_accepts_path_objects(self, temp_dir, sample_file, mock_logger):
        """Test that poll_directory accepts pathlib paths as well as strings."""
        handler = RecordingHandler()
        poller = self._poller(mock_logger, handler, max_cycles=1)

        poller.poll_directory(temp_dir)

        assert handler.contents == ["hello"]


class TestShouldContinue:
    """Test cases for the continuation decision."""

    @pytest.fixture
    def mock_logger(self):
        return Mock(spec=LoggerService)

    def _poller(self, mock_logger, **kwargs):
        return DirectoryPoller(PollerConfig(**kwargs), NoOpContentHandler(), mock_logger)

    def test_run_once(self, mock_logger):
        poller = self._poller(mock_logger, continuous=False)
        assert poller.should_continue(1) is False

    def test_continuous(self, mock_logger):
        poller = self._poller(mock_logger, continuous=True)
        assert poller.should_continue(1) is True
        assert poller.should_continue(10_000) is True

    def test_cycle_cap(self, mock_logger):
        poller = self._poller(mock_logger, continuous=False, max_cycles=3)
        assert poller.should_continue(1) is True
        assert poller.should_continue(2) is True
        assert poller.should_continue(3) is False

    def test_non_positive_cap_falls_back_to_continuous(self, mock_logger):
        """Test that a cap of zero or below is treated as no cap."""
        assert self._poller(mock_logger, continuous=True, max_cycles=0).should_continue(5) is True
        assert self._poller(mock_logger, continuous=False, max_cycles=-1).should_continue(1) is False


class TestPollCycle:
    """Test cases for PollCycle."""

    def test_defaults(self):
        cycle = PollCycle(cycle_index=2)
        assert cycle.cycle_index == 2
        assert cycle.files_seen == 0
