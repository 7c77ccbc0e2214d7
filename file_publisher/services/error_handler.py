"""
Error Handler Service

Writes an error report for the file that caused a poll to abort, so the
failure can be inspected after the process has exited.
"""

import os
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


class ErrorHandler:
    """
    Creates error report files in a configured error folder.

    Reports are named after the failed file: ``message.json`` produces
    ``message.json.log``.
    """

    def __init__(self, error_folder: str):
        """
        Initialize the ErrorHandler with the error folder path.

        Args:
            error_folder: Path to the folder where error reports will be stored
        """
        self.error_folder = Path(error_folder)

    def create_error_log(self, file_path: str, error_message: str,
                         exception: Optional[BaseException] = None,
                         poll_state: Optional[Dict[str, Any]] = None) -> Optional[Path]:
        """
        Create an error report for a file that failed processing.

        Args:
            file_path: Path to the file that failed
            error_message: Description of the error that occurred
            exception: Optional exception object for additional details
            poll_state: Optional poller state at the time of failure
                (handler name, cycle number, counters)

        Returns:
            Path of the written report, or None if it could not be written
        """
        try:
            error_log_path = self._get_error_log_path(file_path)
            report = self._build_report(file_path, error_message, exception, poll_state)
            error_log_path.write_text("\n".join(report) + "\n", encoding='utf-8')
            return error_log_path
        except OSError as e:
            # Must not mask the poll failure being reported
            print(f"Failed to create error log for {file_path}: {str(e)}")
            return None

    def _get_error_log_path(self, file_path: str) -> Path:
        """Return ``<error_folder>/<filename>.log``, creating the folder if needed."""
        log_filename = f"{Path(file_path).name}.log"
        self.error_folder.mkdir(parents=True, exist_ok=True)
        return self.error_folder / log_filename

    def _describe_file(self, file_path: str) -> List[str]:
        try:
            file_stat = os.stat(file_path)
        except OSError:
            return ["  state: missing"]
        modified = datetime.fromtimestamp(file_stat.st_mtime).isoformat()
        return [
            "  state: present",
            f"  size: {file_stat.st_size} bytes",
            f"  modified: {modified}",
        ]

    def _build_report(self, file_path: str, error_message: str,
                      exception: Optional[BaseException],
                      poll_state: Optional[Dict[str, Any]]) -> List[str]:
        lines = [
            "POLL FAILURE REPORT",
            "-" * 19,
            f"Reported: {datetime.now().isoformat()}",
            f"File: {file_path}",
            f"Error: {error_message}",
        ]

        if exception is not None:
            lines.append(f"Failure: {type(exception).__name__}")
            cause = exception.__cause__
            if cause is not None:
                lines.append(f"Cause: {type(cause).__name__}: {cause}")

        if poll_state:
            lines.append("")
            lines.append("Poll state:")
            lines.extend(f"  {key}: {value}" for key, value in poll_state.items())

        lines.append("")
        lines.append("File on disk:")
        lines.extend(self._describe_file(file_path))

        if exception is not None:
            lines.append("")
            lines.append("Traceback:")
            formatted = traceback.format_exception(
                type(exception), exception, exception.__traceback__
            )
            lines.append("".join(formatted).rstrip("\n"))

        return lines
