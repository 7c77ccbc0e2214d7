"""
Main application orchestrator for the file publisher.

Loads configuration, sets up logging, wires a content handler into a
DirectoryPoller and runs the poll loop to completion or failure.
"""

import sys
from typing import Optional, Sequence

from file_publisher.config.config_manager import (
    AppConfig,
    ConfigManager,
    ConfigurationValidationError,
)
from file_publisher.core.content_handler import ContentHandler, LoggingContentHandler
from file_publisher.core.directory_poller import DirectoryPoller
from file_publisher.core.exceptions import DirectoryError, PollerError
from file_publisher.services.error_handler import ErrorHandler
from file_publisher.services.logger_service import LoggerService


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


class FilePublisherApp:
    """
    Coordinates configuration, logging and the directory poller.
    """

    def __init__(self, argv: Optional[Sequence[str]] = None, env_file: Optional[str] = '.env',
                 content_handler: Optional[ContentHandler] = None):
        """
        Args:
            argv: Command-line arguments (defaults to sys.argv[1:])
            env_file: Path to .env file for configuration
            content_handler: Handler to use instead of LoggingContentHandler
        """
        self.argv = argv
        self.env_file = env_file

        self.config_manager: Optional[ConfigManager] = None
        self.config: Optional[AppConfig] = None
        self.logger_service: Optional[LoggerService] = None
        self.error_handler: Optional[ErrorHandler] = None
        self.content_handler: Optional[ContentHandler] = content_handler
        self.poller: Optional[DirectoryPoller] = None

    def initialize(self) -> bool:
        """
        Initialize all application components in order.

        Returns:
            bool: True if initialization successful, False otherwise
        """
        try:
            self.config_manager = ConfigManager(self.env_file)
            self.config = self.config_manager.initialize(self.argv)
        except ConfigurationValidationError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return False

        try:
            self._setup_components()
            return True
        except Exception as e:
            error_msg = f"Failed to initialize application: {str(e)}"
            print(f"ERROR: {error_msg}", file=sys.stderr)
            if self.logger_service:
                self.logger_service.log_error(error_msg, e)
            self._cleanup_on_failure()
            return False

    def _setup_components(self) -> None:
        self.logger_service = LoggerService.setup_logger(
            log_file_path=self.config.log_file,
            level=self.config.log_level
        )
        for warning in self.config_manager.warnings:
            self.logger_service.log_warning(f"Configuration warning: {warning}")

        producer = self.config.producer
        polling = self.config.polling
        self.logger_service.log_info(f"topic: {producer.topic}")
        self.logger_service.log_info(f"bootstrap: {producer.bootstrap_servers}")
        self.logger_service.log_info(f"messageLocation: {polling.message_location}")
        self.logger_service.log_info(f"runOnce: {polling.run_once}")
        self.logger_service.log_info(f"delayInMillis: {polling.delay_millis}")
        self.logger_service.log_info(f"deleteFiles: {not polling.no_delete_files}")
        self.logger_service.log_debug(f"producer settings: {producer.masked()}")

        if self.config.error_folder:
            self.error_handler = ErrorHandler(self.config.error_folder)

        if self.content_handler is None:
            self.content_handler = LoggingContentHandler(self.logger_service)

        self.poller = DirectoryPoller(
            config=polling.to_poller_config(),
            content_handler=self.content_handler,
            logger_service=self.logger_service
        )

        self.logger_service.log_info("All components initialized successfully")

    def _cleanup_on_failure(self) -> None:
        if self.logger_service:
            self.logger_service.close()
        self.logger_service = None
        self.poller = None

    def start(self) -> None:
        """
        Run the poll loop.

        Raises:
            RuntimeError: If the application is not initialized
            PollerError: If polling fails
        """
        if self.poller is None or self.config is None:
            raise RuntimeError("Application not properly initialized. Call initialize() first.")

        self.poller.poll_directory(self.config.polling.message_location)
        self.logger_service.log_info("Directory polling completed successfully")

    def _report_failure(self, error: PollerError) -> None:
        self.logger_service.log_error("Error polling directory", error)

        # Directory problems have no single offending file to report on
        if self.error_handler and error.path and not isinstance(error, DirectoryError):
            stats = self.poller.get_polling_stats()
            poll_state = {
                'directory': self.config.polling.message_location,
                'content_handler': stats['content_handler'],
                'poll_cycle': stats['polling_cycles'] + 1,
                'files_processed': stats['files_processed'],
                'files_deleted': stats['files_deleted'],
            }
            report = self.error_handler.create_error_log(error.path, str(error), error, poll_state)
            if report:
                self.logger_service.log_info(f"Error report written to: {report}")

    def run(self) -> int:
        """
        Complete application lifecycle: initialize, poll, report.

        Returns:
            int: Exit code (0 for success, 1 for error, 130 if interrupted)
        """
        if not self.initialize():
            return EXIT_FAILURE

        try:
            self.start()
            return EXIT_OK
        except PollerError as e:
            self._report_failure(e)
            return EXIT_FAILURE
        except KeyboardInterrupt:
            self.logger_service.log_info("Polling stopped by user")
            return EXIT_INTERRUPTED
        finally:
            self.logger_service.close()


def create_app(argv: Optional[Sequence[str]] = None, env_file: Optional[str] = '.env',
               content_handler: Optional[ContentHandler] = None) -> FilePublisherApp:
    """
    Factory function to create a configured application instance.

    Args:
        argv: Command-line arguments
        env_file: Path to .env file for configuration
        content_handler: Optional handler replacing the default logging handler

    Returns:
        FilePublisherApp: Application instance
    """
    return FilePublisherApp(argv=argv, env_file=env_file, content_handler=content_handler)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Console entry point."""
    return create_app(argv=argv).run()
