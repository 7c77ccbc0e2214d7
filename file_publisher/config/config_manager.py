"""Configuration management for the file publisher application."""

import argparse
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from dotenv import load_dotenv

from file_publisher.core.poller_config import PollerConfig


TRUE_VALUES = ("true", "1", "yes", "on")
VALID_ACKS = ["0", "1", "all"]
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ConfigurationValidationError(Exception):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, critical_errors: List[str], warning_errors: List[str]):
        super().__init__(message)
        self.critical_errors = critical_errors
        self.warning_errors = warning_errors
        self.has_critical_errors = len(critical_errors) > 0
        self.has_warnings = len(warning_errors) > 0


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if not value:
        return default
    return value.strip().lower() in TRUE_VALUES


def _parse_int(config: Dict[str, str], var: str, default: Optional[int],
               errors: List[str]) -> Optional[int]:
    """Parse an integer setting, recording a validation error if it is malformed."""
    value = config.get(var, "")
    if value is None or str(value).strip() == "":
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        errors.append(f"Invalid {var} '{value}': must be an integer")
        return default


@dataclass
class ProducerConfig:
    """
    Message broker settings.

    Parsed and validated so the command line matches the publisher that will
    consume these files; nothing here opens a connection.
    """
    topic: str
    bootstrap_servers: str
    acks: str
    client_id: str = "file_publisher.producer"
    retries: int = 0
    retry_delay_ms: int = 100
    max_in_flight: int = 1
    batch_size_bytes: int = 16384
    batch_delay_ms: int = 0
    is_secure: bool = False
    security_protocol: Optional[str] = None
    sasl_mechanism: Optional[str] = None
    sasl_jaas_config: Optional[str] = None
    truststore_type: Optional[str] = None
    truststore_location: Optional[str] = None
    truststore_password: Optional[str] = None

    SECRET_FIELDS = ('sasl_jaas_config', 'truststore_password')

    def validate(self) -> List[str]:
        """Validate broker settings and return list of validation errors."""
        errors = []

        if not self.topic:
            errors.append("TOPIC is required but not provided")

        if not self.bootstrap_servers:
            errors.append("BOOTSTRAP_SERVER is required but not provided")
        else:
            errors.extend(self._validate_bootstrap_servers())

        if not self.acks:
            errors.append("ACKS is required but not provided")
        elif self.acks not in VALID_ACKS:
            errors.append(f"Invalid ACKS '{self.acks}'. Must be one of: {VALID_ACKS}")

        if self.retries < 0:
            errors.append(f"RETRIES must be >= 0, got: {self.retries}")
        if self.retry_delay_ms < 0:
            errors.append(f"RETRY_DELAY_MS must be >= 0, got: {self.retry_delay_ms}")
        if self.max_in_flight < 1:
            errors.append(f"MAX_IN_FLIGHT must be >= 1, got: {self.max_in_flight}")
        if self.batch_size_bytes < 0:
            errors.append(f"BATCH_SIZE_BYTES must be >= 0, got: {self.batch_size_bytes}")
        if self.batch_delay_ms < 0:
            errors.append(f"BATCH_DELAY_MS must be >= 0, got: {self.batch_delay_ms}")

        errors.extend(self._validate_security())
        return errors

    def _validate_bootstrap_servers(self) -> List[str]:
        """Each comma-separated entry must look like host:port."""
        errors = []
        for entry in self.bootstrap_servers.split(","):
            entry = entry.strip()
            host, _, port = entry.rpartition(":")
            if not host or not port.isdigit() or not (1 <= int(port) <= 65535):
                errors.append(f"Invalid bootstrap server entry '{entry}'. Expected host:port")
        return errors

    def _validate_security(self) -> List[str]:
        errors = []
        if self.is_secure:
            if not self.security_protocol:
                errors.append("SECURITY_PROTOCOL is required when IS_SECURE is enabled")
            if self.sasl_mechanism and not self.sasl_jaas_config:
                errors.append("SASL_JAAS_CONFIG should be set when SASL_MECHANISM is configured")
            if self.truststore_location and not os.path.exists(self.truststore_location):
                errors.append(f"TRUSTSTORE_LOCATION path does not exist: {self.truststore_location}")
        else:
            ignored = [name for name in ('security_protocol', 'sasl_mechanism', 'sasl_jaas_config',
                                         'truststore_type', 'truststore_location', 'truststore_password')
                       if getattr(self, name)]
            if ignored:
                errors.append(f"Security settings are ignored because IS_SECURE is disabled: {ignored}")
        return errors

    def masked(self) -> Dict[str, object]:
        """Settings as a dict safe for logging (secrets replaced)."""
        values = {}
        for name in self.__dataclass_fields__:
            value = getattr(self, name)
            if name in self.SECRET_FIELDS and value:
                value = "********"
            values[name] = value
        return values

    @classmethod
    def from_config_dict(cls, config: Dict[str, str], errors: List[str]) -> 'ProducerConfig':
        """Create ProducerConfig from a configuration dictionary; parse errors go into ``errors``."""
        return cls(
            topic=config.get("TOPIC", ""),
            bootstrap_servers=config.get("BOOTSTRAP_SERVER", ""),
            acks=config.get("ACKS", "").strip().lower(),
            client_id=config.get("CLIENT_ID") or "file_publisher.producer",
            retries=_parse_int(config, "RETRIES", 0, errors),
            retry_delay_ms=_parse_int(config, "RETRY_DELAY_MS", 100, errors),
            max_in_flight=_parse_int(config, "MAX_IN_FLIGHT", 1, errors),
            batch_size_bytes=_parse_int(config, "BATCH_SIZE_BYTES", 16384, errors),
            batch_delay_ms=_parse_int(config, "BATCH_DELAY_MS", 0, errors),
            is_secure=_parse_bool(config.get("IS_SECURE")),
            security_protocol=config.get("SECURITY_PROTOCOL") or None,
            sasl_mechanism=config.get("SASL_MECHANISM") or None,
            sasl_jaas_config=config.get("SASL_JAAS_CONFIG") or None,
            truststore_type=config.get("TRUSTSTORE_TYPE") or None,
            truststore_location=config.get("TRUSTSTORE_LOCATION") or None,
            truststore_password=config.get("TRUSTSTORE_PASSWORD") or None
        )


@dataclass
class PollingSettings:
    """Where message files live and how the directory is polled."""
    message_location: str
    delay_millis: int = 1000
    run_once: bool = False
    no_delete_files: bool = False
    max_poll_cycles: Optional[int] = None

    def validate(self) -> List[str]:
        """Validate polling settings and return list of validation errors."""
        errors = []

        # Existence is checked by the poller itself before the first cycle
        if not self.message_location:
            errors.append("MESSAGE_LOCATION is required but not provided")

        if self.delay_millis < 0:
            errors.append(f"DELAY_IN_MILLIS must be >= 0, got: {self.delay_millis}")

        if self.max_poll_cycles is not None and self.max_poll_cycles <= 0:
            errors.append(f"MAX_POLL_CYCLES must be > 0 when set, got: {self.max_poll_cycles}")

        return errors

    def to_poller_config(self) -> PollerConfig:
        """Translate command-line semantics into a PollerConfig."""
        return (PollerConfig.builder()
                .continuous(not self.run_once)
                .delete_after_process(not self.no_delete_files)
                .poll_interval_millis(self.delay_millis)
                .max_cycles(self.max_poll_cycles)
                .build())

    @classmethod
    def from_config_dict(cls, config: Dict[str, str], errors: List[str]) -> 'PollingSettings':
        return cls(
            message_location=config.get("MESSAGE_LOCATION", ""),
            delay_millis=_parse_int(config, "DELAY_IN_MILLIS", 1000, errors),
            run_once=_parse_bool(config.get("RUN_ONCE")),
            no_delete_files=_parse_bool(config.get("NO_DELETE_FILES")),
            max_poll_cycles=_parse_int(config, "MAX_POLL_CYCLES", None, errors)
        )


@dataclass
class AppConfig:
    """Configuration data model for the application."""
    producer: ProducerConfig
    polling: PollingSettings
    log_level: str = "INFO"
    log_file: Optional[str] = None
    error_folder: Optional[str] = None
    parse_errors: List[str] = field(default_factory=list)

    def validate(self) -> List[str]:
        """Validate configuration and return list of validation errors."""
        errors = list(self.parse_errors)
        errors.extend(self.polling.validate())
        errors.extend(self.producer.validate())

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(f"Unknown LOG_LEVEL '{self.log_level}', falling back to INFO")

        return errors

    @classmethod
    def from_config_dict(cls, config: Dict[str, str]) -> 'AppConfig':
        parse_errors: List[str] = []
        polling = PollingSettings.from_config_dict(config, parse_errors)
        producer = ProducerConfig.from_config_dict(config, parse_errors)
        return cls(
            producer=producer,
            polling=polling,
            log_level=config.get("LOG_LEVEL") or "INFO",
            log_file=config.get("LOG_FILE") or None,
            error_folder=config.get("ERROR_FOLDER") or None,
            parse_errors=parse_errors
        )


def build_arg_parser() -> argparse.ArgumentParser:
    """
    Command-line flags. Every flag overrides the environment variable named
    in its ``dest``; unset flags leave the environment value alone.
    """
    parser = argparse.ArgumentParser(
        prog="file_publisher",
        description="Publish files from a directory to a message topic"
    )

    broker = parser.add_argument_group("broker")
    broker.add_argument("--client.id", dest="CLIENT_ID",
                        help="identifies the product working with the broker")
    broker.add_argument("--topic", dest="TOPIC", help="the topic to publish to")
    broker.add_argument("--bootstrap-server", dest="BOOTSTRAP_SERVER",
                        help="comma-separated list of brokers (host:port)")
    broker.add_argument("--acks", dest="ACKS",
                        help="how many replicas must receive a message (0, 1, all)")
    broker.add_argument("--retries", dest="RETRIES", help="how many times failures will be retried")
    broker.add_argument("--retryDelays", dest="RETRY_DELAY_MS", help="delay in ms between retries")
    broker.add_argument("--maxInflight", dest="MAX_IN_FLIGHT",
                        help="batches on a connection that can be sent without a response")
    broker.add_argument("--batchSizeBytes", dest="BATCH_SIZE_BYTES",
                        help="maximum size in bytes of a message batch")
    broker.add_argument("--batchDelay", dest="BATCH_DELAY_MS",
                        help="delay in ms to wait for a batch to fill")

    security = parser.add_argument_group("security")
    security.add_argument("--isSecure", dest="IS_SECURE", action="store_const", const="true",
                          help="connect to the broker securely")
    security.add_argument("--securityProtocol", dest="SECURITY_PROTOCOL")
    security.add_argument("--saslMechanism", dest="SASL_MECHANISM")
    security.add_argument("--saslJaasConfig", dest="SASL_JAAS_CONFIG")
    security.add_argument("--trustStoreType", dest="TRUSTSTORE_TYPE")
    security.add_argument("--trustStoreLocation", dest="TRUSTSTORE_LOCATION")
    security.add_argument("--trustStorePassword", dest="TRUSTSTORE_PASSWORD")

    polling = parser.add_argument_group("polling")
    polling.add_argument("--messageLocation", dest="MESSAGE_LOCATION",
                         help="directory containing the files to publish")
    polling.add_argument("--delayInMillis", dest="DELAY_IN_MILLIS",
                         help="how long to wait between polls (default 1000)")
    polling.add_argument("--runOnce", dest="RUN_ONCE", action="store_const", const="true",
                         help="poll messageLocation only once")
    polling.add_argument("--noDeleteFiles", dest="NO_DELETE_FILES", action="store_const", const="true",
                         help="keep files after they have been published")
    polling.add_argument("--maxPollCycles", dest="MAX_POLL_CYCLES",
                         help="stop after this many poll cycles")

    logging_group = parser.add_argument_group("logging")
    logging_group.add_argument("--logLevel", dest="LOG_LEVEL", help="DEBUG, INFO, WARNING or ERROR")
    logging_group.add_argument("--logFile", dest="LOG_FILE", help="also write logs to this file")
    logging_group.add_argument("--errorFolder", dest="ERROR_FOLDER",
                               help="write an error report here when a file fails")

    return parser


class ConfigManager:
    """Manages application configuration from .env, environment variables and command-line flags."""

    ENV_VARS = [
        'CLIENT_ID', 'TOPIC', 'BOOTSTRAP_SERVER', 'ACKS', 'RETRIES', 'RETRY_DELAY_MS',
        'MAX_IN_FLIGHT', 'BATCH_SIZE_BYTES', 'BATCH_DELAY_MS',
        'IS_SECURE', 'SECURITY_PROTOCOL', 'SASL_MECHANISM', 'SASL_JAAS_CONFIG',
        'TRUSTSTORE_TYPE', 'TRUSTSTORE_LOCATION', 'TRUSTSTORE_PASSWORD',
        'MESSAGE_LOCATION', 'DELAY_IN_MILLIS', 'RUN_ONCE', 'NO_DELETE_FILES', 'MAX_POLL_CYCLES',
        'LOG_LEVEL', 'LOG_FILE', 'ERROR_FOLDER'
    ]
    PATH_VARS = ['TRUSTSTORE_LOCATION', 'MESSAGE_LOCATION', 'LOG_FILE', 'ERROR_FOLDER']

    def __init__(self, env_file: Optional[str] = '.env'):
        """Initialize ConfigManager with optional .env file path."""
        self.env_file = env_file
        self._config: Optional[AppConfig] = None
        self.warnings: List[str] = []

    def load_config(self, argv: Optional[Sequence[str]] = None) -> Dict[str, str]:
        """
        Load configuration from the .env file, environment variables and command line.

        Args:
            argv: Command-line arguments (defaults to sys.argv[1:])

        Returns:
            Dict keyed by environment variable name
        """
        if self.env_file and os.path.exists(self.env_file):
            load_dotenv(self.env_file)

        config = {}
        for var in self.ENV_VARS:
            config[var] = self._normalize(var, os.getenv(var))

        args = build_arg_parser().parse_args(argv)
        for var, value in vars(args).items():
            if value is not None:
                config[var] = self._normalize(var, value)

        return config

    def _normalize(self, var: str, value: Optional[str]) -> str:
        if not value:
            return ""
        if var in self.PATH_VARS:
            # Expand user home directory (~) and environment variables
            return os.path.expanduser(os.path.expandvars(value))
        return value

    def validate_config(self, config: Dict[str, str]) -> bool:
        """
        Validate configuration dictionary and return True if valid.

        Warnings are kept in ``self.warnings``; only critical errors raise.

        Raises:
            ConfigurationValidationError: If any critical error is found
        """
        try:
            app_config = AppConfig.from_config_dict(config)
            errors = app_config.validate()
        except Exception as e:
            raise ConfigurationValidationError(
                f"Unexpected error during configuration validation: {str(e)}",
                [str(e)],
                []
            ) from e

        critical_errors = []
        warning_errors = []
        for error in errors:
            if any(keyword in error.lower() for keyword in
                   ['required', 'not provided', 'does not exist', 'must be', 'invalid']):
                critical_errors.append(error)
            else:
                warning_errors.append(error)

        self.warnings = warning_errors

        if critical_errors:
            error_message = "Configuration validation failed:"
            error_message += "\n\nCritical errors (must be fixed):"
            error_message += "\n" + "\n".join(f"- {error}" for error in critical_errors)
            if warning_errors:
                error_message += "\n\nWarnings (should be reviewed):"
                error_message += "\n" + "\n".join(f"- {error}" for error in warning_errors)
            raise ConfigurationValidationError(error_message, critical_errors, warning_errors)

        self._config = app_config
        return True

    def get_config(self) -> AppConfig:
        """Get the validated configuration."""
        if not self._config:
            raise RuntimeError("Configuration not loaded. Call load_config() and validate_config() first.")
        return self._config

    def initialize(self, argv: Optional[Sequence[str]] = None) -> AppConfig:
        """Load and validate configuration in one step."""
        config_dict = self.load_config(argv)
        self.validate_config(config_dict)
        return self._config
