# Configuration module
from .config_manager import (
    AppConfig,
    ConfigManager,
    ConfigurationValidationError,
    PollingSettings,
    ProducerConfig,
)

__all__ = ['ConfigManager', 'AppConfig', 'ConfigurationValidationError', 'PollingSettings', 'ProducerConfig']
