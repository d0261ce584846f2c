"""
Core module: Configuration, logging, and exception handling.
"""

from .config import Config, MonitoringConfig, config
from .exceptions import (
    ConfigurationError,
    DataIngestionError,
    InvalidInputError,
    PredictiveMonitoringError,
)

__all__ = [
    "Config",
    "MonitoringConfig",
    "config",
    "PredictiveMonitoringError",
    "InvalidInputError",
    "DataIngestionError",
    "ConfigurationError",
]
