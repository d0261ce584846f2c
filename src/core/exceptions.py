"""
Custom exceptions for the predictive monitoring core.

These exceptions provide clear error semantics across the system.
Use them to distinguish between bad input, unreadable data files, and configuration errors.
"No finding" and "not enough data" are not errors: detectors return None.
"""


class PredictiveMonitoringError(Exception):
    """Base exception for predictive monitoring failures."""
    pass


class InvalidInputError(PredictiveMonitoringError, ValueError):
    """Raised when a sample or record is malformed (non-finite numbers, missing fields)."""
    pass


class DataIngestionError(PredictiveMonitoringError):
    """Raised when a metric sample file cannot be read."""
    pass


class ConfigurationError(PredictiveMonitoringError):
    """Raised when configuration is invalid or missing."""
    pass
