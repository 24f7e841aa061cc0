"""Custom exception types for the GitHub DORA metrics generator."""


class DoraMetricsError(Exception):
    """Base exception for all recoverable DORA metrics errors."""


class ConfigurationError(DoraMetricsError):
    """Raised when runtime configuration values are missing or invalid."""


class AuthenticationError(DoraMetricsError):
    """Raised when GitHub credentials are unavailable or rejected."""


class ApiError(DoraMetricsError):
    """Raised when a GitHub API request fails or returns an unexpected response."""


class DataValidationError(DoraMetricsError):
    """Raised when API payloads cannot be used for metric computation at all."""


class ContractError(DoraMetricsError):
    """Raised when calling code violates an engine contract (missing clock, non-list input)."""
