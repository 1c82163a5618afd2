"""Custom exceptions for Custos."""


class CustosError(Exception):
    """Base exception for all Custos errors."""

    pass


class ConfigurationError(CustosError):
    """Error in configuration or settings."""

    pass
