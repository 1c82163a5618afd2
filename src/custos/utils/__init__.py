"""Utility modules for Custos."""

from custos.utils.exceptions import ConfigurationError, CustosError

__all__ = [
    "CustosError",
    "ConfigurationError",
]
