"""Configuration module for Custos."""

from custos.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
