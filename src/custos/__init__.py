"""Custos: authorization decisions and data-retention lifecycle for multi-tenant data."""

__version__ = "0.1.0"
