"""Salla webhook relay and merchant OAuth token maintenance."""

__version__ = "0.1.0"
