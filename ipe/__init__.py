"""Ipê: payments backend for a property under sale."""

__version__ = "0.1.0"
