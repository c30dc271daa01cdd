"""Shorelux hotel back-office API client."""

__version__ = "0.1.0"
