"""Utilities - logging."""

from stellix.utilities.logging import setup_logging

__all__ = [
    "setup_logging",
]
