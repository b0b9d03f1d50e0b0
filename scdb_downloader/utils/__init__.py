"""Utility functions for scdb-downloader."""
from .logging_security import SecureLogger, configure_logging

__all__ = [
    'SecureLogger',
    'configure_logging',
]
