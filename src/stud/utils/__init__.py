"""
Stud utilities: themed console output and logging.
"""

from .console import console, StudConsole
from .logger import setup_logging, get_logger, LoggerAdapter, filter_sensitive_data

__all__ = [
    # Console
    'console',
    'StudConsole',

    # Logging
    'setup_logging',
    'get_logger',
    'LoggerAdapter',
    'filter_sensitive_data',
]
