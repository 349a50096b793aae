"""
Utility Module for the Invoice Detail Client.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy
    - File and formatting helpers
"""

from .logger import setup_logger, get_logger
from .helpers import ensure_directory, get_file_extension, format_number, single_line

__all__ = [
    'setup_logger',
    'get_logger',
    'ensure_directory',
    'get_file_extension',
    'format_number',
    'single_line'
]
