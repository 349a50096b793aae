"""
Input Handler Module for the Invoice Detail Client.

Finds invoice documents (PDF, TIFF, JPEG, PNG) in a file or directory
path and reads them for submission.
"""

from .handler import InputHandler

__all__ = ['InputHandler']
