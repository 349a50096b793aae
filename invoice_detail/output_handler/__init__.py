"""
Output Handler Module for the Invoice Detail Client.

This module provides functionality for:
    - Per-document JSON, CSV and result PDF files
    - Merging per-document CSVs into one wide table
"""

from .document_writer import DocumentWriter, clean_cell, write_tsv
from .merger import CsvMerger, MISSING_VALUE

__all__ = ['DocumentWriter', 'CsvMerger', 'MISSING_VALUE', 'clean_cell', 'write_tsv']
