"""
Result Flattener Module.

Converts nested prediction results into flat, per-document rows.
"""

from .flat_row import CSV_COLUMNS, FlatRow
from .flattener import (
    LINE_ITEM_TYPE_ID,
    RECEIVER_TYPE_ID,
    SENDER_TYPE_ID,
    ResultFlattener,
)

__all__ = [
    'CSV_COLUMNS',
    'FlatRow',
    'ResultFlattener',
    'SENDER_TYPE_ID',
    'RECEIVER_TYPE_ID',
    'LINE_ITEM_TYPE_ID',
]
