"""
Detection Client Module.

Transport to the remote invoice detail service and the typed
prediction result it returns.
"""

from .client import DetectionClient, build_proxies
from .prediction_result import (
    Address,
    InvoiceState,
    LineItem,
    Party,
    PredictionField,
    PredictionResult,
)

__all__ = [
    'DetectionClient',
    'build_proxies',
    'Address',
    'InvoiceState',
    'LineItem',
    'Party',
    'PredictionField',
    'PredictionResult',
]
