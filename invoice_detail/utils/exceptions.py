"""
Custom Exceptions Module.

This module defines all custom exceptions used throughout the invoice
detail client. Using specific exceptions allows the batch pipeline to
decide which failures skip a single document and which abort a run.

Exception Hierarchy:
    InvoiceDetailError (base)
    ├── ConfigurationError
    │   └── UnknownFieldError
    ├── DetectionError
    │   ├── TransportError
    │   └── SoftDetectionFailure
    ├── OutputError
    │   └── DocumentWriteError
    └── MergeIntegrityError
"""


class InvoiceDetailError(Exception):
    """
    Base exception for all invoice detail client errors.

    All custom exceptions in this system inherit from this class,
    allowing for easy catching of all system-specific errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(InvoiceDetailError):
    """Raised for invalid input/output paths or settings. Aborts a run."""
    pass


class UnknownFieldError(ConfigurationError):
    """
    Raised when a field name is not registered in the active catalog.

    Example:
        >>> raise UnknownFieldError("InvoiceNumber")
    """

    def __init__(self, name: str, known: list = None):
        message = f"Unknown invoice detail field: '{name}'"
        details = {"field": name}
        if known is not None:
            details["known_fields"] = known
        self.name = name
        super().__init__(message, details)


# =============================================================================
# DETECTION ERRORS
# =============================================================================

class DetectionError(InvoiceDetailError):
    """Base exception for failures of a single detection call."""
    pass


class TransportError(DetectionError):
    """
    Raised when the detection service does not answer with HTTP 200.

    ``status_code`` is None when no response was received at all.
    """

    def __init__(self, status_code: int = None, status_description: str = None):
        message = f"Detection request failed: {status_code} {status_description}"
        details = {
            "status_code": status_code,
            "status_description": status_description
        }
        self.status_code = status_code
        self.status_description = status_description
        super().__init__(message, details)


class SoftDetectionFailure(DetectionError):
    """Raised when the service reports ``InvoiceState == Failed``."""

    def __init__(self, filename: str, state: str = "Failed"):
        message = f"Detection failed for: {filename}"
        details = {"filename": filename, "invoice_state": state}
        super().__init__(message, details)


# =============================================================================
# OUTPUT ERRORS
# =============================================================================

class OutputError(InvoiceDetailError):
    """Base exception for output handling errors."""
    pass


class DocumentWriteError(OutputError):
    """Raised when a per-document output file cannot be written."""

    def __init__(self, filepath: str, reason: str = None):
        message = f"Failed to write output file: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


class MergeIntegrityError(InvoiceDetailError):
    """Raised when a per-document CSV cannot be merged. Aborts the merge."""

    def __init__(self, filepath: str, reason: str = None):
        message = f"Cannot merge per-document CSV: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


# Export all exceptions
__all__ = [
    'InvoiceDetailError',
    'ConfigurationError',
    'UnknownFieldError',
    'DetectionError',
    'TransportError',
    'SoftDetectionFailure',
    'OutputError',
    'DocumentWriteError',
    'MergeIntegrityError',
]
