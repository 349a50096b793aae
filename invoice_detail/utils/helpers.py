"""
Helper Utilities Module.

Small, generic functions shared by the pipeline stages.

Functions:
    - ensure_directory: Create directory if it doesn't exist
    - get_file_extension: Extract file extension safely
    - format_number: Render a typed number for the string-based outputs
    - single_line: Collapse line breaks and tabs in a text value
"""

import re
from pathlib import Path
from typing import Union


_LINE_BREAKS = re.compile(r'[\r\n\t]+')


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists.

    Returns:
        Path object pointing to the directory.

    Raises:
        PermissionError: If directory cannot be created due to permissions.

    Example:
        >>> ensure_directory("outputs/csv")
        PosixPath('outputs/csv')
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def get_file_extension(filepath: Union[str, Path]) -> str:
    """
    Extract the lowercase file extension, including the dot.

    Example:
        >>> get_file_extension("invoice.PDF")
        ".pdf"
    """
    return Path(filepath).suffix.lower()


def format_number(value: Union[int, float, None]) -> str:
    """
    Render a score or coordinate as text.

    Integral floats lose their trailing ".0" so that coordinates written
    by the service as whole numbers keep their original form.

    Example:
        >>> format_number(12.0)
        "12"
        >>> format_number(0.875)
        "0.875"
    """
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def single_line(text: str) -> str:
    """
    Replace embedded line breaks and tabs with a single space.

    Example:
        >>> single_line("Widget\\r\\nlarge")
        "Widget large"
    """
    if not text:
        return ""
    return _LINE_BREAKS.sub(" ", text)
