"""
Main Input Handler Module.

Resolves the command-line input into the list of invoice documents to
submit and reads their bytes. PDF and image files are sent to the
service unchanged; nothing is decoded locally.

Usage:
    from invoice_detail.input_handler import InputHandler

    handler = InputHandler()
    documents = handler.collect("./invoices/")
    payload = handler.read_bytes(documents[0])
"""

from pathlib import Path
from typing import Iterable, List, Optional, Union

from config import get_config
from invoice_detail.utils.logger import get_logger
from invoice_detail.utils.helpers import get_file_extension
from invoice_detail.utils.exceptions import ConfigurationError

logger = get_logger(__name__)


class InputHandler:
    """
    Input discovery for invoice documents.

    Attributes:
        supported_extensions: Lowercase extensions, including the dot.

    Example:
        >>> handler = InputHandler()
        >>> handler.collect("invoice.pdf")
        [PosixPath('invoice.pdf')]
    """

    DEFAULT_EXTENSIONS = ('.pdf', '.tiff', '.tif', '.jpeg', '.jpg', '.png')

    def __init__(self, supported_extensions: Optional[Iterable[str]] = None) -> None:
        extensions = supported_extensions or get_config(
            "input.supported_extensions", list(self.DEFAULT_EXTENSIONS)
        )
        self.supported_extensions = {
            ext.lower() if ext.startswith('.') else f".{ext.lower()}"
            for ext in extensions
        }

        logger.debug(f"InputHandler initialized with extensions: {sorted(self.supported_extensions)}")

    def is_supported(self, filepath: Union[str, Path]) -> bool:
        return get_file_extension(filepath) in self.supported_extensions

    def collect(self, input_path: Union[str, Path]) -> List[Path]:
        """
        List the documents to process.

        A file path is returned as-is when its extension is supported; a
        directory yields its supported files (not recursive), sorted.

        Raises:
            ConfigurationError: If the path does not exist or names an
                unsupported file.
        """
        path = Path(input_path)

        if not path.exists():
            raise ConfigurationError(f"Input path not found: {path}")

        if path.is_file():
            if not self.is_supported(path):
                raise ConfigurationError(
                    f"Unsupported file type: {path.suffix}",
                    {"supported_types": sorted(self.supported_extensions)}
                )
            return [path]

        if path.is_dir():
            files = sorted(
                p for p in path.iterdir()
                if p.is_file() and self.is_supported(p)
            )
            if not files:
                logger.warning(f"No supported files found in: {path}")
            else:
                logger.info(f"Found {len(files)} files to process in {path}")
            return files

        raise ConfigurationError(f"Invalid input path: {path}")

    @staticmethod
    def read_bytes(filepath: Union[str, Path]) -> bytes:
        """Read a document's raw bytes."""
        return Path(filepath).read_bytes()
