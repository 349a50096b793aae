"""
Per-Document Writer Module.

Persists one document's detection output next to the other documents'
outputs in the configured output directory:

    <name>.json  Full prediction result, UTF-8, indented.
    <name>.csv   Flattened rows, tab-delimited, unquoted.
    <name>.pdf   Annotated result PDF rendered by the service, verbatim.

CSV cells are plain strings: double quotes are removed and tabs or line
breaks become spaces, so every row stays one line with a fixed number of
cells. No quoting is ever written.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from config import get_config
from invoice_detail.utils.logger import get_logger
from invoice_detail.utils.helpers import ensure_directory, single_line
from invoice_detail.utils.exceptions import ConfigurationError, DocumentWriteError
from invoice_detail.detection_client.prediction_result import PredictionResult
from invoice_detail.flattener.flat_row import CSV_COLUMNS, FlatRow

logger = get_logger(__name__)

CSV_DELIMITER = "\t"


def clean_cell(value: str) -> str:
    """
    Make a value safe for the unquoted tab-delimited format.

    Example:
        >>> clean_cell('"ACME"\\tGmbH')
        'ACME GmbH'
    """
    return single_line(value.replace('"', ''))


def write_tsv(filepath: Path, header: Sequence[str], rows: List[List[str]]) -> None:
    """Write an unquoted tab-delimited file with a header row."""
    with open(filepath, 'w', encoding='utf-8', newline='') as f:
        f.write(CSV_DELIMITER.join(header) + "\n")
        for row in rows:
            f.write(CSV_DELIMITER.join(clean_cell(cell) for cell in row) + "\n")


class DocumentWriter:
    """
    Writes the per-document JSON, CSV and PDF outputs.

    Attributes:
        output_dir: Directory receiving all files.
        csv_columns: Header subset written to the CSV, in order.

    Example:
        >>> writer = DocumentWriter("outputs")
        >>> paths = writer.write("invoice_001", result, rows)
        >>> paths["csv"]
        PosixPath('outputs/invoice_001.csv')
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        csv_columns: Optional[Sequence[str]] = None
    ) -> None:
        self.output_dir = Path(output_dir)
        self.csv_columns = list(
            csv_columns or get_config("output.csv.columns", CSV_COLUMNS)
        )

        unknown = [c for c in self.csv_columns if c not in CSV_COLUMNS]
        if unknown:
            raise ConfigurationError("Unknown CSV columns", {"unknown_columns": unknown})

        logger.debug(f"DocumentWriter initialized (output_dir: {self.output_dir})")

    def write(
        self,
        base_name: str,
        result: PredictionResult,
        rows: List[FlatRow],
        write_json: bool = True,
        write_csv: bool = True,
        write_pdf: bool = False
    ) -> Dict[str, Path]:
        """
        Write the selected outputs for one document.

        Args:
            base_name: File name without extension.
            result: Prediction result to serialize.
            rows: Flattened rows of the same result.
            write_json: Write ``<name>.json``.
            write_csv: Write ``<name>.csv``.
            write_pdf: Write ``<name>.pdf`` if the result carries one.

        Returns:
            Mapping of output kind ("json", "csv", "pdf") to written path.

        Raises:
            DocumentWriteError: On the first file that cannot be written;
                later files for this document are not attempted.
        """
        written: Dict[str, Path] = {}

        try:
            ensure_directory(self.output_dir)
        except OSError as e:
            raise DocumentWriteError(str(self.output_dir), str(e)) from e

        if write_json:
            written["json"] = self._write(base_name, "json", self._write_json, result)

        if write_csv:
            written["csv"] = self._write(base_name, "csv", self._write_csv, rows)

        if write_pdf:
            if result.result_pdf:
                written["pdf"] = self._write(base_name, "pdf", self._write_pdf, result.result_pdf)
            else:
                logger.warning(f"No result PDF returned for {base_name}")

        return written

    def _write(self, base_name: str, extension: str, writer, payload) -> Path:
        filepath = self.output_dir / f"{base_name}.{extension}"
        try:
            writer(filepath, payload)
        except OSError as e:
            raise DocumentWriteError(str(filepath), str(e)) from e
        logger.debug(f"Wrote {filepath}")
        return filepath

    @staticmethod
    def _write_json(filepath: Path, result: PredictionResult) -> None:
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)

    def _write_csv(self, filepath: Path, rows: List[FlatRow]) -> None:
        write_tsv(filepath, self.csv_columns, [row.to_strings(self.csv_columns) for row in rows])

    @staticmethod
    def _write_pdf(filepath: Path, blob: bytes) -> None:
        filepath.write_bytes(blob)
