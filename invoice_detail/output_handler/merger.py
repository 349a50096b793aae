"""
Cross-Document Merger Module.

Reads every per-document CSV in a directory and writes one wide table,
``merged.csv``, with one row per document and a fixed column order.

Group reconstruction:
    Repeating groups (VAT lines, bank accounts, discounts, due dates)
    arrive in the per-document CSV as independent rows per constituent
    field. The merger collects each constituent's values in file order
    and re-assembles group instances by position: the i-th VatRate, the
    i-th VatAmount and the i-th NetAmount form the i-th VAT line. The
    service sends no key linking constituents of one instance, so this
    positional alignment is an assumption, not something verified here.
    Shorter constituent lists are right-padded with the missing-value
    sentinel and empty entries are replaced by it before joining.

Output format:
    tab     between columns
    ;       between repeated values of one column
    |       between constituents of one group instance
"""

import csv
from pathlib import Path
from typing import Dict, List, Optional, Union

from config import get_config
from invoice_detail.utils.logger import get_logger
from invoice_detail.utils.exceptions import MergeIntegrityError
from invoice_detail.catalog.fields import FieldCatalog
from .document_writer import CSV_DELIMITER, write_tsv

logger = get_logger(__name__)

MISSING_VALUE = "NA"
VALUE_SEPARATOR = ";"
GROUP_SEPARATOR = "|"
FILE_NAME_COLUMN = "FileName"


class CsvMerger:
    """
    Merges per-document CSVs into a single table.

    Attributes:
        catalog: Field catalog supplying columns and group definitions.
        output_name: File name of the merged table.
        missing_value: Sentinel for absent values.

    Example:
        >>> merger = CsvMerger()
        >>> merged_path = merger.merge("outputs/")
        >>> print(merged_path)
        outputs/merged.csv
    """

    def __init__(
        self,
        catalog: Optional[FieldCatalog] = None,
        output_name: Optional[str] = None,
        missing_value: Optional[str] = None
    ) -> None:
        self.catalog = catalog or FieldCatalog.from_config()
        self.output_name = output_name or get_config("output.merge.filename", "merged.csv")
        self.missing_value = missing_value or get_config("output.merge.missing_value", MISSING_VALUE)

        self._columns = self.catalog.merge_columns()
        self._groups = self.catalog.groups()
        self._composites = self.catalog.composites()

    @property
    def header(self) -> List[str]:
        return [FILE_NAME_COLUMN] + self._columns

    def merge(self, csv_directory: Union[str, Path]) -> Path:
        """
        Merge all per-document CSVs of a directory.

        Args:
            csv_directory: Directory holding ``*.csv`` files.

        Returns:
            Path of the written merged table.

        Raises:
            MergeIntegrityError: If any per-document CSV is unreadable or
                malformed. Nothing is written in that case.
        """
        directory = Path(csv_directory)
        sources = sorted(
            p for p in directory.glob("*.csv")
            if p.is_file() and p.name != self.output_name
        )

        logger.info(f"Merging {len(sources)} CSV files from {directory}")

        rows = [self.build_row(path.stem, self.read_document(path)) for path in sources]

        output_path = directory / self.output_name
        write_tsv(output_path, self.header, rows)

        logger.info(f"Merged table written: {output_path} ({len(rows)} rows)")
        return output_path

    def read_document(self, path: Path) -> Dict[str, List[str]]:
        """
        Read one per-document CSV into ``TypeName -> [Value, ...]``.

        Duplicate type names accumulate in file order. Columns are found
        by header name, so CSVs written with a column subset merge as
        long as they kept TypeName and Value.
        """
        values: Dict[str, List[str]] = {}

        try:
            with open(path, 'r', encoding='utf-8', newline='') as f:
                reader = csv.reader(f, delimiter=CSV_DELIMITER, quoting=csv.QUOTE_NONE)
                header = next(reader, None)
                if not header:
                    raise MergeIntegrityError(str(path), "missing header row")
                try:
                    name_index = header.index("TypeName")
                    value_index = header.index("Value")
                except ValueError:
                    raise MergeIntegrityError(
                        str(path), f"header lacks TypeName/Value columns: {header}"
                    )

                for line_number, row in enumerate(reader, start=2):
                    if not row:
                        continue
                    if len(row) != len(header):
                        raise MergeIntegrityError(
                            str(path),
                            f"line {line_number} has {len(row)} cells, expected {len(header)}"
                        )
                    values.setdefault(row[name_index], []).append(row[value_index])
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise MergeIntegrityError(str(path), str(e)) from e

        return values

    def build_groups(self, values: Dict[str, List[str]]) -> Dict[str, List[str]]:
        """
        Re-assemble group instances from constituent value lists.

        Example:
            >>> merger.build_groups({"VatRate": ["20", "10"], "VatAmount": ["5"]})["VatGroup"]
            ['20|5|NA', '10|NA|NA']
        """
        groups: Dict[str, List[str]] = {}

        for group, constituents in self._groups.items():
            columns = [values.get(name, []) for name in constituents]
            length = max((len(column) for column in columns), default=0)

            padded = [
                [self._or_missing(v) for v in column]
                + [self.missing_value] * (length - len(column))
                for column in columns
            ]
            groups[group] = [
                GROUP_SEPARATOR.join(column[i] for column in padded)
                for i in range(length)
            ]

        return groups

    def build_row(self, file_name: str, values: Dict[str, List[str]]) -> List[str]:
        """Build one merged row: FileName, then every merge column."""
        groups = self.build_groups(values)
        row = [file_name]

        for column in self._columns:
            items = groups[column] if column in groups else values.get(column, [])

            if column in self._composites:
                items = [self._normalize_composite(v) for v in items]

            items = [self._or_missing(v) for v in items]
            row.append(VALUE_SEPARATOR.join(items) if items else self.missing_value)

        return row

    def _or_missing(self, value: Optional[str]) -> str:
        return value if value else self.missing_value

    def _normalize_composite(self, value: str) -> str:
        # Empty sub-fields were written as empty strings by the flattener.
        return VALUE_SEPARATOR.join(
            self._or_missing(part) for part in value.split(VALUE_SEPARATOR)
        )
