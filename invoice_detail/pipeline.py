"""
Batch Pipeline Module.

Runs every input document through detection, flattening and writing:

    Input → Detection Client → Flattener → Document Writer   (per document)
                                                ↓
                                          CSV Merger         (once, optional)

A failing document is logged with its file name and status and then
skipped; it never stops the others. The merge pass starts only after
every document has been written.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from config import get_config
from invoice_detail.utils.logger import get_logger
from invoice_detail.utils.exceptions import (
    DocumentWriteError,
    SoftDetectionFailure,
    TransportError,
)
from invoice_detail.catalog.fields import FieldCatalog
from invoice_detail.detection_client.client import DetectionClient
from invoice_detail.flattener.flattener import ResultFlattener
from invoice_detail.input_handler.handler import InputHandler
from invoice_detail.output_handler.document_writer import DocumentWriter

logger = get_logger(__name__)


@dataclass
class DocumentOutcome:
    """
    Result of processing one document.

    Attributes:
        filename: Input file name.
        success: Whether all requested outputs were written.
        message: Human-readable status.
        outputs: Written files by kind ("json", "csv", "pdf").
    """
    filename: str
    success: bool
    message: str = ""
    outputs: Dict[str, Path] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"DocumentOutcome(filename='{self.filename}', "
            f"success={self.success}, message='{self.message}')"
        )


class BatchProcessor:
    """
    Processes a batch of invoice documents against the detection service.

    Attributes:
        client: DetectionClient used for every document.
        catalog: Field catalog resolving the requested field names.
        filter_mask: Request filter built once from the requested names.
        composites: Composite blocks to flatten for this request.
        writer: DocumentWriter bound to the output directory.
        max_workers: Number of documents in flight; 1 is sequential.

    Example:
        >>> processor = BatchProcessor(DetectionClient(), "outputs/")
        >>> outcomes = processor.run(InputHandler().collect("invoices/"))
        >>> failed = [o for o in outcomes if not o.success]
    """

    def __init__(
        self,
        client: DetectionClient,
        output_dir: Union[str, Path],
        fields: Optional[Iterable[str]] = None,
        catalog: Optional[FieldCatalog] = None,
        version: Optional[str] = None,
        write_json: Optional[bool] = None,
        write_csv: Optional[bool] = None,
        write_pdf: Optional[bool] = None,
        max_workers: Optional[int] = None,
        input_handler: Optional[InputHandler] = None
    ) -> None:
        """
        Initialize the processor.

        Args:
            client: Detection client.
            output_dir: Directory for all per-document outputs.
            fields: Requested field names; empty requests all fields.
            catalog: Field catalog, built from settings when omitted.
            version: Service model version.
            write_json, write_csv, write_pdf: Output switches; settings
                are used when left as None.
            max_workers: Concurrent documents, settings when None.
            input_handler: Reader for document bytes.

        Raises:
            UnknownFieldError: If a requested field is not active.
        """
        self.client = client
        self.output_dir = Path(output_dir)
        self.catalog = catalog or FieldCatalog.from_config()

        requested = sorted(set(fields or []))
        self.filter_mask = self.catalog.names_to_mask(requested)
        self.composites = self.catalog.composites(requested)

        self.version = version or get_config("service.version", "latest")
        self.write_json = self._switch(write_json, "output.json.enabled", True)
        self.write_csv = self._switch(write_csv, "output.csv.enabled", True)
        self.write_pdf = self._switch(write_pdf, "output.pdf.enabled", False)
        self.max_workers = max(1, int(max_workers or get_config("processing.max_workers", 1)))

        self.input_handler = input_handler or InputHandler()
        self.flattener = ResultFlattener()
        self.writer = DocumentWriter(self.output_dir)

        logger.info(
            f"BatchProcessor initialized (filter={self.filter_mask}, "
            f"composites={sorted(self.composites)}, workers={self.max_workers})"
        )

    @staticmethod
    def _switch(value: Optional[bool], key: str, default: bool) -> bool:
        return value if value is not None else bool(get_config(key, default))

    def process_document(self, path: Union[str, Path]) -> DocumentOutcome:
        """
        Detect, flatten and write one document.

        Transport errors, failed detections and write errors are logged
        and reported in the outcome, never raised.
        """
        path = Path(path)
        filename = path.name
        logger.info(f"Processing: {filename}")

        try:
            document = self.input_handler.read_bytes(path)
        except OSError as e:
            logger.error(f"{filename}: cannot read document: {e}")
            return DocumentOutcome(filename, False, f"Read error: {e}")

        try:
            result = self.client.detect(
                document,
                self.version,
                filter_mask=self.filter_mask,
                want_result_pdf=self.write_pdf
            )
        except TransportError as e:
            logger.error(
                f"{filename}: detection request failed "
                f"({e.status_code} {e.status_description}), skipping"
            )
            return DocumentOutcome(filename, False, str(e))

        if result.is_failed:
            failure = SoftDetectionFailure(filename, result.invoice_state.value)
            logger.warning(f"{filename}: invoice state {result.invoice_state.value}, skipping")
            return DocumentOutcome(filename, False, str(failure))

        rows = self.flattener.flatten(result, self.composites)

        try:
            outputs = self.writer.write(
                path.stem,
                result,
                rows,
                write_json=self.write_json,
                write_csv=self.write_csv,
                write_pdf=self.write_pdf
            )
        except DocumentWriteError as e:
            logger.error(f"{filename}: {e}")
            return DocumentOutcome(filename, False, str(e))

        logger.info(f"{filename}: {len(rows)} rows, wrote {', '.join(sorted(outputs)) or 'nothing'}")
        return DocumentOutcome(filename, True, "OK", outputs)

    def run(self, paths: Iterable[Union[str, Path]]) -> List[DocumentOutcome]:
        """
        Process documents, returning outcomes in input order.

        With more than one worker, documents are detected concurrently;
        each task owns its own result and rows until they are written.

        Outputs are named after the file stem. A document whose stem is
        already taken by an earlier one (``a.pdf`` then ``a.png``) is not
        sent; it is reported as failed so no output is overwritten.
        """
        paths = [Path(p) for p in paths]

        owners: Dict[str, str] = {}
        duplicates: Dict[int, DocumentOutcome] = {}
        for index, path in enumerate(paths):
            owner = owners.setdefault(path.stem, path.name)
            if owner != path.name:
                message = f"Output name '{path.stem}' already used by {owner}"
                logger.warning(f"{path.name}: {message}, skipping")
                duplicates[index] = DocumentOutcome(path.name, False, message)

        pending = [p for i, p in enumerate(paths) if i not in duplicates]

        if self.max_workers == 1 or len(pending) <= 1:
            processed = [self.process_document(p) for p in pending]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                processed = list(executor.map(self.process_document, pending))

        processed_iter = iter(processed)
        outcomes = [
            duplicates[i] if i in duplicates else next(processed_iter)
            for i in range(len(paths))
        ]

        succeeded = sum(1 for o in outcomes if o.success)
        logger.info(
            f"Batch processing complete: {succeeded} successful, "
            f"{len(outcomes) - succeeded} failed"
        )
        return outcomes
