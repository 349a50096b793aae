#!/usr/bin/env python3
"""
Invoice Detail Client - Main Entry Point.

Submits invoice documents to the invoice detail detection service and
writes per-document JSON/CSV/PDF outputs, optionally merging all
per-document CSVs into one table.

Usage:
    Command Line:
        python main.py --input invoice.pdf --output ./results/
        python main.py --input ./invoices/ --output ./results/ --merge --pdf
        python main.py --input ./invoices/ --fields GrandTotalAmount VatGroup

    Python:
        from main import run_batch
        outcomes = run_batch("invoices/", "results/", merge=True)
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from config import ConfigurationManager
from invoice_detail.utils.logger import setup_logger_from_config, get_logger
from invoice_detail.utils.helpers import ensure_directory
from invoice_detail.utils.exceptions import (
    ConfigurationError,
    InvoiceDetailError,
    MergeIntegrityError,
)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Invoice detail batch client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Process single invoice:
        python main.py --input invoice.pdf --output ./results/

    Process directory and merge CSVs:
        python main.py --input ./invoices/ --output ./results/ --merge

    Only merge existing per-document CSVs:
        python main.py --merge-only --output ./results/
        """
    )

    parser.add_argument(
        "--input", "-i",
        type=str,
        default=None,
        help="Input file or directory containing invoices"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output directory (default: paths.output_dir from settings)"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    # Output options
    parser.add_argument(
        "--pdf",
        action="store_true",
        help="Request and save the annotated result PDF"
    )

    parser.add_argument(
        "--no-csv",
        action="store_true",
        help="Disable per-document CSV output"
    )

    parser.add_argument(
        "--no-json",
        action="store_true",
        help="Disable per-document JSON output"
    )

    parser.add_argument(
        "--merge",
        action="store_true",
        help="Merge all per-document CSVs into merged.csv after processing"
    )

    parser.add_argument(
        "--merge-only",
        action="store_true",
        help="Skip detection and only merge the CSVs already in the output directory"
    )

    # Request options
    parser.add_argument(
        "--fields", "-f",
        nargs="+",
        default=None,
        help="Field names to request (default: all fields)"
    )

    parser.add_argument(
        "--version", "-v",
        type=str,
        default=None,
        help="Service model version (default: service.version from settings)"
    )

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Documents processed concurrently (default: processing.max_workers)"
    )

    # Proxy options
    parser.add_argument("--proxy", type=str, default=None, help="Proxy URL")
    parser.add_argument("--proxy-user", type=str, default=None, help="Proxy user name")
    parser.add_argument("--proxy-password", type=str, default=None, help="Proxy password")

    # Logging options
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args(argv)

    if not args.input and not args.merge_only:
        parser.error("--input is required unless --merge-only is given")

    return args


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Load configuration, apply command-line overrides and set up logging.

    Returns:
        Initialized configuration manager.
    """
    config = ConfigurationManager(args.config)

    if args.proxy:
        config.set("service.proxy.url", args.proxy)
    if args.proxy_user:
        config.set("service.proxy.username", args.proxy_user)
    if args.proxy_password:
        config.set("service.proxy.password", args.proxy_password)

    logger = setup_logger_from_config()

    if args.debug:
        logging.getLogger("invoice_detail").setLevel(logging.DEBUG)
        for handler in logging.getLogger("invoice_detail").handlers:
            handler.setLevel(logging.DEBUG)

    logger.info("=" * 60)
    logger.info("INVOICE DETAIL BATCH CLIENT")
    logger.info("=" * 60)
    logger.info(f"Version: {config.get('project.version', '1.0.0')}")
    logger.info(f"Input: {args.input}")
    logger.info(f"Output: {args.output or config.get('paths.output_dir')}")

    return config


def prepare_output_dir(output_dir: Optional[str]) -> Path:
    """
    Resolve and create the output directory.

    Raises:
        ConfigurationError: If the path is unusable as a directory.
    """
    if not output_dir:
        raise ConfigurationError("No output directory configured")

    path = Path(output_dir)
    if path.exists() and not path.is_dir():
        raise ConfigurationError(f"Output path is not a directory: {path}")

    try:
        return ensure_directory(path)
    except OSError as e:
        raise ConfigurationError(f"Cannot create output directory: {path}", {"reason": str(e)})


def run_batch(
    input_path: str,
    output_dir: str,
    fields: Optional[List[str]] = None,
    version: Optional[str] = None,
    write_json: Optional[bool] = None,
    write_csv: Optional[bool] = None,
    write_pdf: Optional[bool] = None,
    merge: Optional[bool] = None,
    max_workers: Optional[int] = None,
    client=None
):
    """
    Run the invoice detail batch.

    This is the main programmatic entry point. Paths are validated
    before any request is sent.

    Args:
        input_path: Invoice file or directory.
        output_dir: Directory for per-document outputs and merged.csv.
        fields: Field names to request; None or empty requests all.
        version: Service model version.
        write_json, write_csv, write_pdf: Output switches.
        merge: Merge per-document CSVs afterwards.
        max_workers: Documents processed concurrently.
        client: Detection client, created from settings when None.

    Returns:
        List of DocumentOutcome, one per input document.

    Raises:
        ConfigurationError: For invalid paths, settings or field names.
        MergeIntegrityError: If merging was requested and failed.
    """
    from config import get_config
    from invoice_detail.catalog import FieldCatalog
    from invoice_detail.detection_client import DetectionClient
    from invoice_detail.input_handler import InputHandler
    from invoice_detail.output_handler import CsvMerger
    from invoice_detail.pipeline import BatchProcessor

    logger = get_logger(__name__)

    out_dir = prepare_output_dir(output_dir)
    input_handler = InputHandler()
    documents = input_handler.collect(input_path)

    catalog = FieldCatalog.from_config()
    processor = BatchProcessor(
        client or DetectionClient(),
        out_dir,
        fields=fields,
        catalog=catalog,
        version=version,
        write_json=write_json,
        write_csv=write_csv,
        write_pdf=write_pdf,
        max_workers=max_workers,
        input_handler=input_handler
    )

    logger.info(f"Processing {len(documents)} files...")
    outcomes = processor.run(documents)

    if merge is None:
        merge = bool(get_config("output.merge.enabled", False))

    if merge:
        CsvMerger(catalog).merge(out_dir)

    return outcomes


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    try:
        args = parse_arguments(argv)
        config = initialize_system(args)
        logger = get_logger(__name__)

        output_dir = args.output or config.get("paths.output_dir")

        if args.merge_only:
            from invoice_detail.output_handler import CsvMerger

            merged = CsvMerger().merge(prepare_output_dir(output_dir))
            logger.info(f"Merged table: {merged}")
            return 0

        outcomes = run_batch(
            input_path=args.input,
            output_dir=output_dir,
            fields=args.fields,
            version=args.version,
            write_json=False if args.no_json else None,
            write_csv=False if args.no_csv else None,
            write_pdf=True if args.pdf else None,
            merge=True if args.merge else None,
            max_workers=args.workers
        )

        failed = [o for o in outcomes if not o.success]
        logger.info("=" * 60)
        logger.info(
            f"Batch complete. Processed {len(outcomes)} files, {len(failed)} failed."
        )
        for outcome in failed:
            logger.info(f"  {outcome.filename}: {outcome.message}")
        logger.info("=" * 60)

        return 0

    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    except MergeIntegrityError as e:
        print(f"Merge failed: {e}", file=sys.stderr)
        return 1

    except (InvoiceDetailError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
