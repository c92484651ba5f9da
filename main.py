#!/usr/bin/env python3
"""
Invoice Scan - Main Entry Point.

Command-line interface to the scan pipeline: reads invoice or receipt
photos, prints progress and a field summary, and optionally writes the
full results as JSON.

Usage:
    Command Line:
        python main.py --input invoice.jpg
        python main.py --input ./photos/ --document-type receipt --output results.json

    Python:
        from main import run_scan
        results = run_scan("invoice.jpg")
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from config import load_config
from invoice_scan.extraction.field_extractor import FieldExtractionOptions
from invoice_scan.extraction.field_types import DocumentType
from invoice_scan.input_handler.handler import InputHandler
from invoice_scan.pipeline import (
    BatchJob,
    BatchResult,
    PostProcessingOptions,
    ProgressEvent,
    ScanConfig,
    ScanPipeline,
)
from invoice_scan.utils.exceptions import InvoiceScanError
from invoice_scan.utils.helpers import ensure_directory
from invoice_scan.utils.logger import get_logger, setup_logger_from_config


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Invoice and receipt photo scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Scan a single invoice:
        python main.py --input invoice.jpg

    Scan a folder of receipts and save JSON:
        python main.py --input ./receipts/ --document-type receipt --output results.json
        """
    )

    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="Image file or directory of images"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Write results to this JSON file"
    )

    parser.add_argument(
        "--document-type", "-t",
        type=str,
        default=None,
        choices=[t.value for t in DocumentType],
        help="Document type (default: from settings.yaml)"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    # Pipeline toggles
    parser.add_argument("--no-extraction", action="store_true", help="Skip field extraction")
    parser.add_argument("--no-validation", action="store_true", help="Skip field validation")
    parser.add_argument("--no-normalization", action="store_true", help="Skip field normalization")
    parser.add_argument("--no-suggestions", action="store_true", help="Do not suggest fixes for invalid fields")
    parser.add_argument("--no-table", action="store_true", help="Disable table row extraction")
    parser.add_argument("--no-key-value", action="store_true", help="Disable key/value pairing")
    parser.add_argument(
        "--no-smart-detection",
        action="store_true",
        help="Disable smart field detection and template matching"
    )

    # Logging options
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only log warnings and errors"
    )

    return parser.parse_args(argv)


def build_scan_config(args: argparse.Namespace) -> ScanConfig:
    """Combine settings.yaml defaults with command-line toggles."""
    defaults = ScanConfig.from_settings()
    extraction = defaults.field_extraction_options
    post_processing = defaults.post_processing_options

    document_type = defaults.document_type
    if args.document_type:
        document_type = DocumentType.from_name(args.document_type)

    return ScanConfig(
        enable_field_extraction=defaults.enable_field_extraction and not args.no_extraction,
        enable_validation=defaults.enable_validation and not args.no_validation,
        document_type=document_type,
        field_extraction_options=FieldExtractionOptions(
            enable_smart_field_detection=(
                extraction.enable_smart_field_detection and not args.no_smart_detection
            ),
            enable_table_extraction=extraction.enable_table_extraction and not args.no_table,
            enable_key_value_pairing=extraction.enable_key_value_pairing and not args.no_key_value,
        ),
        post_processing_options=PostProcessingOptions(
            enable_data_normalization=(
                post_processing.enable_data_normalization and not args.no_normalization
            ),
            enable_suggestions=post_processing.enable_suggestions and not args.no_suggestions,
        ),
    )


def collect_inputs(input_path: str) -> List[Path]:
    """
    Resolve the --input argument to a sorted list of image files.

    Raises:
        FileNotFoundError: If the path does not exist.
        ValueError: If a single file has an unsupported extension.
    """
    path = Path(input_path)
    supported = InputHandler().supported_extensions

    if not path.exists():
        raise FileNotFoundError(f"Input path not found: {path}")

    if path.is_file():
        if path.suffix.lower() not in supported:
            raise ValueError(f"Unsupported file type: {path.suffix}")
        return [path]

    return sorted(p for p in path.iterdir() if p.is_file() and p.suffix.lower() in supported)


def log_progress(event: ProgressEvent) -> None:
    get_logger(__name__).info(
        f"[{event.scan_id[:8]}] {event.percentage:5.1f}% {event.phase.value}: {event.operation}"
    )


def run_scan(
    input_path: str,
    config: Optional[ScanConfig] = None,
    pipeline: Optional[ScanPipeline] = None,
) -> BatchResult:
    """
    Scan one image or every image in a directory.

    Args:
        input_path: Image file or directory.
        config: Scan options; settings.yaml defaults when omitted.
        pipeline: Pipeline to use; a Tesseract-backed one when omitted.

    Returns:
        BatchResult with one entry per image.
    """
    files = collect_inputs(input_path)
    pipeline = pipeline or ScanPipeline()
    return pipeline.process_batch(BatchJob(image_refs=[str(f) for f in files], config=config))


def summarize(result: BatchResult) -> None:
    logger = get_logger(__name__)

    for scan in result.successes:
        logger.info("-" * 60)
        logger.info(f"{scan.source_image_path} ({scan.document_type.value})")
        logger.info(
            f"  Confidence {scan.confidence.overall:.2f}, "
            f"template {scan.template_id or 'n/a'}, "
            f"{scan.processing_time_ms} ms"
        )
        for name, extracted in scan.extracted_fields.items():
            status = "ok" if extracted.validation_result.is_valid else "INVALID"
            logger.info(f"  {name:<20} {extracted.processed_value:<30} [{status}]")
        for product in scan.product_lines:
            logger.info(
                f"  item: {product.raw_text} "
                f"(qty {product.quantity}, rate {product.rate}, amount {product.amount})"
            )

    for error in result.errors:
        logger.error(f"Failed: {error}")


def write_output(result: BatchResult, output_path: str) -> Path:
    path = Path(output_path)
    ensure_directory(path.parent)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(result.to_dict(), f, indent=2, ensure_ascii=False)
    return path


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 if every image scanned, 1 otherwise).
    """
    try:
        args = parse_arguments(argv)

        load_config(args.config)
        level = "DEBUG" if args.debug else "WARNING" if args.quiet else None
        logger = setup_logger_from_config(level)

        config = build_scan_config(args)
        files = collect_inputs(args.input)
        if not files:
            logger.error(f"No supported images found in {args.input}")
            return 1
        logger.info(f"Input: {len(files)} image(s) as {config.document_type.value}")

        pipeline = ScanPipeline()
        pipeline.progress.subscribe(log_progress)

        result = pipeline.process_batch(BatchJob(image_refs=[str(f) for f in files], config=config))
        if not result.is_success:
            logger.error(result.error)
            return 1

        summarize(result)

        if args.output:
            logger.info(f"Results written to {write_output(result, args.output)}")

        logger.info("=" * 60)
        logger.info(
            f"Scan complete: {len(result.successes)} of {result.total_processed} images succeeded"
        )
        return 0 if not result.errors else 1

    except (FileNotFoundError, ValueError, InvoiceScanError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
