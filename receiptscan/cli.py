"""Command-line interface for scanning receipts and exporting results.

Provides subcommands for scanning a folder of documents into a CSV file,
scanning a single document to JSON, and trying the file name heuristic.
"""

import argparse
import csv
import json
import sys
from pathlib import Path

from receiptscan.extraction.filename_parser import parse_filename
from receiptscan.identity.history import InMemoryHistory, load_history
from receiptscan.models import RawDocument
from receiptscan.scanner import BatchItem, ReceiptScanner, log_batch_summary
from receiptscan.utils.config import AppConfig, load_config
from receiptscan.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = (
    "*.png",
    "*.jpg",
    "*.jpeg",
    "*.tiff",
    "*.tif",
    "*.bmp",
    "*.webp",
    "*.pdf",
)
_META_COLUMNS = [
    "filename",
    "status",
    "merchant",
    "amount",
    "currency",
    "date",
    "category",
    "is_duplicate",
    "error",
]


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported document files in a directory.

    Args:
        input_dir: Directory to scan for documents.

    Returns:
        Sorted list of document file paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _open_history(path: Path | None) -> InMemoryHistory:
    if path is None:
        return InMemoryHistory()
    return load_history(path)


def _item_row(item: BatchItem) -> dict[str, object]:
    row: dict[str, object] = {
        "filename": item.filename,
        "status": item.status,
        "error": item.error,
    }
    if item.outcome is not None:
        fields = item.outcome.to_dict()
        fields.pop("sources")
        row.update(fields)
    return row


def scan_folder(
    input_dir: Path,
    output_csv: Path,
    history_path: Path | None = None,
    currency: str | None = None,
    record: bool = False,
    verbose: bool = False,
    config: AppConfig | None = None,
) -> dict[str, int]:
    """Scan all documents in a folder, one at a time, and export to CSV.

    Args:
        input_dir: Directory containing receipts and statements.
        output_csv: Path for the output CSV file.
        history_path: CSV export of past expenses for duplicate and
            merchant matching.
        currency: Currency to report when none is printed on a document.
        record: Treat each scanned document as saved, so later documents in
            the folder are checked against it.
        verbose: Whether to print per-file progress.
        config: Application configuration. Loaded from disk when omitted.

    Returns:
        Summary dict with total, successful, duplicate and failed counts.
    """
    scanner = ReceiptScanner(config or load_config())
    history = _open_history(history_path)

    files = _find_documents(input_dir)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "successful": 0, "duplicates": 0, "failed": 0}

    logger.info(
        "Found %d documents to scan against %d past expenses",
        len(files),
        len(history),
    )

    items: list[BatchItem] = []
    try:
        for i, file_path in enumerate(files, 1):
            if verbose:
                print(f"Scanning [{i}/{len(files)}]: {file_path.name}")
            try:
                document = RawDocument.from_path(file_path)
            except OSError as exc:
                logger.error("Failed to read %s: %s", file_path.name, exc)
                items.append(BatchItem(file_path.name, "failed", error=str(exc)))
                continue
            items.append(scanner.scan_item(document, history, currency, record))
    finally:
        scanner.close()
    log_batch_summary(items)

    _write_csv([_item_row(item) for item in items], output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {
        "total": len(items),
        "successful": sum(1 for i in items if i.status != "failed"),
        "duplicates": sum(1 for i in items if i.status == "duplicate"),
        "failed": sum(1 for i in items if i.status == "failed"),
    }
    _print_summary(summary, output_csv)
    return summary


def _write_csv(results: list[dict[str, object]], output_path: Path) -> None:
    """Write scan results to a CSV file.

    Args:
        results: List of result dictionaries.
        output_path: Path for the output CSV file.
    """
    if not results:
        return

    all_keys: set[str] = set()
    for r in results:
        all_keys.update(r.keys())

    field_columns = sorted(all_keys - set(_META_COLUMNS))
    columns = [c for c in _META_COLUMNS if c in all_keys] + field_columns

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(results)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    """Print batch summary to stdout."""
    print(f"\n{'=' * 50}")
    print("Receipt Scan Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Duplicates: {summary['duplicates']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def scan_single(
    file_path: Path,
    history_path: Path | None = None,
    currency: str | None = None,
    config: AppConfig | None = None,
) -> dict[str, object]:
    """Scan a single document and return structured results.

    Args:
        file_path: Path to the document file.
        history_path: CSV export of past expenses.
        currency: Currency to report when none is printed on the document.
        config: Application configuration. Loaded from disk when omitted.

    Returns:
        Dictionary with filename, extracted fields and raw_text.
    """
    scanner = ReceiptScanner(config or load_config())
    history = _open_history(history_path)

    try:
        outcome = scanner.scan(RawDocument.from_path(file_path), history, currency)
    finally:
        scanner.close()
    return {
        "filename": file_path.name,
        "fields": outcome.to_dict(),
        "raw_text": outcome.result.raw_text,
    }


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Offline receipt and statement scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--config", type=Path, help="YAML config file (default: configs/config.yaml)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    batch_parser = subparsers.add_parser("batch", help="Scan a folder of documents")
    batch_parser.add_argument(
        "input_dir", type=Path, help="Input directory with documents"
    )
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "--history", type=Path, help="CSV of past expenses (merchant, category, ...)"
    )
    batch_parser.add_argument("--currency", help="Fallback currency code")
    batch_parser.add_argument(
        "--record",
        action="store_true",
        help="Check later documents against earlier ones in the same folder",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    single_parser = subparsers.add_parser("scan", help="Scan a single document")
    single_parser.add_argument("file", type=Path, help="Document file to scan")
    single_parser.add_argument("--history", type=Path, help="CSV of past expenses")
    single_parser.add_argument("--currency", help="Fallback currency code")
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    name_parser = subparsers.add_parser(
        "filename", help="Guess date and merchant from a file name only"
    )
    name_parser.add_argument("name", help="File name to parse")

    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        scan_folder(
            args.input_dir,
            args.output,
            args.history,
            args.currency,
            args.record,
            args.verbose,
            config,
        )
    elif args.command == "scan":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        result = scan_single(args.file, args.history, args.currency, config)
        output_str = json.dumps(result, indent=2)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str)
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    elif args.command == "filename":
        guess = parse_filename(args.name)
        print(
            json.dumps(
                {
                    "date": guess.date.isoformat() if guess.date else None,
                    "merchant": guess.merchant,
                    "confidence": guess.confidence,
                    "high_confidence": guess.is_high_confidence,
                },
                indent=2,
            )
        )
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
