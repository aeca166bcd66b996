#!/usr/bin/env python3
"""
Receipt Scanner - Main Entry Point

Reads the recognized text of scanned receipts (text dumps or PDFs with a
text layer), extracts the date, total and currency, and optionally records
the scan in the local receipt store.

Usage:
    python main.py --input <file> [<file> ...] [options]
    python main.py --list
    python main.py --delete <receipt-id>

Examples:
    python main.py --input receipt.txt
    python main.py --input Receipt_1718000000.pdf --save
    python main.py --input a.txt b.pdf --json
"""
import argparse
import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

from config import APP_NAME, APP_VERSION, get_config, get_log_level
from extractor.models import ExtractionResult
from extractor.receipt_extractor import extract_receipt_pages
from normalizer.amount_parser import format_amount
from normalizer.date_parser import format_date
from sources.text_source import open_text_source
from store.receipt_store import Receipt, ReceiptStore, build_receipt

logger = logging.getLogger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Extract date, total and currency from scanned receipts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --input receipt.txt
  python main.py --input Receipt_1718000000.pdf --save
  python main.py --list
  python main.py --delete 3f2b8c1e-...

Environment Variables:
  RECEIPTS_STORE_DIR  - Folder for receipts.json and documents (default: ~/.receiptscanner)
  LOG_LEVEL           - Logging level (default: INFO)
        """
    )

    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument(
        '--input', '-i',
        nargs='+',
        metavar='FILE',
        help='Receipt text (.txt, pages separated by form feeds) or PDF with a text layer'
    )
    mode.add_argument(
        '--list', '-l',
        action='store_true',
        help='List stored receipts'
    )
    mode.add_argument(
        '--delete', '-d',
        metavar='ID',
        default=None,
        help='Delete a stored receipt and its document'
    )

    parser.add_argument(
        '--save', '-s',
        action='store_true',
        help='Record each scanned input in the receipt store'
    )
    parser.add_argument(
        '--store-dir',
        default=None,
        help='Receipt store folder (overrides RECEIPTS_STORE_DIR)'
    )
    parser.add_argument(
        '--json',
        action='store_true',
        help='Print results as JSON'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output'
    )

    return parser.parse_args(argv)


def configure_logging(verbose: bool = False) -> None:
    """Set up root logging for command line use."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else get_log_level(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def print_result(path: str, result: ExtractionResult, receipt: Optional[Receipt] = None) -> None:
    """Print one extraction in human-readable form."""
    date_fmt = get_config().get("date_display_format")

    print(f"\n--- {path} ---")
    print(f"Date:     {format_date(result.date, date_fmt) or 'not found'}")
    print(f"Total:    {format_amount(result.amount) or 'not found'}")
    print(f"Currency: {result.currency or 'not found'}")
    if result.is_empty:
        print("Nothing recognized in this receipt.")
    if receipt is not None:
        print(f"Saved as: {receipt.id} ({receipt.file_name})")


def scan_files(
    paths: List[str],
    store: Optional[ReceiptStore] = None,
    as_json: bool = False,
) -> int:
    """
    Extract fields from each input file and optionally store them.

    Args:
        paths: Input files
        store: Receipt store to record scans in, or None
        as_json: Print a JSON array instead of a summary

    Returns:
        Exit code
    """
    output: List[Dict[str, Any]] = []

    for path in paths:
        try:
            source = open_text_source(path)
            pages = source.pages()
        except (ValueError, FileNotFoundError) as e:
            print(f"Error: {e}")
            return 1

        result = extract_receipt_pages(pages)

        receipt = None
        if store is not None:
            scanned_at = datetime.now()
            file_name = store.import_document(path, scanned_at)
            receipt = build_receipt(result, file_name, scanned_at)
            store.add(receipt)

        if as_json:
            entry: Dict[str, Any] = {'file': path, **result.to_dict()}
            if receipt is not None:
                entry['receipt'] = receipt.to_dict()
            output.append(entry)
        else:
            print_result(path, result, receipt)

    if as_json:
        print(json.dumps(output, ensure_ascii=False, indent=2))

    return 0


def list_receipts(store: ReceiptStore, as_json: bool = False) -> int:
    """Print all stored receipts."""
    receipts = store.get_all()

    if as_json:
        print(json.dumps([r.to_dict() for r in receipts], ensure_ascii=False, indent=2))
        return 0

    if not receipts:
        print("No saved receipts.")
        return 0

    date_fmt = get_config().get("date_display_format")
    print(f"\n{'='*60}")
    print(f"Saved receipts ({len(receipts)})")
    print(f"{'='*60}")
    for receipt in receipts:
        print(
            f"{receipt.id}  {format_date(receipt.date, date_fmt):<12}  "
            f"{format_amount(receipt.amount):>12}  {receipt.file_name}"
        )
    return 0


def delete_receipt(store: ReceiptStore, receipt_id: str) -> int:
    """Delete one stored receipt and its document."""
    if not store.delete(receipt_id, remove_file=True):
        print(f"Error: No receipt with id {receipt_id}")
        return 1
    print(f"Deleted receipt {receipt_id}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    configure_logging(args.verbose)

    logger.debug("%s v%s", APP_NAME, APP_VERSION)

    needs_store = args.save or args.list or args.delete is not None
    store = ReceiptStore(args.store_dir) if needs_store else None

    if args.list:
        return list_receipts(store, as_json=args.json)
    if args.delete is not None:
        return delete_receipt(store, args.delete)

    return scan_files(args.input, store=store, as_json=args.json)


if __name__ == "__main__":
    sys.exit(main())
