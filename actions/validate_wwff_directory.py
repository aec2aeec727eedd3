#!/usr/bin/env python3
"""
Validate a local WWFF directory CSV and report every invalid row.

**Conceptual**: Decodes the file in collect-and-continue mode (default) and
prints a complete error report plus a breakdown of valid entries by status
and continent. With --fail-fast it stops at the first invalid row instead.

**Usage**:
    # Validate data/raw/wwff_directory.csv
    python actions/validate_wwff_directory.py

    # Validate another file, stop at the first error
    python actions/validate_wwff_directory.py --path my_directory.csv --fail-fast

    # Write the full error report to CSV
    python actions/validate_wwff_directory.py --errors-csv results/wwff_errors.csv

**Exit codes**:
    - 0: Every row decoded
    - 1: Some rows are invalid
    - 2: File missing or header rejected
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path so we can import src modules
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.config.settings import get_settings
from src.data.io import errors_to_frame, read_records, records_to_frame
from src.data.loaders import DEFAULT_DIRECTORY_PATH, load_wwff_directory
from src.data.schemas import MissingRequiredColumnError, ParseError
from src.utils.logging_config import configure_logging

logger = logging.getLogger("validate_wwff_directory")


def run_fail_fast(path: Path, date_format: str) -> int:
    """Decode ``path`` until the first invalid row. Returns the exit code."""
    try:
        records = read_records(path, date_format=date_format)
    except ParseError as e:
        print(f"INVALID {path}: {e}")
        return 1
    print(f"OK {path}: {len(records)} entries")
    return 0


def run_report(path: Path, date_format: str, max_errors: int, errors_csv: Path | None) -> int:
    """Decode the whole file and print the report. Returns the exit code."""
    result = load_wwff_directory(path, date_format=date_format)
    errors = errors_to_frame(result.errors)

    print("=" * 60)
    print(f"WWFF Directory Validation: {path}")
    print("=" * 60)
    print(f"Data rows: {result.row_count}")
    print(f"Valid entries: {len(result.records)}")
    print(f"Invalid rows: {len(result.errors)}")

    if result.records:
        frame = records_to_frame(result.records)
        print("\nEntries by status:")
        print(frame.groupby("status").size().to_string())
        print("\nEntries by continent:")
        print(frame.groupby("continent").size().to_string())

    if not errors.empty:
        print("\nErrors by kind:")
        print(errors.groupby("kind").size().to_string())
        print(f"\nFirst {min(max_errors, len(errors))} errors:")
        for message in errors["message"].head(max_errors):
            print(f"  {message}")

        if errors_csv is not None:
            errors_csv.parent.mkdir(parents=True, exist_ok=True)
            errors.to_csv(errors_csv, index=False)
            print(f"\nFull error report written to {errors_csv}")

    print("=" * 60)
    return 0 if result.ok else 1


def main():
    parser = argparse.ArgumentParser(
        description="Validate a local WWFF directory CSV",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--path",
        type=Path,
        default=DEFAULT_DIRECTORY_PATH,
        help=f"CSV file to validate. Default: {DEFAULT_DIRECTORY_PATH}",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop at the first invalid row.",
    )
    parser.add_argument(
        "--max-errors",
        type=int,
        default=20,
        help="Number of errors to print in the report. Default: 20.",
    )
    parser.add_argument(
        "--errors-csv",
        type=Path,
        default=None,
        help="Write the full error report to this CSV file.",
    )
    args = parser.parse_args()

    try:
        settings = get_settings()
    except ValueError as e:
        print(f"ERROR: {e}")
        sys.exit(2)

    configure_logging(settings.logging.level, settings.logging.log_file)
    date_format = settings.decoder.date_format

    try:
        if args.fail_fast:
            exit_code = run_fail_fast(args.path, date_format)
        else:
            exit_code = run_report(args.path, date_format, args.max_errors, args.errors_csv)
    except FileNotFoundError:
        logger.error("File not found: %s. Run actions/fetch_wwff_directory.py first.", args.path)
        sys.exit(2)
    except MissingRequiredColumnError as e:
        logger.error("Header rejected: %s", e)
        sys.exit(2)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
