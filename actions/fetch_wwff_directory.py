#!/usr/bin/env python3
"""
Download the WWFF directory and save it to data/raw/.

**Conceptual**: This script fetches the published directory CSV, writes the
raw bytes to data/raw/wwff_directory.csv, then decodes it to report how many
entries are valid.

**Usage**:
    # Fetch to the default location
    python actions/fetch_wwff_directory.py

    # Fetch to a specific file
    python actions/fetch_wwff_directory.py --output /tmp/wwff_directory.csv

    # Refuse to save a directory that has any invalid row
    python actions/fetch_wwff_directory.py --strict

**Exit codes**:
    - 0: Downloaded and every row decoded
    - 1: Downloaded, but some rows are invalid
    - 2: Download failed, header rejected, or --strict and rows are invalid
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path so we can import src modules
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.config.settings import get_settings
from src.data.io import read_directory
from src.data.loaders import DEFAULT_DIRECTORY_PATH
from src.data.schemas import MissingRequiredColumnError
from src.utils.logging_config import configure_logging
from src.venues.wwff_client import WwffClientError, WwffDirectoryClient

logger = logging.getLogger("fetch_wwff_directory")


def main():
    """
    Main entry point for the directory fetch script.

    **Workflow**:
      1. Parse command-line arguments
      2. Load settings and configure logging
      3. Download the directory
      4. Decode it (collect-and-continue)
      5. Save the raw CSV (unless --strict and rows are invalid)
      6. Print summary
    """
    parser = argparse.ArgumentParser(
        description="Download the WWFF directory and save it to data/raw/",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--output",
        type=Path,
        default=DEFAULT_DIRECTORY_PATH,
        help=f"Where to save the CSV. Default: {DEFAULT_DIRECTORY_PATH}",
    )

    parser.add_argument(
        "--strict",
        action="store_true",
        help="Don't save the file if any row fails to decode.",
    )

    args = parser.parse_args()

    # Load settings
    try:
        settings = get_settings()
    except ValueError as e:
        print(f"ERROR: {e}")
        sys.exit(2)

    configure_logging(settings.logging.level, settings.logging.log_file)

    # Download
    try:
        with WwffDirectoryClient(settings.download) as client:
            download = client.fetch()
    except (WwffClientError, OSError) as e:
        logger.error("Download failed: %s", e)
        sys.exit(2)

    if download is None:
        logger.error("Server answered 304 Not Modified to an unconditional request")
        sys.exit(2)

    # Decode
    try:
        result = read_directory(
            download.content,
            date_format=settings.decoder.date_format,
        )
    except MissingRequiredColumnError as e:
        logger.error("Downloaded directory has an unusable header: %s", e)
        sys.exit(2)

    if args.strict and not result.ok:
        logger.error(
            "%d invalid rows, not saving (--strict). First: %s",
            len(result.errors),
            result.errors[0],
        )
        sys.exit(2)

    saved = download.save(args.output)

    # Print summary
    print("=" * 60)
    print("WWFF Directory Fetch")
    print("=" * 60)
    print(f"Source: {download.url}")
    print(f"Fetched at: {download.fetched_at.isoformat()}")
    print(f"Last-Modified: {download.last_modified or '-'}")
    print(f"Saved to: {saved.absolute()} ({len(download.content)} bytes)")
    print(f"Valid entries: {len(result.records)}")
    print(f"Invalid rows: {len(result.errors)}")
    print("=" * 60)

    sys.exit(0 if result.ok else 1)


if __name__ == "__main__":
    main()
