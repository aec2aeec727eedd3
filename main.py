"""
wwff_directory – Main entry point.

Reads the local WWFF directory (data/raw/wwff_directory.csv) and prints how
many entries decoded. Use actions/fetch_wwff_directory.py to download it.
"""

import sys

from src.config.settings import get_settings
from src.data.loaders import DEFAULT_DIRECTORY_PATH, load_wwff_directory
from src.utils.logging_config import configure_logging


def main() -> None:
    """Print a one-line summary of the local directory."""
    settings = get_settings()
    configure_logging(settings.logging.level, settings.logging.log_file)

    if not DEFAULT_DIRECTORY_PATH.exists():
        print(f"No directory at {DEFAULT_DIRECTORY_PATH}. Run actions/fetch_wwff_directory.py first.")
        sys.exit(2)

    result = load_wwff_directory(date_format=settings.decoder.date_format)
    print(f"wwff_directory: {len(result.records)} entries, {len(result.errors)} invalid rows")


if __name__ == "__main__":
    main()
