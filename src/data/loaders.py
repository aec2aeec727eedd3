"""
Convenience loaders for the locally stored WWFF directory.

**Conceptual**: The fetch action saves the downloaded directory under
data/raw/. These helpers resolve that standard path so scripts don't hardcode
it, and delegate the actual decoding to io.py.
"""

from pathlib import Path
from typing import Optional, Union

from src.data.io import DirectoryReadResult, read_directory


# Project root is 2 levels up from src/data/loaders.py
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Standard data directories
RAW_DATA_DIR = PROJECT_ROOT / "data" / "raw"

DIRECTORY_FILENAME = "wwff_directory.csv"

DEFAULT_DIRECTORY_PATH = RAW_DATA_DIR / DIRECTORY_FILENAME


def load_wwff_directory(
    path: Optional[Union[Path, str]] = None,
    date_format: Optional[str] = None,
) -> DirectoryReadResult:
    """
    Load the local copy of the WWFF directory (collect-and-continue).

    Args:
        path: CSV file to read. Defaults to data/raw/wwff_directory.csv.
        date_format: strptime format for date columns.

    Returns:
        DirectoryReadResult with records and row errors.

    Raises:
        FileNotFoundError: If the file doesn't exist (run
                           actions/fetch_wwff_directory.py first).
        MissingRequiredColumnError: Header lacks a mandatory column.

    Example:
        >>> result = load_wwff_directory()
        >>> result.ok
        True
    """
    csv_path = Path(path) if path is not None else DEFAULT_DIRECTORY_PATH
    return read_directory(csv_path, date_format=date_format)
