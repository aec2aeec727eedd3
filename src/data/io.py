"""
Entry points for reading WWFF directory CSV files.

**Conceptual**: This module is the I/O boundary between raw CSV content and
the record decoder. Whatever the source (a path on disk, bytes fetched over
HTTPS, an open file or an in-memory buffer), it is tokenized with the
standard csv module and handed to a DirectorySession.

**Reading modes**:
  - from_reader / from_bytes / from_path: open a lazy session, one
    ``WwffRecord | ParseError`` per data row.
  - read_directory: collect-and-continue. Returns every record and every
    row error of the file in one pass, logging each skipped row.
  - read_records: abort-on-first-error. Returns records or raises the first
    ParseError.

**Tabular views**: records_to_frame and errors_to_frame turn results into
pandas DataFrames for inspection and reporting.

**Rule**: Scripts and downstream code should open directories through these
functions rather than calling csv.reader themselves, so header binding and
encoding handling stay in one place.
"""

import codecs
import csv
import io
import logging
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import IO, Iterable, Iterator, Optional, Union

import pandas as pd

from src.data.decoder import DirectorySession
from src.data.fields import DEFAULT_DATE_FORMAT
from src.data.schemas import (
    FieldError,
    ParseError,
    RECORD_FIELDS,
    WwffRecord,
)

logger = logging.getLogger(__name__)

DirectorySource = Union[DirectorySession, bytes, bytearray, str, Path, IO]

# The directory is published as UTF-8, sometimes with a byte order mark
ENCODING = "utf-8-sig"

ERROR_REPORT_COLUMNS = ["row", "column", "kind", "value", "message"]

# Read size for streams that have read()
CHUNK_SIZE = 64 * 1024

_TEXT_LINE_END = re.compile(r"\r\n|\r|\n")
_BYTES_LINE_END = re.compile(rb"\r\n|\r|\n")


def _iter_chunks(stream: Union[IO, Iterable[Union[str, bytes]]]) -> Iterator[Union[str, bytes]]:
    """
    Yield raw chunks from a stream.

    Objects with ``read()`` are read in CHUNK_SIZE pieces; anything else
    (a requests.Response, a generator of byte chunks, a list of lines) is
    iterated. Chunk boundaries carry no meaning.
    """
    read = getattr(stream, "read", None)
    if read is None:
        for chunk in stream:
            yield bytes(chunk) if isinstance(chunk, (bytearray, memoryview)) else chunk
        return

    while True:
        chunk = read(CHUNK_SIZE)
        if not chunk:
            return
        yield bytes(chunk) if isinstance(chunk, bytearray) else chunk


def _split_lines(chunks: Iterable[Union[str, bytes]]) -> Iterator[Union[str, bytes]]:
    """
    Re-split arbitrary chunks into physical lines, endings kept.

    Lines end at "\\r\\n", "\\r" or "\\n". A chunk ending in "\\r" is held
    back until the next chunk shows whether a "\\n" follows.
    """
    pending = None
    for chunk in chunks:
        pending = chunk if pending is None else pending + chunk
        line_end, carriage_return = (
            (_TEXT_LINE_END, "\r") if isinstance(pending, str) else (_BYTES_LINE_END, b"\r")
        )

        start = 0
        for match in line_end.finditer(pending):
            if match.end() == len(pending) and pending.endswith(carriage_return):
                break
            yield pending[start:match.end()]
            start = match.end()
        pending = pending[start:]

    if pending:
        yield pending


def _iter_text_lines(stream: Union[IO, Iterable[Union[str, bytes]]]) -> Iterator[str]:
    """
    Yield text lines from a text or binary stream.

    Binary lines are decoded incrementally as UTF-8 (BOM tolerated), one
    line at a time. Decoding errors propagate to the caller unchanged.
    """
    decoder = codecs.getincrementaldecoder(ENCODING)()
    for line in _split_lines(_iter_chunks(stream)):
        text = line if isinstance(line, str) else decoder.decode(line)
        if text:
            yield text
    tail = decoder.decode(b"", final=True)
    if tail:
        yield tail


def _csv_rows(stream: Union[IO, Iterable[Union[str, bytes]]]) -> Iterator[list[str]]:
    return csv.reader(_iter_text_lines(stream), delimiter=",", quotechar='"', doublequote=True)


def from_reader(
    stream: Union[IO, Iterable[Union[str, bytes]]],
    date_format: Optional[str] = None,
) -> DirectorySession:
    """
    Open a decoding session over a readable stream.

    **Functionally**:
      - Accepts text streams (open(..., "r"), io.StringIO), binary streams
        (open(..., "rb"), io.BytesIO, anything with read()), HTTP response
        bodies (a streamed requests.Response) or any iterable of str or
        bytes chunks. Chunks need not line up with CSV lines.
      - Line endings may be "\\n", "\\r\\n" or a bare "\\r".
      - Reads and binds the header immediately; data rows are read lazily.
      - The caller keeps ownership of the stream and closes it.

    Args:
        stream: Source of CSV content.
        date_format: strptime format for date columns (default "%Y-%m-%d").

    Returns:
        DirectorySession yielding ``WwffRecord | ParseError`` per data row.

    Raises:
        MissingRequiredColumnError: Header lacks a mandatory column.

    Example:
        >>> with open("wwff_directory.csv", "rb") as f:
        ...     for result in from_reader(f):
        ...         print(result)
    """
    return DirectorySession(
        _csv_rows(stream),
        date_format=date_format or DEFAULT_DATE_FORMAT,
    )


def from_bytes(data: bytes, date_format: Optional[str] = None) -> DirectorySession:
    """Open a decoding session over in-memory CSV bytes (e.g. a download)."""
    return from_reader(io.BytesIO(data), date_format=date_format)


def from_path(path: Union[Path, str], date_format: Optional[str] = None) -> DirectorySession:
    """
    Open a decoding session over a CSV file on disk.

    The session owns the file handle: close it with ``session.close()`` or use
    the session as a context manager. If the header is rejected, the file is
    closed before the error propagates.

    Raises:
        FileNotFoundError: If ``path`` doesn't exist.
        MissingRequiredColumnError: Header lacks a mandatory column.

    Example:
        >>> with from_path("data/raw/wwff_directory.csv") as session:
        ...     records = list(session.records())
    """
    handle = open(path, "r", encoding=ENCODING, newline="")
    try:
        return DirectorySession(
            _csv_rows(handle),
            date_format=date_format or DEFAULT_DATE_FORMAT,
            stream=handle,
        )
    except Exception:
        handle.close()
        raise


def open_directory(source: DirectorySource, date_format: Optional[str] = None) -> DirectorySession:
    """
    Open a session from any supported source.

    Strings and Path objects are treated as file paths, bytes as CSV content,
    existing sessions are returned unchanged, anything else as a stream.
    """
    if isinstance(source, DirectorySession):
        return source
    if isinstance(source, (bytes, bytearray)):
        return from_bytes(bytes(source), date_format=date_format)
    if isinstance(source, (str, Path)):
        return from_path(source, date_format=date_format)
    return from_reader(source, date_format=date_format)


@dataclass
class DirectoryReadResult:
    """
    Outcome of a collect-and-continue read.

    Attributes:
        records: Every successfully decoded record, in file order.
        errors: Every row-level error, in file order.
    """

    records: list[WwffRecord] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        """Number of data rows decoded (records plus errors)."""
        return len(self.records) + len(self.errors)

    @property
    def ok(self) -> bool:
        """True if every data row decoded into a record."""
        return not self.errors


def read_directory(
    source: DirectorySource,
    date_format: Optional[str] = None,
) -> DirectoryReadResult:
    """
    Decode a whole directory, collecting records and row errors.

    **Conceptual**: Collect-and-continue mode. A bad row never stops the read;
    each one is logged as a warning and kept in ``errors`` so the caller gets
    a complete, deterministic error report for the file in one pass.

    Args:
        source: Path, bytes, stream or an already opened DirectorySession.
        date_format: strptime format for date columns.

    Returns:
        DirectoryReadResult with records and errors in file order.

    Raises:
        MissingRequiredColumnError: Header lacks a mandatory column.
        OSError / UnicodeDecodeError / csv.Error: From the underlying source.
    """
    started = time.perf_counter()
    result = DirectoryReadResult()

    with open_directory(source, date_format=date_format) as session:
        for item in session:
            if isinstance(item, ParseError):
                logger.warning("Skipping invalid row. Error: %s", item)
                result.errors.append(item)
            else:
                result.records.append(item)

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.debug(
        "Decoded %d entries and %d invalid rows in %.0f ms",
        len(result.records),
        len(result.errors),
        elapsed_ms,
    )
    return result


def read_records(
    source: DirectorySource,
    date_format: Optional[str] = None,
) -> list[WwffRecord]:
    """
    Decode a whole directory, failing on the first invalid row.

    Raises:
        MissingRequiredColumnError: Header lacks a mandatory column.
        ParseError: The first invalid data row.
    """
    with open_directory(source, date_format=date_format) as session:
        return list(session.records())


def _plain(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, str):
        return str(value)
    return value


def records_to_frame(records: Iterable[WwffRecord]) -> pd.DataFrame:
    """
    Convert records into a DataFrame, one column per record attribute.

    Codes become plain strings and statuses their lowercase value, so the
    frame can be filtered and grouped without importing the schema types.

    Example:
        >>> frame = records_to_frame(read_directory(path).records)
        >>> frame.groupby("status").size()
    """
    rows = [
        {name: _plain(getattr(record, name)) for name in RECORD_FIELDS}
        for record in records
    ]
    return pd.DataFrame(rows, columns=RECORD_FIELDS)


def errors_to_frame(errors: Iterable[ParseError]) -> pd.DataFrame:
    """Convert row errors into a report DataFrame (row, column, kind, value, message)."""
    rows = []
    for error in errors:
        if isinstance(error, FieldError):
            rows.append({
                "row": error.row,
                "column": error.column,
                "kind": error.kind.value,
                "value": error.value,
                "message": str(error),
            })
        else:
            rows.append({
                "row": error.row,
                "column": None,
                "kind": "truncated_row",
                "value": None,
                "message": str(error),
            })
    return pd.DataFrame(rows, columns=ERROR_REPORT_COLUMNS)
