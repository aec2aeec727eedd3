"""
Record decoder: turns CSV rows into WwffRecord values or ParseError values.

**Conceptual**: A DirectorySession is one decoding pass over one row source.
It reads the header once, binds each schema column to a header position, and
then lazily converts each data row into either a WwffRecord or a ParseError.
One result per data row, in file order, nothing skipped.

**Session lifecycle**:
  - Construction reads the header row and binds columns. A header missing a
    mandatory column raises MissingRequiredColumnError right there, so no row
    is ever produced for it.
  - Iteration yields ``WwffRecord | ParseError`` per data row. Row-level
    errors are values, not exceptions: iteration keeps going.
  - When the row source runs out, the session is exhausted for good. It is
    its own iterator and cannot be rewound; open a new session to re-read.

**Errors from the row source** (OSError, UnicodeDecodeError, csv.Error)
propagate unchanged out of ``next()``.

The decoder does no logging and keeps no reference to yielded records.
"""

from typing import IO, Iterable, Iterator, Optional, Sequence, Union

from src.data.fields import DEFAULT_DATE_FORMAT, FieldValueError
from src.data.schemas import (
    ColumnSpec,
    FieldError,
    MissingRequiredColumnError,
    ParseError,
    TruncatedRowError,
    WwffRecord,
    build_columns,
)

DecodeResult = Union[WwffRecord, ParseError]

_BOM = "\ufeff"


def bind_header(
    header: Sequence[str],
    columns: Sequence[ColumnSpec],
) -> list[tuple[ColumnSpec, int]]:
    """
    Map schema columns to their positions in ``header``.

    **Functionally**:
      - Header names are trimmed; a leading UTF-8 BOM is dropped.
      - When a name appears twice, the first occurrence wins.
      - Optional columns absent from the header are left out of the binding.

    Args:
        header: Raw header row.
        columns: Schema columns in evaluation order.

    Returns:
        List of (ColumnSpec, index) pairs in evaluation order.

    Raises:
        MissingRequiredColumnError: If any required column is absent.
    """
    names = [cell.strip() for cell in header]
    if names and names[0].startswith(_BOM):
        names[0] = names[0][len(_BOM):].strip()

    positions: dict[str, int] = {}
    for index, name in enumerate(names):
        positions.setdefault(name, index)

    missing = [spec.name for spec in columns if spec.required and spec.name not in positions]
    if missing:
        raise MissingRequiredColumnError(missing, found=names)

    return [(spec, positions[spec.name]) for spec in columns if spec.name in positions]


class DirectorySession:
    """
    One lazy decoding pass over a sequence of CSV rows.

    **Example usage**:
        >>> rows = [
        ...     ["reference", "name", "country", "continent", "latitude", "longitude", "status"],
        ...     ["OH-0001", "Example Park", "FI", "EU", "61.50", "23.75", "active"],
        ... ]
        >>> session = DirectorySession(rows)
        >>> record = next(session)
        >>> str(record.reference), record.latitude
        ('OH-0001', 61.5)

    Collect-and-continue:
        >>> for result in session:
        ...     if isinstance(result, ParseError):
        ...         print(result.row, result)

    Abort on first error:
        >>> records = list(session.records())  # raises the first ParseError
    """

    def __init__(
        self,
        rows: Iterable[Sequence[str]],
        date_format: str = DEFAULT_DATE_FORMAT,
        stream: Optional[IO] = None,
    ):
        """
        Bind the header and prepare the lazy row decoder.

        Args:
            rows: Row source, one sequence of cell strings per CSV record.
                  The first row is the header.
            date_format: strptime format for the optional date columns.
            stream: Underlying stream to close in close(), if the session
                    owns it (e.g. a file opened by from_path).

        Raises:
            MissingRequiredColumnError: Header lacks a mandatory column.
        """
        self._rows = iter(rows)
        self._stream = stream
        self.date_format = date_format

        # Empty input is treated as a header without columns
        header = next(self._rows, None)
        self.header: list[str] = list(header) if header is not None else []
        self._bindings = bind_header(self.header, build_columns(date_format))
        self._row_index = 1
        self._results = self._decode_rows()

    @property
    def columns(self) -> list[str]:
        """Schema column names bound by this session, in evaluation order."""
        return [spec.name for spec, _ in self._bindings]

    @property
    def row_index(self) -> int:
        """Row number of the last row read (the header is row 1)."""
        return self._row_index

    def __iter__(self) -> "DirectorySession":
        return self

    def __next__(self) -> DecodeResult:
        return next(self._results)

    def _decode_rows(self) -> Iterator[DecodeResult]:
        width = len(self.header)
        for row in self._rows:
            self._row_index += 1

            # Blank lines are not data rows
            if len(row) == 0:
                continue

            if len(row) < width:
                yield TruncatedRowError(self._row_index, expected=width, actual=len(row))
                continue

            yield self.decode_row(row, self._row_index)

    def decode_row(self, row: Sequence[str], row_index: int) -> DecodeResult:
        """
        Decode one data row against the bound header.

        Fields are evaluated in schema order; the first failing field becomes
        the row's FieldError. A record is built only if every field parsed.

        Args:
            row: Cells of the data row (at least as many as the header).
            row_index: Row number to report in errors.

        Returns:
            WwffRecord, or FieldError for the first invalid cell.
        """
        values = {}
        for spec, index in self._bindings:
            cell = row[index]
            try:
                values[spec.attribute] = spec.parse(cell)
            except FieldValueError as e:
                return FieldError(row_index, spec.name, e.kind, e.value, e.detail)
        return WwffRecord(**values)

    def records(self) -> Iterator[WwffRecord]:
        """
        Yield records, raising the first ParseError encountered.

        **Conceptual**: Abort-on-first-error mode for callers that want the
        whole file to be valid. The error carries the row number for
        targeted correction of the source.

        Raises:
            ParseError: The first invalid row (TruncatedRowError or FieldError).
        """
        for result in self:
            if isinstance(result, ParseError):
                raise result
            yield result

    def close(self) -> None:
        """Close the underlying stream if this session owns one."""
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def __enter__(self) -> "DirectorySession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
