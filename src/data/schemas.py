"""
Record schema and error taxonomy for the WWFF directory.

**Conceptual**: This module defines the "data contract" for one directory
entry: which CSV columns exist, which are mandatory, how each cell is parsed,
and what the resulting WwffRecord looks like. The decoder (decoder.py) is
generic; everything specific to the WWFF layout lives here.

**Schema philosophy**:
  - Columns are bound by header name, never by position.
  - Mandatory columns come first in declaration order. That order is also the
    order fields are evaluated in, so the first reported error of a row is
    deterministic.
  - Optional columns are bound only if the header has them. A missing optional
    column and an empty optional cell both produce None.
  - Records are frozen dataclasses: built once, compared by value.

**Error taxonomy**:
  - MissingRequiredColumnError: header lacks a mandatory column (fatal).
  - TruncatedRowError: a data row has fewer cells than the header.
  - FieldError: one cell failed its parser (kind from FieldErrorKind).
"""

from dataclasses import dataclass, fields
from datetime import date
from enum import Enum
from functools import partial
from typing import Any, Callable, Optional, Sequence

from src.data.fields import (
    DEFAULT_DATE_FORMAT,
    ContinentCode,
    CountryCode,
    DxccCode,
    FieldErrorKind,
    IotaCode,
    IucnCategory,
    LocatorCode,
    ProgramCode,
    ReferenceCode,
    RegionCode,
    optional,
    optional_code,
    parse_date,
    parse_enum,
    parse_integer,
    parse_latitude,
    parse_longitude,
    parse_text,
)


class DirectoryError(Exception):
    """
    Base class for every error raised or yielded while reading a directory.

    **Usage**: Catch DirectoryError to handle all directory-related failures,
    or one of the subclasses for precise handling.
    """
    pass


class MissingRequiredColumnError(DirectoryError):
    """
    Raised when the header row lacks one or more mandatory columns.

    **Conceptual**: Without every mandatory column no row can ever produce a
    record, so the whole session fails before any row is read.

    Attributes:
        columns: Every missing mandatory column, in schema order.
        column: The first missing column.
        found: The header names that were present.
    """

    def __init__(self, columns: Sequence[str], found: Sequence[str] = ()):
        self.columns = tuple(columns)
        self.column = self.columns[0] if self.columns else ""
        self.found = tuple(found)
        super().__init__(
            f"Missing required columns: {list(self.columns)}. "
            f"Expected columns: {REQUIRED_COLUMNS}. "
            f"Found columns: {list(self.found)}."
        )


class ParseError(DirectoryError):
    """
    A single data row could not be turned into a record.

    ParseError instances are *yielded* by the decoder in place of a record, so
    one bad row never stops the session. Callers that want fail-fast behavior
    raise them (see DirectorySession.records).

    Attributes:
        row: 1-based row number in the CSV file (the header is row 1).
    """

    def __init__(self, row: int, message: str):
        self.row = row
        super().__init__(f"row {row}: {message}")


class TruncatedRowError(ParseError):
    """A data row has fewer cells than the header declares."""

    def __init__(self, row: int, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(row, f"expected {expected} cells, found {actual}")


class FieldError(ParseError):
    """
    One cell of a data row failed validation.

    Attributes:
        column: Header name of the offending column.
        kind: FieldErrorKind (NOT_A_NUMBER, OUT_OF_RANGE, ...).
        value: Raw cell text.
        detail: Parser explanation (bounds, expected format, ...).
    """

    def __init__(
        self,
        row: int,
        column: str,
        kind: FieldErrorKind,
        value: str,
        detail: str = "",
    ):
        self.column = column
        self.kind = kind
        self.value = value
        self.detail = detail
        message = f"column '{column}' {kind.value}: {value!r}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(row, message)


class Status(str, Enum):
    """Status of a WWFF reference as published in the directory."""

    ACTIVE = "active"
    DELETED = "deleted"
    NATIONAL = "national"
    PROPOSED = "proposed"


def parse_status(text: str) -> Status:
    return parse_enum(text, Status)


@dataclass(frozen=True)
class WwffRecord:
    """
    One WWFF directory entry.

    Mandatory attributes are always populated and within bounds; optional
    attributes are None when the column is missing or the cell is empty.
    """

    reference: ReferenceCode
    name: str
    country: CountryCode
    continent: ContinentCode
    latitude: float
    longitude: float
    status: Status
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    program: Optional[ProgramCode] = None
    dxcc: Optional[DxccCode] = None
    state: Optional[RegionCode] = None
    county: Optional[RegionCode] = None
    iota: Optional[IotaCode] = None
    iaru_locator: Optional[LocatorCode] = None
    iucn_category: Optional[IucnCategory] = None
    notes: Optional[str] = None
    last_modified: Optional[str] = None
    changelog: Optional[str] = None
    review_flag: Optional[int] = None
    special_flags: Optional[str] = None
    website: Optional[str] = None
    region: Optional[str] = None
    dxcc_enum: Optional[int] = None
    qso_count: Optional[int] = None
    last_activated: Optional[date] = None


# Record attribute names in declaration order (used for tabular views)
RECORD_FIELDS = [f.name for f in fields(WwffRecord)]


@dataclass(frozen=True)
class ColumnSpec:
    """
    Binding between one CSV column and one WwffRecord attribute.

    Attributes:
        name: Header name in the CSV file.
        attribute: WwffRecord attribute the parsed value is stored in.
        parse: Callable turning cell text into a value (raises FieldValueError).
        required: Whether the column must be present in the header.
    """

    name: str
    attribute: str
    parse: Callable[[str], Any]
    required: bool = False


def _optional_text(text: str) -> Optional[str]:
    return parse_text(text, required=False)


def build_columns(date_format: str = DEFAULT_DATE_FORMAT) -> tuple[ColumnSpec, ...]:
    """
    Build the ordered column specification for the directory layout.

    **Functionally**:
      - Mandatory columns first, in evaluation order.
      - Optional columns follow; date columns use ``date_format``.

    Args:
        date_format: strptime format for validFrom, validTo and lastAct.

    Returns:
        Tuple of ColumnSpec in evaluation order.
    """
    date_parser = partial(parse_date, date_format=date_format)

    return (
        ColumnSpec("reference", "reference", ReferenceCode, required=True),
        ColumnSpec("name", "name", parse_text, required=True),
        ColumnSpec("country", "country", CountryCode, required=True),
        ColumnSpec("continent", "continent", ContinentCode, required=True),
        ColumnSpec("latitude", "latitude", parse_latitude, required=True),
        ColumnSpec("longitude", "longitude", parse_longitude, required=True),
        ColumnSpec("status", "status", parse_status, required=True),
        ColumnSpec("validFrom", "valid_from", date_parser),
        ColumnSpec("validTo", "valid_to", date_parser),
        ColumnSpec("program", "program", optional_code(ProgramCode)),
        ColumnSpec("dxcc", "dxcc", optional_code(DxccCode)),
        ColumnSpec("state", "state", optional_code(RegionCode)),
        ColumnSpec("county", "county", optional_code(RegionCode)),
        ColumnSpec("iota", "iota", optional_code(IotaCode)),
        ColumnSpec("iaruLocator", "iaru_locator", optional_code(LocatorCode)),
        ColumnSpec("IUCNcat", "iucn_category", optional_code(IucnCategory)),
        ColumnSpec("notes", "notes", _optional_text),
        ColumnSpec("lastMod", "last_modified", _optional_text),
        ColumnSpec("changeLog", "changelog", _optional_text),
        ColumnSpec("reviewFlag", "review_flag", optional(partial(parse_integer, minimum=0, maximum=255))),
        ColumnSpec("specialFlags", "special_flags", _optional_text),
        ColumnSpec("website", "website", _optional_text),
        ColumnSpec("region", "region", _optional_text),
        ColumnSpec("dxccEnum", "dxcc_enum", optional(partial(parse_integer, minimum=0, maximum=65535))),
        ColumnSpec("qsoCount", "qso_count", optional(partial(parse_integer, minimum=0, maximum=4294967295))),
        ColumnSpec("lastAct", "last_activated", date_parser),
    )


# Mandatory header names, in evaluation order
REQUIRED_COLUMNS = [spec.name for spec in build_columns() if spec.required]

# Every header name the schema understands
KNOWN_COLUMNS = [spec.name for spec in build_columns()]
