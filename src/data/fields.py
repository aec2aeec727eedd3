"""
Field parsers for WWFF directory cells.

**Conceptual**: Every cell in the WWFF directory CSV arrives as text. This
module turns one cell into one typed value (bounded code, coordinate, date,
status, integer, free text) or rejects it with a specific reason. Parsers are
pure functions: same text and bounds in, same value or same failure out.

**Failure model**:
  - Parsers raise FieldValueError carrying a FieldErrorKind and the offending
    text. They know nothing about rows or columns.
  - The record decoder (decoder.py) catches FieldValueError and attaches the
    row index and column name, producing a FieldError.

**Absent values**: Optional cells that are empty or hold one of the
placeholder markers the directory uses ("-", "n/a") parse to None. Mandatory
cells never do.
"""

import re
import string
from datetime import date, datetime
from enum import Enum
from typing import Callable, ClassVar, Optional, Type, TypeVar


class FieldErrorKind(str, Enum):
    """Reason a single cell failed to parse."""

    NOT_A_NUMBER = "not_a_number"
    OUT_OF_RANGE = "out_of_range"
    TOO_LONG = "too_long"
    INVALID_CHARS = "invalid_chars"
    BAD_FORMAT = "bad_format"
    UNKNOWN_VARIANT = "unknown_variant"
    EMPTY = "empty"


class FieldValueError(ValueError):
    """
    Raised by a field parser when a cell cannot be converted.

    Attributes:
        kind: FieldErrorKind describing the failure.
        value: The raw cell text that was rejected.
        detail: Human-readable explanation (bounds, expected format, ...).
    """

    def __init__(self, kind: FieldErrorKind, value: str, detail: str = ""):
        self.kind = kind
        self.value = value
        self.detail = detail
        message = f"{kind.value}: {value!r}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


# Placeholders the directory uses for "no value" in optional columns
ABSENT_MARKERS = frozenset({"", "-", "n/a"})

# Zero date written by the directory export for unset dates
ZERO_DATE = "0000-00-00"

# Known garbage the directory export puts in optional code columns
KNOWN_BAD_CODES = frozenset({"Región 1"})

DEFAULT_DATE_FORMAT = "%Y-%m-%d"

LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)

# Plain decimal degrees: sign, digits, at most one decimal point. No exponent.
_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$", re.ASCII)
_INTEGER_RE = re.compile(r"^[+-]?\d+$", re.ASCII)

_CODE_ALPHABET = frozenset(string.ascii_letters + string.digits)

T = TypeVar("T")
E = TypeVar("E", bound=Enum)


def is_absent(text: str | None) -> bool:
    """Return True if ``text`` is blank or an absent-value marker."""
    if text is None:
        return True
    return text.strip().lower() in ABSENT_MARKERS


def parse_code(
    text: str,
    max_len: int,
    extra_chars: str = "",
    uppercase: bool = True,
) -> str:
    """
    Parse a short fixed-capacity identifier (reference, country, continent...).

    **Functionally**:
      - Trims surrounding whitespace.
      - Rejects blank codes (EMPTY).
      - Rejects codes longer than ``max_len`` bytes when UTF-8 encoded (TOO_LONG).
      - Rejects characters other than ASCII letters, digits and
        ``extra_chars`` (INVALID_CHARS).
      - Uppercases the result when ``uppercase`` is True.

    Args:
        text: Raw cell text.
        max_len: Storage capacity in bytes.
        extra_chars: Punctuation allowed in addition to letters and digits
                     (e.g. "-" for "OHFF-0001").
        uppercase: Normalize to uppercase (default True).

    Returns:
        The validated code string.

    Raises:
        FieldValueError: EMPTY, TOO_LONG or INVALID_CHARS.

    Example:
        >>> parse_code(" oh-0001 ", 12, extra_chars="-")
        'OH-0001'
    """
    code = text.strip()

    if not code:
        raise FieldValueError(FieldErrorKind.EMPTY, text, "code is blank")

    if len(code.encode("utf-8")) > max_len:
        raise FieldValueError(
            FieldErrorKind.TOO_LONG, text, f"longer than {max_len} bytes"
        )

    allowed = _CODE_ALPHABET.union(extra_chars)
    bad = sorted({ch for ch in code if ch not in allowed})
    if bad:
        raise FieldValueError(
            FieldErrorKind.INVALID_CHARS, text, f"unexpected characters {bad}"
        )

    return code.upper() if uppercase else code


class FixedCode(str):
    """
    A bounded-length code string, validated at construction.

    **Conceptual**: The directory stores identifiers in small fixed-size
    slots. Subclasses declare the capacity and alphabet; constructing one
    runs parse_code, so an instance always satisfies its storage contract.

    Subclasses set:
        max_len: capacity in bytes.
        extra_chars: punctuation allowed besides letters and digits.
        uppercase: whether the value is normalized to uppercase.
    """

    max_len: ClassVar[int] = 8
    extra_chars: ClassVar[str] = ""
    uppercase: ClassVar[bool] = True

    def __new__(cls, value: str):
        code = parse_code(
            value,
            cls.max_len,
            extra_chars=cls.extra_chars,
            uppercase=cls.uppercase,
        )
        return super().__new__(cls, code)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"


class ReferenceCode(FixedCode):
    """WWFF reference, e.g. "OHFF-0001"."""

    max_len = 12
    extra_chars = "-"


class CountryCode(FixedCode):
    """Short country identifier, e.g. "FI"."""

    max_len = 3


class ContinentCode(FixedCode):
    """Two-letter continent identifier, e.g. "EU"."""

    max_len = 2


class ProgramCode(FixedCode):
    """National WWFF program prefix, e.g. "OHFF"."""

    max_len = 12


class DxccCode(FixedCode):
    """DXCC entity prefix, e.g. "OH" or "KH6"."""

    max_len = 8
    extra_chars = "-/"


class RegionCode(FixedCode):
    """State or county subdivision code."""

    max_len = 8
    extra_chars = "-"


class IotaCode(FixedCode):
    """Islands On The Air reference, e.g. "EU-173"."""

    max_len = 8
    extra_chars = "-"


class LocatorCode(FixedCode):
    """IARU (Maidenhead) grid locator. Case is kept as published."""

    max_len = 12
    uppercase = False


class IucnCategory(FixedCode):
    """IUCN protected area category, e.g. "II" or "Ia"."""

    max_len = 12
    uppercase = False


def parse_coordinate(text: str, minimum: float, maximum: float) -> float:
    """
    Parse a plain decimal-degrees coordinate and check its bounds.

    **Accepted**: optional leading sign, digits, at most one decimal point
    ("61.50", "-23", "+.5"). Exponents, "nan", "inf", underscores and blank
    cells are rejected as NOT_A_NUMBER even though float() would take some of
    them. Values are never clamped.

    Args:
        text: Raw cell text.
        minimum: Inclusive lower bound.
        maximum: Inclusive upper bound.

    Returns:
        The coordinate as float.

    Raises:
        FieldValueError: NOT_A_NUMBER or OUT_OF_RANGE.
    """
    cleaned = text.strip()
    if not _DECIMAL_RE.match(cleaned):
        raise FieldValueError(
            FieldErrorKind.NOT_A_NUMBER, text, "expected decimal degrees"
        )

    value = float(cleaned)
    if not minimum <= value <= maximum:
        raise FieldValueError(
            FieldErrorKind.OUT_OF_RANGE, text, f"outside [{minimum}, {maximum}]"
        )
    return value


def parse_latitude(text: str) -> float:
    return parse_coordinate(text, *LATITUDE_RANGE)


def parse_longitude(text: str) -> float:
    return parse_coordinate(text, *LONGITUDE_RANGE)


def parse_integer(text: str, minimum: int, maximum: int) -> int:
    """Parse a signed decimal integer within ``[minimum, maximum]``."""
    cleaned = text.strip()
    if not _INTEGER_RE.match(cleaned):
        raise FieldValueError(FieldErrorKind.NOT_A_NUMBER, text, "expected an integer")

    value = int(cleaned)
    if not minimum <= value <= maximum:
        raise FieldValueError(
            FieldErrorKind.OUT_OF_RANGE, text, f"outside [{minimum}, {maximum}]"
        )
    return value


def parse_date(text: str, date_format: str = DEFAULT_DATE_FORMAT) -> Optional[date]:
    """
    Parse an optional calendar date.

    **Functionally**:
      - Blank cells, absent markers and the zero date "0000-00-00" mean
        "not specified" and return None.
      - Anything else must match ``date_format`` (strptime syntax) or
        BAD_FORMAT is raised.

    Args:
        text: Raw cell text.
        date_format: strptime format, "%Y-%m-%d" unless configured otherwise.

    Returns:
        datetime.date, or None when the cell is empty.

    Raises:
        FieldValueError: BAD_FORMAT.
    """
    cleaned = text.strip()
    if is_absent(cleaned) or cleaned == ZERO_DATE:
        return None

    try:
        return datetime.strptime(cleaned, date_format).date()
    except ValueError:
        raise FieldValueError(
            FieldErrorKind.BAD_FORMAT, text, f"expected format {date_format!r}"
        )


def parse_enum(text: str, enum_cls: Type[E]) -> E:
    """
    Match ``text`` case-insensitively against the values of ``enum_cls``.

    Raises:
        FieldValueError: UNKNOWN_VARIANT with the offending text.
    """
    wanted = text.strip().lower()
    for member in enum_cls:
        if str(member.value).lower() == wanted:
            return member

    known = ", ".join(str(member.value) for member in enum_cls)
    raise FieldValueError(
        FieldErrorKind.UNKNOWN_VARIANT, text, f"expected one of: {known}"
    )


def parse_text(text: str, required: bool = True) -> Optional[str]:
    """
    Parse free text, trimming surrounding whitespace.

    Blank mandatory text raises EMPTY. Optional text that is blank or an
    absent marker returns None.
    """
    cleaned = text.strip()
    if required:
        if not cleaned:
            raise FieldValueError(FieldErrorKind.EMPTY, text, "value is blank")
        return cleaned
    if is_absent(cleaned):
        return None
    return cleaned


def optional(parser: Callable[[str], T]) -> Callable[[str], Optional[T]]:
    """Wrap ``parser`` so blank or absent-marker cells yield None."""

    def parse_optional(text: str) -> Optional[T]:
        if is_absent(text):
            return None
        return parser(text)

    parse_optional.__name__ = f"optional_{getattr(parser, '__name__', 'parser')}"
    return parse_optional


def optional_code(code_cls: Type[FixedCode]) -> Callable[[str], Optional[FixedCode]]:
    """
    Parser for an optional code column.

    Like optional(), but the values in KNOWN_BAD_CODES also yield None
    instead of failing the whole row.
    """
    parse_code_or_none = optional(code_cls)

    def parse_optional_code(text: str) -> Optional[FixedCode]:
        if text.strip() in KNOWN_BAD_CODES:
            return None
        return parse_code_or_none(text)

    parse_optional_code.__name__ = f"optional_{code_cls.__name__}"
    return parse_optional_code
