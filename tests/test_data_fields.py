"""
Tests for src/data/fields.py

These tests verify each field parser accepts well-formed cell text and rejects
malformed text with the right FieldErrorKind.
"""

from datetime import date

import pytest

from src.data.fields import (
    ContinentCode,
    CountryCode,
    FieldErrorKind,
    FieldValueError,
    IucnCategory,
    LocatorCode,
    ReferenceCode,
    RegionCode,
    is_absent,
    optional,
    optional_code,
    parse_code,
    parse_coordinate,
    parse_date,
    parse_enum,
    parse_integer,
    parse_latitude,
    parse_longitude,
    parse_text,
)
from src.data.schemas import Status


def assert_kind(exc_info, kind: FieldErrorKind):
    assert exc_info.value.kind is kind


# ============================================================================
# Codes
# ============================================================================

def test_parse_code_trims_and_uppercases():
    assert parse_code("  fi ", 3) == "FI"


def test_parse_code_keeps_case_when_asked():
    assert parse_code("KP21ol", 12, uppercase=False) == "KP21ol"


def test_parse_code_allows_extra_chars():
    assert parse_code("oh-0001", 12, extra_chars="-") == "OH-0001"


def test_parse_code_too_long():
    with pytest.raises(FieldValueError) as exc_info:
        parse_code("FINL", 3)
    assert_kind(exc_info, FieldErrorKind.TOO_LONG)
    assert exc_info.value.value == "FINL"


def test_parse_code_length_counts_bytes():
    """'ÅÄ' is 2 characters but 4 bytes in UTF-8."""
    with pytest.raises(FieldValueError) as exc_info:
        parse_code("ÅÄ", 3)
    assert_kind(exc_info, FieldErrorKind.TOO_LONG)


def test_parse_code_invalid_chars():
    with pytest.raises(FieldValueError) as exc_info:
        parse_code("F.I", 3)
    assert_kind(exc_info, FieldErrorKind.INVALID_CHARS)


def test_parse_code_rejects_hyphen_unless_allowed():
    with pytest.raises(FieldValueError) as exc_info:
        parse_code("E-U", 3)
    assert_kind(exc_info, FieldErrorKind.INVALID_CHARS)


def test_parse_code_empty():
    with pytest.raises(FieldValueError) as exc_info:
        parse_code("   ", 3)
    assert_kind(exc_info, FieldErrorKind.EMPTY)


def test_fixed_code_types_enforce_capacity():
    assert ReferenceCode("ohff-0001") == "OHFF-0001"
    assert CountryCode("fi") == "FI"
    assert ContinentCode("eu") == "EU"

    with pytest.raises(FieldValueError):
        ContinentCode("EUR")
    with pytest.raises(FieldValueError):
        ReferenceCode("OHFF-00001234")


def test_fixed_code_is_a_plain_string_value():
    code = CountryCode("fi")
    assert isinstance(code, str)
    assert code == "FI"
    assert hash(code) == hash("FI")
    assert repr(code) == "CountryCode('FI')"


def test_case_preserving_codes():
    assert LocatorCode("KP21ol") == "KP21ol"
    assert IucnCategory("Ia") == "Ia"


# ============================================================================
# Coordinates
# ============================================================================

@pytest.mark.parametrize("text, expected", [
    ("61.50", 61.5),
    ("-23", -23.0),
    ("+0.5", 0.5),
    (".5", 0.5),
    ("  12.25  ", 12.25),
    ("90", 90.0),
    ("-90.0", -90.0),
])
def test_parse_latitude_valid(text, expected):
    assert parse_latitude(text) == expected


@pytest.mark.parametrize("text", [
    "",
    "not-a-number",
    "1e5",
    "nan",
    "inf",
    "1_0",
    "1.2.3",
    "61,50",
    "-",
])
def test_parse_coordinate_not_a_number(text):
    with pytest.raises(FieldValueError) as exc_info:
        parse_coordinate(text, -90, 90)
    assert_kind(exc_info, FieldErrorKind.NOT_A_NUMBER)


@pytest.mark.parametrize("text", ["90.0001", "-90.5", "180"])
def test_parse_latitude_out_of_range(text):
    with pytest.raises(FieldValueError) as exc_info:
        parse_latitude(text)
    assert_kind(exc_info, FieldErrorKind.OUT_OF_RANGE)


def test_parse_longitude_bounds_are_inclusive():
    assert parse_longitude("180") == 180.0
    assert parse_longitude("-180") == -180.0

    with pytest.raises(FieldValueError) as exc_info:
        parse_longitude("180.01")
    assert_kind(exc_info, FieldErrorKind.OUT_OF_RANGE)


# ============================================================================
# Dates
# ============================================================================

def test_parse_date_iso():
    assert parse_date("2024-05-01") == date(2024, 5, 1)


@pytest.mark.parametrize("text", ["", "  ", "-", "n/a", "0000-00-00"])
def test_parse_date_absent_values(text):
    assert parse_date(text) is None


@pytest.mark.parametrize("text", ["01.05.2024", "2024-13-01", "yesterday", "2024-02-30"])
def test_parse_date_bad_format(text):
    with pytest.raises(FieldValueError) as exc_info:
        parse_date(text)
    assert_kind(exc_info, FieldErrorKind.BAD_FORMAT)


def test_parse_date_custom_format():
    assert parse_date("01.05.2024", date_format="%d.%m.%Y") == date(2024, 5, 1)


# ============================================================================
# Enumerations
# ============================================================================

@pytest.mark.parametrize("text, expected", [
    ("active", Status.ACTIVE),
    ("ACTIVE", Status.ACTIVE),
    (" Deleted ", Status.DELETED),
    ("national", Status.NATIONAL),
    ("Proposed", Status.PROPOSED),
])
def test_parse_enum_case_insensitive(text, expected):
    assert parse_enum(text, Status) is expected


@pytest.mark.parametrize("text", ["", "inactive", "activ", "actives"])
def test_parse_enum_unknown_variant(text):
    with pytest.raises(FieldValueError) as exc_info:
        parse_enum(text, Status)
    assert_kind(exc_info, FieldErrorKind.UNKNOWN_VARIANT)
    assert exc_info.value.value == text
    assert "active" in exc_info.value.detail


# ============================================================================
# Integers, text, optional wrapper
# ============================================================================

def test_parse_integer():
    assert parse_integer("42", 0, 255) == 42

    with pytest.raises(FieldValueError) as exc_info:
        parse_integer("4.2", 0, 255)
    assert_kind(exc_info, FieldErrorKind.NOT_A_NUMBER)

    with pytest.raises(FieldValueError) as exc_info:
        parse_integer("256", 0, 255)
    assert_kind(exc_info, FieldErrorKind.OUT_OF_RANGE)


def test_parse_text_required():
    assert parse_text("  Example Park ") == "Example Park"

    with pytest.raises(FieldValueError) as exc_info:
        parse_text("  ")
    assert_kind(exc_info, FieldErrorKind.EMPTY)


def test_parse_text_optional():
    assert parse_text("n/a", required=False) is None
    assert parse_text("", required=False) is None
    assert parse_text(" notes ", required=False) == "notes"


def test_optional_wrapper():
    parse_country = optional(CountryCode)
    assert parse_country("-") is None
    assert parse_country("") is None
    assert parse_country("fi") == "FI"

    with pytest.raises(FieldValueError):
        parse_country("FINLAND")


def test_optional_code_skips_known_bad_value():
    parse_region = optional_code(RegionCode)
    assert parse_region("Región 1") is None
    assert parse_region(" Región 1 ") is None
    assert parse_region("n/a") is None
    assert parse_region("uu-01") == "UU-01"

    # Other non-ASCII values are still rejected
    with pytest.raises(FieldValueError) as exc_info:
        parse_region("Región")
    assert_kind(exc_info, FieldErrorKind.INVALID_CHARS)


def test_is_absent():
    assert is_absent(None)
    assert is_absent(" N/A ")
    assert not is_absent("0")
