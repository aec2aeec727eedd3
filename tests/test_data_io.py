"""
Tests for src/data/io.py and src/data/loaders.py

This module tests:
  - Opening sessions from paths, bytes, text and binary streams.
  - Encoding handling (UTF-8, BOM, invalid bytes).
  - CSV quoting (embedded commas, quotes and newlines).
  - Collect-and-continue and abort-on-first-error reading.
  - DataFrame views of records and errors.
"""

import io
import logging

import pytest
import requests

from src.data.decoder import DirectorySession
from src.data.fields import FieldErrorKind
from src.data.io import (
    ERROR_REPORT_COLUMNS,
    errors_to_frame,
    from_bytes,
    from_path,
    from_reader,
    open_directory,
    read_directory,
    read_records,
    records_to_frame,
)
from src.data.loaders import load_wwff_directory
from src.data.schemas import (
    RECORD_FIELDS,
    FieldError,
    MissingRequiredColumnError,
    Status,
    TruncatedRowError,
    WwffRecord,
)


HEADER_LINE = "reference,name,country,continent,latitude,longitude,status\n"

VALID_CSV = (
    HEADER_LINE
    + "OH-0001,Example Park,FI,EU,61.50,23.75,active\n"
    + "SM-0002,Other Park,SE,EU,59.3,18.05,deleted\n"
)

MIXED_CSV = (
    HEADER_LINE
    + "OH-0001,Example Park,FI,EU,61.50,23.75,active\n"
    + "OH-0002,Bad Coord,FI,EU,not-a-number,23.75,active\n"
    + "OH-0003,Short,FI,EU,61.5\n"
    + "OH-0004,Last Park,FI,EU,60.0,25.0,national\n"
)


@pytest.fixture
def directory_file(tmp_path):
    """Write a small mixed directory to a temp file and return its path."""
    path = tmp_path / "wwff_directory.csv"
    path.write_text(MIXED_CSV, encoding="utf-8")
    return path


# ============================================================================
# Opening sessions
# ============================================================================

def test_from_reader_text_stream():
    session = from_reader(io.StringIO(VALID_CSV))
    results = list(session)

    assert len(results) == 2
    assert all(isinstance(r, WwffRecord) for r in results)
    assert results[0].reference == "OH-0001"
    assert results[1].status is Status.DELETED


def test_from_reader_binary_stream():
    session = from_reader(io.BytesIO(VALID_CSV.encode("utf-8")))
    assert [r.reference for r in session] == ["OH-0001", "SM-0002"]


def test_from_bytes_with_bom_and_crlf():
    data = b"\xef\xbb\xbf" + VALID_CSV.replace("\n", "\r\n").encode("utf-8")
    session = from_bytes(data)

    assert session.columns[0] == "reference"
    results = list(session)
    assert len(results) == 2
    assert results[1].longitude == 18.05


def test_from_bytes_keeps_non_ascii_names():
    csv_text = HEADER_LINE + "OH-0005,Pyhä-Luoston kansallispuisto,FI,EU,67.0,27.0,active\n"
    (record,) = from_bytes(csv_text.encode("utf-8"))
    assert record.name == "Pyhä-Luoston kansallispuisto"


def test_quoted_fields():
    csv_text = (
        HEADER_LINE
        + '"OH-0001","Park, with ""quotes""\nand a newline",FI,EU,61.5,23.75,active\n'
        + "OH-0002,Plain,FI,EU,x,23.75,active\n"
    )
    results = list(from_reader(io.StringIO(csv_text)))

    assert results[0].name == 'Park, with "quotes"\nand a newline'
    # The quoted record spans two physical lines but is one CSV record
    assert isinstance(results[1], FieldError)
    assert results[1].row == 3


def test_invalid_utf8_propagates():
    data = HEADER_LINE.encode("utf-8") + b"OH-0001,Bad \xff name,FI,EU,61.5,23.75,active\n"
    session = from_bytes(data)
    with pytest.raises(UnicodeDecodeError):
        next(session)


def test_from_path(directory_file):
    with from_path(directory_file) as session:
        results = list(session)
    assert len(results) == 4


def test_from_path_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        from_path(tmp_path / "missing.csv")


def test_from_path_rejected_header(tmp_path):
    path = tmp_path / "bad_header.csv"
    path.write_text("reference,name\nOH-0001,Park\n", encoding="utf-8")

    with pytest.raises(MissingRequiredColumnError) as exc_info:
        from_path(path)
    assert exc_info.value.column == "country"


def test_open_directory_dispatch(directory_file):
    session = DirectorySession([HEADER_LINE.strip().split(",")])
    assert open_directory(session) is session

    with open_directory(directory_file) as from_file:
        assert len(list(from_file)) == 4
    with open_directory(str(directory_file)) as from_str:
        assert len(list(from_str)) == 4
    assert len(list(open_directory(VALID_CSV.encode("utf-8")))) == 2
    assert len(list(open_directory(io.StringIO(VALID_CSV)))) == 2


def test_header_only_yields_nothing():
    assert list(from_bytes(HEADER_LINE.encode("utf-8"))) == []


def test_empty_input_is_rejected():
    with pytest.raises(MissingRequiredColumnError):
        from_bytes(b"")


# ============================================================================
# Chunked and network streams
# ============================================================================

def chunks_of(data, size):
    return (data[i:i + size] for i in range(0, len(data), size))


@pytest.mark.parametrize("size", [1, 7, 16, 4096])
def test_from_reader_byte_chunks(size):
    """Chunk boundaries don't have to match line boundaries."""
    data = MIXED_CSV.replace("\n", "\r\n").encode("utf-8")
    results = list(from_reader(chunks_of(data, size)))

    assert [type(r) for r in results] == [WwffRecord, FieldError, TruncatedRowError, WwffRecord]
    assert results[1].row == 3


def test_from_reader_text_chunks():
    results = list(from_reader(chunks_of(VALID_CSV, 16)))
    assert [r.reference for r in results] == ["OH-0001", "SM-0002"]


def test_from_reader_multibyte_char_split_across_chunks():
    csv_text = HEADER_LINE + "OH-0005,Pyhä-Luosto,FI,EU,67.0,27.0,active\n"
    data = csv_text.encode("utf-8")
    split = data.index("ä".encode("utf-8")) + 1

    (record,) = from_reader([data[:split], data[split:]])
    assert record.name == "Pyhä-Luosto"


def test_from_reader_crlf_split_between_chunks():
    """A '\\r' ending one chunk and the '\\n' starting the next make one line end."""
    data = VALID_CSV.replace("\n", "\r\n").encode("utf-8")
    split = data.index(b"\r\n") + 1

    results = list(from_reader([data[:split], data[split:]]))
    assert len(results) == 2
    assert all(isinstance(r, WwffRecord) for r in results)


def test_from_reader_requests_response_body():
    response = requests.Response()
    response.status_code = 200
    response.raw = io.BytesIO(VALID_CSV.encode("utf-8"))

    results = list(from_reader(response))
    assert [r.reference for r in results] == ["OH-0001", "SM-0002"]


def test_from_reader_read_only_object():
    class Body:
        """Exposes read() and nothing else."""

        def __init__(self, data):
            self._buffer = io.BytesIO(data)

        def read(self, size=-1):
            return self._buffer.read(size)

    results = list(from_reader(Body(MIXED_CSV.encode("utf-8"))))
    assert len(results) == 4


def test_from_bytes_cr_only_line_endings():
    data = MIXED_CSV.replace("\n", "\r").encode("utf-8")
    results = list(from_bytes(data))

    assert [type(r) for r in results] == [WwffRecord, FieldError, TruncatedRowError, WwffRecord]
    assert results[3].reference == "OH-0004"


def test_from_reader_cr_only_text():
    results = list(from_reader(io.StringIO(VALID_CSV.replace("\n", "\r"))))
    assert len(results) == 2


def test_quoted_newline_across_chunks():
    csv_text = HEADER_LINE + '"OH-0001","Two\r\nlines",FI,EU,61.5,23.75,active\r\n'
    (record,) = from_reader(chunks_of(csv_text.encode("utf-8"), 5))
    assert record.name == "Two\r\nlines"


# ============================================================================
# Reading modes
# ============================================================================

def test_read_directory_collects_everything(directory_file, caplog):
    with caplog.at_level(logging.WARNING, logger="src.data.io"):
        result = read_directory(directory_file)

    assert [r.reference for r in result.records] == ["OH-0001", "OH-0004"]
    assert [type(e) for e in result.errors] == [FieldError, TruncatedRowError]
    assert result.errors[0].row == 3
    assert result.errors[0].kind is FieldErrorKind.NOT_A_NUMBER
    assert result.errors[1].row == 4
    assert result.row_count == 4
    assert not result.ok

    # Each skipped row is logged once
    warnings = [r for r in caplog.records if "Skipping invalid row" in r.getMessage()]
    assert len(warnings) == 2


def test_read_directory_valid_file_is_ok():
    result = read_directory(VALID_CSV.encode("utf-8"))
    assert result.ok
    assert result.row_count == 2


def test_read_directory_is_deterministic(directory_file):
    first = read_directory(directory_file)
    second = read_directory(directory_file)
    assert first.records == second.records
    assert [str(e) for e in first.errors] == [str(e) for e in second.errors]


def test_read_records_valid():
    records = read_records(io.StringIO(VALID_CSV))
    assert len(records) == 2


def test_read_records_raises_first_error(directory_file):
    with pytest.raises(FieldError) as exc_info:
        read_records(directory_file)
    assert exc_info.value.row == 3
    assert exc_info.value.column == "latitude"
    assert "row 3" in str(exc_info.value)


def test_load_wwff_directory(directory_file):
    result = load_wwff_directory(directory_file)
    assert len(result.records) == 2
    assert len(result.errors) == 2


def test_load_wwff_directory_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_wwff_directory(tmp_path / "nope.csv")


# ============================================================================
# DataFrame views
# ============================================================================

def test_records_to_frame():
    result = read_directory(VALID_CSV.encode("utf-8"))
    frame = records_to_frame(result.records)

    assert list(frame.columns) == RECORD_FIELDS
    assert len(frame) == 2
    assert frame.loc[0, "reference"] == "OH-0001"
    assert frame.loc[1, "status"] == "deleted"
    assert frame["status"].map(type).eq(str).all()


def test_records_to_frame_empty():
    frame = records_to_frame([])
    assert frame.empty
    assert list(frame.columns) == RECORD_FIELDS


def test_errors_to_frame(directory_file):
    result = read_directory(directory_file)
    frame = errors_to_frame(result.errors)

    assert list(frame.columns) == ERROR_REPORT_COLUMNS
    assert frame["row"].tolist() == [3, 4]
    assert frame.loc[0, "column"] == "latitude"
    assert frame.loc[0, "kind"] == "not_a_number"
    assert frame.loc[0, "value"] == "not-a-number"
    assert frame.loc[1, "kind"] == "truncated_row"
