"""
Unit tests for Range header parsing.
"""

import pytest

from staticserver.http.ranges import ByteRange, parse_range


SIZE = 5000


class TestParseRange:
    """Tests for parse_range."""

    def test_closed_range(self):
        assert parse_range("bytes=0-99", SIZE) == ByteRange(0, 99)

    def test_prefix_form(self):
        assert parse_range("bytes=4000-", SIZE) == ByteRange(4000, 4999)

    def test_suffix_form(self):
        assert parse_range("bytes=-10", SIZE) == ByteRange(4990, 4999)

    def test_whole_file_as_suffix(self):
        assert parse_range("bytes=-5000", SIZE) == ByteRange(0, 4999)

    def test_last_byte(self):
        assert parse_range("bytes=4999-4999", SIZE) == ByteRange(4999, 4999)

    def test_only_first_clause_is_used(self):
        assert parse_range("bytes=0-10,20-30", SIZE) == ByteRange(0, 10)

    def test_whitespace_is_tolerated(self):
        assert parse_range(" bytes = 5 - 9 ", SIZE) == ByteRange(5, 9)

    def test_unit_is_case_insensitive(self):
        assert parse_range("Bytes=0-0", SIZE) == ByteRange(0, 0)

    @pytest.mark.parametrize("header", [
        "bytes=5000-5005",   # start == size
        "bytes=0-5000",      # end == size, rejected rather than clamped
        "bytes=6000-",       # start beyond the end
        "bytes=-6000",       # suffix longer than the file
        "bytes=-0",          # empty suffix
        "bytes=10-5",        # reversed
        "bytes=a-b",
        "bytes=1-x",
        "bytes=+1-5",
        "bytes=-",
        "bytes=",
        "bytes=5",
        "items=0-10",
        "0-10",
        "",
    ])
    def test_unsatisfiable(self, header):
        assert parse_range(header, SIZE) is None

    def test_empty_file_has_no_satisfiable_range(self):
        assert parse_range("bytes=0-", 0) is None
        assert parse_range("bytes=-1", 0) is None


class TestByteRange:
    """Tests for ByteRange helpers."""

    def test_length_is_inclusive(self):
        assert ByteRange(0, 99).length == 100
        assert ByteRange(7, 7).length == 1

    def test_content_range(self):
        assert ByteRange(0, 99).content_range(5000) == "bytes 0-99/5000"
