"""Tests for Range header parsing."""

import pytest

from localify.domain.exceptions import InvalidRangeError
from localify.domain.value_objects import ByteRange, parse_range_header


class TestParseRangeHeader:
    """Single-span bytes ranges against a 1000-byte file."""

    def test_no_header_returns_none(self) -> None:
        assert parse_range_header(None, 1000) is None
        assert parse_range_header("", 1000) is None

    def test_explicit_span(self) -> None:
        span = parse_range_header("bytes=0-99", 1000)
        assert span == ByteRange(0, 99, 1000)
        assert span.length == 100
        assert span.content_range == "bytes 0-99/1000"
        assert span.reaches_end is False

    def test_open_ended_span_runs_to_eof(self) -> None:
        span = parse_range_header("bytes=900-", 1000)
        assert span == ByteRange(900, 999, 1000)
        assert span.reaches_end is True

    def test_end_past_eof_is_clamped(self) -> None:
        span = parse_range_header("bytes=500-5000", 1000)
        assert span == ByteRange(500, 999, 1000)

    def test_suffix_range_serves_last_bytes(self) -> None:
        assert parse_range_header("bytes=-100", 1000) == ByteRange(900, 999, 1000)

    def test_suffix_longer_than_file_serves_whole_file(self) -> None:
        assert parse_range_header("bytes=-5000", 1000) == ByteRange(0, 999, 1000)

    def test_single_byte_span(self) -> None:
        span = parse_range_header("bytes=999-999", 1000)
        assert span is not None
        assert span.length == 1

    @pytest.mark.parametrize(
        "header",
        [
            "items=0-99",
            "bytes=abc-def",
            "bytes=0-99,200-299",
            "bytes=100",
            "bytes=-",
            "0-99",
        ],
    )
    def test_malformed_header_is_ignored(self, header: str) -> None:
        assert parse_range_header(header, 1000) is None

    @pytest.mark.parametrize("header", ["bytes=1000-", "bytes=2000-3000", "bytes=500-100", "bytes=-0"])
    def test_unsatisfiable_range_raises(self, header: str) -> None:
        with pytest.raises(InvalidRangeError) as exc_info:
            parse_range_header(header, 1000)
        assert exc_info.value.file_size == 1000

    def test_any_range_on_empty_file_is_unsatisfiable(self) -> None:
        with pytest.raises(InvalidRangeError):
            parse_range_header("bytes=0-", 0)
        with pytest.raises(InvalidRangeError):
            parse_range_header("bytes=-10", 0)


class TestByteRange:
    """ByteRange invariants."""

    def test_full_range(self) -> None:
        span = ByteRange.full(1000)
        assert span == ByteRange(0, 999, 1000)
        assert span.reaches_end is True

    def test_full_range_of_empty_file_is_none(self) -> None:
        assert ByteRange.full(0) is None

    def test_rejects_span_past_eof(self) -> None:
        with pytest.raises(ValueError):
            ByteRange(0, 1000, 1000)

    def test_rejects_inverted_span(self) -> None:
        with pytest.raises(ValueError):
            ByteRange(10, 5, 1000)
