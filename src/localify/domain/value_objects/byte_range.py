"""HTTP byte range value object and Range header parsing."""

from dataclasses import dataclass

from localify.domain.exceptions import InvalidRangeError


@dataclass(frozen=True)
class ByteRange:
    """Inclusive byte span [start, end] of a file with a known size."""

    start: int
    end: int
    file_size: int

    def __post_init__(self) -> None:
        """Validate span bounds."""
        if self.start < 0 or self.end < self.start or self.end >= self.file_size:
            raise ValueError(
                f"Invalid byte span {self.start}-{self.end} for size {self.file_size}"
            )

    @property
    def length(self) -> int:
        """Number of bytes in the span."""
        return self.end - self.start + 1

    @property
    def content_range(self) -> str:
        """Value for the Content-Range response header."""
        return f"bytes {self.start}-{self.end}/{self.file_size}"

    @property
    def reaches_end(self) -> bool:
        """True if the span includes the last byte of the file."""
        return self.end == self.file_size - 1

    @classmethod
    def full(cls, file_size: int) -> "ByteRange | None":
        """Span covering the whole file, None for empty files."""
        if file_size <= 0:
            return None
        return cls(0, file_size - 1, file_size)


# Hey future me - the rules here:
# - No header, wrong unit, garbage numbers, multiple ranges -> None (caller serves 200 full body).
#   RFC 9110 says an unparseable Range header is ignored, not rejected.
# - Parseable but unsatisfiable (start past EOF, start > end, empty file, "bytes=-0") -> 416.
# - end past EOF is clamped, "bytes=500-" runs to EOF, "bytes=-500" is the last 500 bytes.
def parse_range_header(range_header: str | None, file_size: int) -> ByteRange | None:
    """Parse a single-span ``Range: bytes=...`` header.

    Args:
        range_header: Raw header value (may be None)
        file_size: Size of the resource in bytes

    Returns:
        ByteRange to serve, or None if the header is absent or malformed

    Raises:
        InvalidRangeError: If the range is well-formed but not satisfiable
    """
    if not range_header:
        return None

    unit, sep, spec = range_header.strip().partition("=")
    if not sep or unit.strip().lower() != "bytes":
        return None

    spec = spec.strip()
    if "," in spec or "-" not in spec:
        return None

    start_s, _, end_s = spec.partition("-")
    start_s = start_s.strip()
    end_s = end_s.strip()

    if not start_s:
        # Suffix form: last N bytes
        if not end_s.isdigit():
            return None
        suffix_length = int(end_s)
        if suffix_length == 0 or file_size == 0:
            raise InvalidRangeError(range_header, file_size)
        return ByteRange(max(0, file_size - suffix_length), file_size - 1, file_size)

    if not start_s.isdigit() or (end_s and not end_s.isdigit()):
        return None

    start = int(start_s)
    end = int(end_s) if end_s else file_size - 1

    if start >= file_size or end < start:
        raise InvalidRangeError(range_header, file_size)

    return ByteRange(start, min(end, file_size - 1), file_size)
