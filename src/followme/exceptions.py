"""Custom exceptions for followme."""

from pathlib import Path


class FollowError(Exception):
    """Base class for all follow errors.

    Every error the engine can raise or deliver as an item inherits from
    this, so callers can catch them with a single except.
    """


class OpenError(FollowError):
    """The file could not be opened or its metadata could not be read.

    Raised only when constructing a follower. Reopens after truncation
    fail silently and are retried on the next poll.

    Attributes:
        path: Path that could not be opened
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"Could not open file: {self.path}")


class MetadataError(FollowError):
    """Length query failed (e.g. the file is momentarily missing).

    Never surfaced to the consumer; the engine goes back to sleep and
    retries on the next cycle.

    Attributes:
        path: Path whose metadata could not be read
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"Could not read file metadata: {self.path}")


class ReadError(FollowError):
    """I/O failure while extending the current line.

    Delivered to the consumer as a single error item. Reading continues
    afterwards.

    Attributes:
        path: Path of the file being read
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"Read failed: {self.path}")


class DecodeError(FollowError):
    """Line bytes are not valid text in the configured encoding.

    The line is still consumed and counted, so the following lines keep
    their numbers.

    Attributes:
        line_number: 1-indexed number of the offending line
        data: Raw line bytes without the delimiter
        encoding: Encoding that failed
    """

    def __init__(self, line_number: int, data: bytes, encoding: str = "utf-8") -> None:
        self.line_number = line_number
        self.data = data
        self.encoding = encoding
        super().__init__(
            f"Line {line_number} is not valid {encoding} ({len(data)} bytes)"
        )

    def __repr__(self) -> str:
        return f"DecodeError(line_number={self.line_number}, data={self.data!r})"
