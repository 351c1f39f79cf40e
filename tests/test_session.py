"""Tests for Session: opening, incremental reads and length queries."""

from pathlib import Path

import pytest

from followme import MetadataError, OpenError, ReadError, Session

# ─────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────


@pytest.fixture
def two_lines(tmp_path: Path) -> Path:
    """File with two complete lines."""
    file_path = tmp_path / "two.log"
    file_path.write_bytes(b"a\nb\n")
    return file_path


class FakeHandle:
    """Stand-in for an aiofiles handle that replays canned results."""

    def __init__(self, results: list) -> None:
        self._results = list(results)
        self.close_calls = 0

    async def readline(self) -> bytes:
        result = self._results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result

    async def close(self) -> None:
        self.close_calls += 1


# ─────────────────────────────────────────────────────────────────────
# Opening
# ─────────────────────────────────────────────────────────────────────


class TestOpen:
    """Tests for Session.open()."""

    async def test_fresh_session(self, two_lines: Path):
        """New session records length and starts at line 0."""
        session = await Session.open(two_lines)
        try:
            assert session.path == two_lines
            assert session.known_length == 4
            assert session.line_number == 0
            assert session.partial == bytearray()
            assert not session.closed
        finally:
            await session.close()

    async def test_accepts_str_path(self, two_lines: Path):
        """String paths are converted to Path."""
        session = await Session.open(str(two_lines))
        try:
            assert session.path == two_lines
        finally:
            await session.close()

    async def test_missing_file(self, tmp_path: Path):
        """Missing file raises OpenError with the cause chained."""
        missing = tmp_path / "missing.log"
        with pytest.raises(OpenError) as exc_info:
            await Session.open(missing)

        assert exc_info.value.path == missing
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    async def test_directory(self, tmp_path: Path):
        """A directory can't be followed."""
        with pytest.raises(OpenError):
            await Session.open(tmp_path)


# ─────────────────────────────────────────────────────────────────────
# Reading
# ─────────────────────────────────────────────────────────────────────


class TestReadChunk:
    """Tests for read_chunk() and take_line()."""

    async def test_complete_lines(self, two_lines: Path):
        """Each read stops after one delimiter."""
        session = await Session.open(two_lines)
        try:
            assert await session.read_chunk() == (2, True)
            assert session.take_line() == (1, b"a")

            assert await session.read_chunk() == (2, True)
            assert session.take_line() == (2, b"b")

            assert await session.read_chunk() == (0, False)
            assert session.line_number == 2
        finally:
            await session.close()

    async def test_partial_line_is_carried_over(self, tmp_path: Path):
        """Bytes without a delimiter wait in the partial buffer."""
        file_path = tmp_path / "partial.log"
        file_path.write_bytes(b"par")

        session = await Session.open(file_path)
        try:
            assert await session.read_chunk() == (3, False)
            assert session.partial == bytearray(b"par")
            assert await session.read_chunk() == (0, False)

            with open(file_path, "ab") as f:
                f.write(b"tial\nnext")

            assert await session.read_chunk() == (5, True)
            assert session.take_line() == (1, b"partial")
            assert session.partial == bytearray()
        finally:
            await session.close()

    async def test_empty_line(self, tmp_path: Path):
        """A bare delimiter is an empty line."""
        file_path = tmp_path / "blank.log"
        file_path.write_bytes(b"\n")

        session = await Session.open(file_path)
        try:
            assert await session.read_chunk() == (1, True)
            assert session.take_line() == (1, b"")
        finally:
            await session.close()

    async def test_crlf_keeps_carriage_return(self, tmp_path: Path):
        """Only the newline is stripped."""
        file_path = tmp_path / "crlf.log"
        file_path.write_bytes(b"dos\r\n")

        session = await Session.open(file_path)
        try:
            await session.read_chunk()
            assert session.take_line() == (1, b"dos\r")
        finally:
            await session.close()

    async def test_read_failure(self, tmp_path: Path):
        """OSError from the handle becomes ReadError."""
        handle = FakeHandle([OSError(5, "Input/output error"), b"ok\n"])
        session = Session(tmp_path / "flaky.log", handle, known_length=0)

        with pytest.raises(ReadError) as exc_info:
            await session.read_chunk()
        assert isinstance(exc_info.value.__cause__, OSError)
        assert session.partial == bytearray()

        # The next attempt goes through
        assert await session.read_chunk() == (3, True)

    async def test_read_after_close(self, two_lines: Path):
        """Reading a closed session is a ReadError, not a crash."""
        session = await Session.open(two_lines)
        await session.close()

        with pytest.raises(ReadError):
            await session.read_chunk()


# ─────────────────────────────────────────────────────────────────────
# Length queries and lifecycle
# ─────────────────────────────────────────────────────────────────────


class TestQueryLength:
    """Tests for Session.query_length()."""

    async def test_current_size(self, two_lines: Path):
        """Returns on-disk size."""
        assert await Session.query_length(two_lines) == 4

        with open(two_lines, "ab") as f:
            f.write(b"c\n")
        assert await Session.query_length(two_lines) == 6

    async def test_missing_path(self, tmp_path: Path):
        """Inaccessible path raises MetadataError."""
        missing = tmp_path / "gone.log"
        with pytest.raises(MetadataError) as exc_info:
            await Session.query_length(missing)
        assert exc_info.value.path == missing


class TestClose:
    """Tests for close()."""

    async def test_close_is_idempotent(self, tmp_path: Path):
        """Handle is closed exactly once."""
        handle = FakeHandle([])
        session = Session(tmp_path / "x.log", handle, known_length=0)

        await session.close()
        await session.close()

        assert session.closed
        assert handle.close_calls == 1
