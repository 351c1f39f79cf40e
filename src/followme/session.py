"""One open view of the followed file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Union

import aiofiles
import aiofiles.os

from .exceptions import MetadataError, OpenError, ReadError

logger = logging.getLogger(__name__)

DELIMITER = b"\n"


class Session:
    """Live binding to one open instance of the target file.

    Owns the file handle, the last observed length and the bytes of the
    line currently being assembled. A Session is never rewound: when the
    file is truncated the engine closes it and opens a fresh one.

    Example:
        >>> session = await Session.open("app.log")
        >>> consumed, complete = await session.read_chunk()
        >>> if complete:
        ...     line_number, data = session.take_line()
    """

    def __init__(self, path: Union[str, Path], handle: Any, known_length: int) -> None:
        """Wrap an already-open binary handle.

        Args:
            path: Path the handle was opened from
            handle: Async binary file object with ``readline()`` and ``close()``
            known_length: File length in bytes observed at open time
        """
        self._path = Path(path)
        self._handle = handle
        self.known_length = known_length
        self.line_number = 0
        self.partial = bytearray()
        self._closed = False

    @classmethod
    async def open(cls, path: Union[str, Path]) -> "Session":
        """Open ``path`` and record its current length.

        Raises:
            OpenError: If the file can't be stat'ed or opened
        """
        path = Path(path)
        try:
            stat = await aiofiles.os.stat(path)
            handle = await aiofiles.open(path, "rb")
        except OSError as exc:
            raise OpenError(path) from exc

        logger.debug("Opened %s (%d bytes)", path, stat.st_size)
        return cls(path, handle, stat.st_size)

    @staticmethod
    async def query_length(path: Union[str, Path]) -> int:
        """Current on-disk length of ``path``; does not touch any open handle.

        Raises:
            MetadataError: If the path is inaccessible
        """
        try:
            stat = await aiofiles.os.stat(path)
        except OSError as exc:
            raise MetadataError(path) from exc
        return stat.st_size

    async def read_chunk(self) -> tuple[int, bool]:
        """Read up to and including the next delimiter, or to end of data.

        Returns:
            ``(consumed, complete)`` where ``consumed`` is the number of bytes
            read by this call (0 means nothing new right now) and ``complete``
            is True when the pending line now ends in the delimiter.

        Raises:
            ReadError: If the underlying read fails
        """
        try:
            data = await self._handle.readline()
        except (OSError, ValueError) as exc:
            raise ReadError(self._path) from exc

        self.partial.extend(data)
        return len(data), self.partial.endswith(DELIMITER)

    def take_line(self) -> tuple[int, bytes]:
        """Pop the completed line and count it.

        Returns:
            ``(line_number, data)`` with the delimiter stripped.
        """
        data = bytes(self.partial[: -len(DELIMITER)])
        self.partial.clear()
        self.line_number += 1
        return self.line_number, data

    async def close(self) -> None:
        """Release the file handle. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self.partial.clear()
        await self._handle.close()

    @property
    def path(self) -> Path:
        """Path this session was opened from."""
        return self._path

    @property
    def closed(self) -> bool:
        return self._closed
