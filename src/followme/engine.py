"""Follow engine: the polling state machine behind ``followme``."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Union

from .exceptions import DecodeError, MetadataError, OpenError, ReadError
from .models import Err, FollowConfig, Item, Ok, State
from .session import Session

logger = logging.getLogger(__name__)


class FollowFile:
    """Async iterator over lines appended to a file, forever.

    Reads whatever the file already contains, then polls its length every
    ``config.poll_interval`` seconds. Growth resumes reading from the
    current position; a shorter length is treated as truncation and the
    file is reopened from the start with line numbers restarting at 1.

    Nothing happens between ``__anext__`` calls: the engine only runs while
    the consumer awaits the next item. Cancelling the awaiting task stops
    the engine; a read or open already running in a worker thread is kept
    and its result is used by the next call, so no line is skipped.

    Example:
        >>> async with await FollowFile.open("app.log") as stream:
        ...     async for item in stream:
        ...         print(item)
        Ok((1, 'started'))
        Ok((2, 'listening on :8080'))
    """

    def __init__(self, session: Session, config: FollowConfig | None = None) -> None:
        """Wrap an already-open session.

        Most callers want :meth:`open` instead.

        Args:
            session: Freshly opened session for the target file
            config: Polling and decoding settings (defaults to FollowConfig())
        """
        self._path = session.path
        self._session: Session | None = session
        self._config = config or FollowConfig()
        self._state = State.READING
        self._closed = False
        self._yielded_count = 0
        self._pending: asyncio.Future[Any] | None = None
        self._backoff = False
        self._read_failures = 0

    @classmethod
    async def open(
        cls, path: Union[str, Path], config: FollowConfig | None = None
    ) -> "FollowFile":
        """Open ``path`` and return a follower ready to pull from.

        Raises:
            OpenError: If the initial open fails. Later reopens are retried
                instead of raised.
        """
        session = await Session.open(path)
        return cls(session, config)

    async def __aenter__(self) -> "FollowFile":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the file handle and end iteration.

        An in-flight read or open left behind by a cancelled ``__anext__``
        is allowed to finish first so its handle can be released.
        """
        self._closed = True
        pending, self._pending = self._pending, None
        if pending is not None:
            await asyncio.wait({pending})
            if not pending.cancelled() and pending.exception() is None:
                result = pending.result()
                if isinstance(result, Session):
                    await result.close()
        await self._discard_session()

    def __aiter__(self) -> "FollowFile":
        return self

    async def __anext__(self) -> Item:
        if self._closed:
            raise StopAsyncIteration

        while True:
            if self._state is State.OPENING:
                await self._open()
            elif self._state is State.READING:
                item = await self._read()
                if item is not None:
                    self._yielded_count += 1
                    return item
            elif self._state is State.SLEEPING:
                await asyncio.sleep(self._config.poll_interval)
                self._state = State.CHECKING_LENGTH
            elif self._state is State.CHECKING_LENGTH:
                await self._check_length()

    # ─────────────────────────────────────────────────────────────────
    # State handlers
    # ─────────────────────────────────────────────────────────────────

    async def _settle(self, start: Callable[[], Awaitable[Any]]) -> Any:
        """Await the in-flight read or open, starting it if there is none.

        File I/O runs in a worker thread that cancellation can't stop. A
        cancelled caller leaves the task in ``_pending`` and the next call
        collects its result, so no bytes and no handles are lost.
        """
        if self._pending is None:
            self._pending = asyncio.ensure_future(start())
        pending = self._pending
        await asyncio.wait({pending})
        self._pending = None
        return pending.result()

    async def _open(self) -> None:
        try:
            self._session = await self._settle(lambda: Session.open(self._path))
        except OpenError as exc:
            logger.debug("Reopen failed, retrying later: %s", exc)
            self._state = State.SLEEPING
            return

        logger.info("Reopened %s, following from the start", self._path)
        self._state = State.READING

    async def _read(self) -> Item | None:
        """Run one read step; returns an item when a line or error is ready."""
        session = self._session
        if session is None:
            self._state = State.OPENING
            return None

        if self._backoff:
            await asyncio.sleep(self._config.error_backoff)
            self._backoff = False

        try:
            consumed, complete = await self._settle(session.read_chunk)
        except ReadError as exc:
            self._read_failures += 1
            if self._read_failures == 1:
                logger.warning("%s", exc, exc_info=exc.__cause__)
            else:
                logger.debug("%s (%d in a row)", exc, self._read_failures)
            self._backoff = self._config.error_backoff > 0
            return Err(exc)

        if self._read_failures:
            logger.info("Reading %s again after %d failures", self._path, self._read_failures)
            self._read_failures = 0

        if complete:
            line_number, data = session.take_line()
            try:
                return Ok(line_number, data.decode(self._config.encoding))
            except UnicodeDecodeError:
                return Err(DecodeError(line_number, data, self._config.encoding))

        if consumed == 0:
            self._state = State.SLEEPING
        return None

    async def _check_length(self) -> None:
        try:
            length = await Session.query_length(self._path)
        except MetadataError as exc:
            logger.debug("%s", exc)
            self._state = State.SLEEPING
            return

        if self._session is None:
            # A reopen failed earlier; nothing to compare against.
            self._state = State.OPENING
        elif length > self._session.known_length:
            self._session.known_length = length
            self._state = State.READING
        elif length == self._session.known_length:
            self._state = State.SLEEPING
        else:
            logger.info(
                "%s truncated (%d -> %d bytes)",
                self._path,
                self._session.known_length,
                length,
            )
            await self._discard_session()
            self._state = State.OPENING

    async def _discard_session(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            await session.close()

    # ─────────────────────────────────────────────────────────────────
    # Introspection
    # ─────────────────────────────────────────────────────────────────

    @property
    def path(self) -> Path:
        """Path being followed."""
        return self._path

    @property
    def config(self) -> FollowConfig:
        return self._config

    @property
    def state(self) -> State:
        """Current engine state."""
        return self._state

    @property
    def line_number(self) -> int:
        """Lines delivered from the current session (0 while reopening)."""
        return self._session.line_number if self._session is not None else 0

    @property
    def known_length(self) -> int:
        """Last observed file length in bytes (0 while reopening)."""
        return self._session.known_length if self._session is not None else 0

    @property
    def yielded_count(self) -> int:
        """Items yielded since construction, across reopens."""
        return self._yielded_count

    @property
    def closed(self) -> bool:
        """Whether the follower has been closed."""
        return self._closed


async def follow(
    path: Union[str, Path],
    *,
    poll_interval: float = 1.0,
    encoding: str = "utf-8",
    error_backoff: float = 0.0,
) -> FollowFile:
    """Open ``path`` for following.

    Shortcut for ``FollowFile.open(path, FollowConfig(...))``.

    Raises:
        OpenError: If the file can't be opened
    """
    config = FollowConfig(
        poll_interval=poll_interval, encoding=encoding, error_backoff=error_backoff
    )
    return await FollowFile.open(path, config)
