"""Data models for followme."""

from __future__ import annotations

import codecs
import enum
from dataclasses import dataclass
from typing import Literal, NoReturn, Union

from .exceptions import FollowError


class State(enum.Enum):
    """Engine states. Exactly one is active at a time."""

    OPENING = "opening"
    READING = "reading"
    SLEEPING = "sleeping"
    CHECKING_LENGTH = "checking_length"


@dataclass(frozen=True)
class FollowConfig:
    """Tunables for a follower.

    Attributes:
        poll_interval: Seconds to wait between length checks
        encoding: Encoding used to decode each line (strict)
        error_backoff: Seconds to wait after a read error before retrying
            (0 = retry immediately)
    """

    poll_interval: float = 1.0
    encoding: str = "utf-8"
    error_backoff: float = 0.0

    def __post_init__(self) -> None:
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.error_backoff < 0:
            raise ValueError(f"error_backoff must be >= 0, got {self.error_backoff}")
        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise ValueError(f"unknown encoding: {self.encoding}") from None


@dataclass(frozen=True, slots=True)
class Ok:
    """A successfully decoded line.

    Attributes:
        line_number: 1-indexed line number within the current file content
        text: Line text without the trailing newline
    """

    line_number: int
    text: str

    @property
    def is_ok(self) -> Literal[True]:
        return True

    def unwrap(self) -> tuple[int, str]:
        return self.line_number, self.text

    def __repr__(self) -> str:
        return f"Ok(({self.line_number}, {self.text!r}))"


@dataclass(frozen=True, slots=True)
class Err:
    """An error delivered inline; the stream keeps running after it."""

    error: FollowError

    @property
    def is_ok(self) -> Literal[False]:
        return False

    def unwrap(self) -> NoReturn:
        raise self.error

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Item = Union[Ok, Err]
