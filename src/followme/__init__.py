"""followme: follow a growing file line by line, surviving truncation.

Example:
    >>> from followme import follow
    >>> stream = await follow("app.log")
    >>> async for item in stream:
    ...     if item.is_ok:
    ...         line_number, text = item.unwrap()
    ...         print(line_number, text)
    >>>
    >>> # Custom polling interval, closed on exit
    >>> from followme import FollowConfig, FollowFile
    >>> async with await FollowFile.open("app.log", FollowConfig(poll_interval=0.2)) as stream:
    ...     async for item in stream:
    ...         print(item)
"""

from .engine import FollowFile, follow
from .exceptions import (
    DecodeError,
    FollowError,
    MetadataError,
    OpenError,
    ReadError,
)
from .models import Err, FollowConfig, Item, Ok, State
from .session import Session

__version__ = "0.1.0"
__all__ = [
    # Core
    "FollowFile",
    "follow",
    "Session",
    # Models
    "FollowConfig",
    "State",
    "Item",
    "Ok",
    "Err",
    # Exceptions
    "FollowError",
    "OpenError",
    "MetadataError",
    "ReadError",
    "DecodeError",
]
