from dataclasses import dataclass
from dataclasses import field
from typing import Optional
from typing import Tuple

import enum


DELIMITER = "/"

MAX_RETRY = 5


class DelimiterMode(enum.Enum):
    """How a listing treats keys below the first level of the prefix."""

    FLAT = None
    HIERARCHICAL = DELIMITER


@dataclass(frozen=True)
class FileMetadata:
    """Metadata for a file, directory marker or common prefix."""

    key: str
    length: int
    mtime: int
    is_file: bool


@dataclass(frozen=True)
class PartialListing:
    """One page of a prefix listing.

    ``next_marker`` is None once the listing is exhausted.
    """

    next_marker: Optional[str]
    files: Tuple[FileMetadata, ...] = ()
    common_prefixes: Tuple[FileMetadata, ...] = ()

    @property
    def exhausted(self):
        return self.next_marker is None


@dataclass
class RetryState:
    attempt: int = 1
    max_attempts: int = field(default=MAX_RETRY)

    @property
    def exhausted(self):
        return self.attempt >= self.max_attempts


def to_logical_key(wire_key):
    """Return ``wire_key`` with exactly one leading delimiter."""
    if wire_key.startswith(DELIMITER):
        return wire_key
    return DELIMITER + wire_key


def to_mtime(last_modified):
    """Convert a botocore ``LastModified`` datetime to epoch milliseconds."""
    if last_modified is None:
        return 0
    return int(last_modified.timestamp() * 1000)
