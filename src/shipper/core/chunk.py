"""
Chunk and Session models.

A chunk is one request's worth of records; a session is one connection's
worth of chunks. Both live only for the duration of a single emit call.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List

ResultMap = Dict[Hashable, bool]


@dataclass
class Chunk:
    """
    Consecutive records sent together in a single request.

    Attributes:
        keys: Original keys of the records, in input order
        records: The records themselves, aligned with keys
    """

    keys: List[Hashable] = field(default_factory=list)
    records: List[Any] = field(default_factory=list)

    def add(self, key: Hashable, record: Any) -> None:
        """Append a keyed record to this chunk."""
        self.keys.append(key)
        self.records.append(record)

    @property
    def size(self) -> int:
        """Get the number of records in this chunk."""
        return len(self.keys)

    @property
    def is_empty(self) -> bool:
        return not self.keys

    def __repr__(self) -> str:
        return f"Chunk(size={self.size}, keys={self.keys!r})"


@dataclass
class Session:
    """
    Chunks sent over a single connection lifetime.

    Once one chunk in a session fails to write, the remaining chunks
    in that session are not attempted.
    """

    chunks: List[Chunk] = field(default_factory=list)

    @property
    def size(self) -> int:
        """Get the number of chunks in this session."""
        return len(self.chunks)

    @property
    def record_count(self) -> int:
        return sum(chunk.size for chunk in self.chunks)

    def get_keys(self) -> List[Hashable]:
        """Get all record keys in this session, in order."""
        return [key for chunk in self.chunks for key in chunk.keys]

    def __repr__(self) -> str:
        return f"Session(chunks={self.size}, records={self.record_count})"
