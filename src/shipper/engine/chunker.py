"""
Chunker and session grouper.

Splits an ordered collection of keyed records into size-bounded chunks,
then buckets those chunks into connection-scoped sessions.
"""

from collections.abc import Mapping
from typing import Any, Hashable, Iterable, List, Tuple, Union

import structlog

from shipper.core.chunk import Chunk, Session

logger = structlog.get_logger(__name__)

KeyedRecords = Union[Mapping, Iterable[Any]]


def iter_keyed(records: KeyedRecords) -> List[Tuple[Hashable, Any]]:
    """
    Normalize records into ``(key, record)`` pairs.

    Mappings keep their own keys; any other iterable is keyed by position.
    """
    if isinstance(records, Mapping):
        return list(records.items())
    if isinstance(records, (str, bytes)):
        raise TypeError("records must be a mapping or a sequence of records, not a string")
    return list(enumerate(records))


def chunk_records(records: KeyedRecords, batch_size: int) -> List[Chunk]:
    """
    Split records into consecutive chunks of at most ``batch_size``.

    Args:
        records: Mapping of key -> record, or a sequence of records
        batch_size: Maximum records per chunk

    Returns:
        Ordered list of chunks; empty when there are no records
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")

    chunks: List[Chunk] = []
    current = Chunk()
    for key, record in iter_keyed(records):
        current.add(key, record)
        if current.size >= batch_size:
            chunks.append(current)
            current = Chunk()

    if not current.is_empty:
        chunks.append(current)

    return chunks


def group_sessions(chunks: List[Chunk], batches_per_connection: int) -> List[Session]:
    """
    Bucket chunks into consecutive sessions of at most ``batches_per_connection``.

    Args:
        chunks: Ordered chunks from chunk_records
        batches_per_connection: Maximum chunks sent over one connection

    Returns:
        Ordered list of sessions
    """
    if batches_per_connection < 1:
        raise ValueError(
            f"batches_per_connection must be at least 1, got {batches_per_connection}"
        )

    return [
        Session(chunks=list(chunks[i:i + batches_per_connection]))
        for i in range(0, len(chunks), batches_per_connection)
    ]


def plan_sessions(
    records: KeyedRecords,
    batch_size: int,
    batches_per_connection: int,
) -> List[Session]:
    """Run the chunker then the grouper."""
    chunks = chunk_records(records, batch_size)
    sessions = group_sessions(chunks, batches_per_connection)

    logger.debug(
        "sessions_planned",
        chunks=len(chunks),
        sessions=len(sessions),
        batch_size=batch_size,
        batches_per_connection=batches_per_connection,
    )
    return sessions
