"""
Abstract interfaces for the wire transport.

Defines the capability the emitter relies on (sending chunks) and the
byte-level connection a transport writes to.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Union

from shipper.core.chunk import Chunk

Timestamp = Union[int, float]


class Connection(ABC):
    """
    A single open, bidirectional byte stream to the collector.
    """

    @abstractmethod
    def write(self, data: bytes) -> int:
        """
        Write as much of ``data`` as possible.

        Returns:
            Number of bytes written; 0 when nothing could be written
        """
        pass

    @abstractmethod
    def read(self, size: int) -> bytes:
        """
        Read up to ``size`` bytes.

        Returns:
            The bytes read; an empty value signals end of stream

        Raises:
            OSError: If the read fails or times out
        """
        pass

    @abstractmethod
    def shutdown_write(self) -> None:
        """Signal that no more data will be written."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the connection."""
        pass


class Transport(ABC):
    """
    Sends chunks of records to the collector.

    A transport owns connection handling and serialization; the emitter
    only decides which chunks go together.
    """

    @abstractmethod
    def send(
        self,
        tag: str,
        chunks: Sequence[Chunk],
        timestamp: Optional[Timestamp] = None,
    ) -> List[bool]:
        """
        Send chunks over a single connection.

        Args:
            tag: Destination tag at the collector
            chunks: Chunks to send, in order
            timestamp: Optional time in seconds attached to each request

        Returns:
            One boolean per chunk, True if the request was fully written

        Raises:
            ConnectError: If the connection cannot be established
        """
        pass


class ConnectError(Exception):
    """Raised when a connection to the collector cannot be opened."""

    def __init__(
        self,
        message: str,
        host: Optional[str] = None,
        port: Optional[int] = None,
        errno: Optional[int] = None,
    ):
        super().__init__(message)
        self.host = host
        self.port = port
        self.errno = errno
