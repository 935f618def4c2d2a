"""
Fire-and-forget HTTP transport.

Posts each chunk to the collector's HTTP input over a raw socket without
waiting on individual responses. The response stream is drained only once
all requests of a session have been written.
"""

import socket
import time
from typing import Callable, List, Optional, Sequence, Tuple

import structlog

from shipper.config import ShipperConfig, get_config
from shipper.core.chunk import Chunk
from shipper.serializer import SerializationError, Serializer
from shipper.transport.interface import (
    Connection,
    ConnectError,
    Timestamp,
    Transport,
)
from shipper.transport.request import build_request
from shipper.transport.writer import RetryingWriter

logger = structlog.get_logger(__name__)

ConnectionFactory = Callable[[str, int, float], Connection]


class SocketConnection(Connection):
    """
    TCP socket connection.

    Failed writes report zero bytes instead of raising so the caller's
    retry policy decides when to give up.
    """

    def __init__(self, sock: socket.socket):
        self._sock = sock

    @classmethod
    def open(cls, host: str, port: int, timeout: float) -> "SocketConnection":
        """
        Open a TCP connection.

        Raises:
            ConnectError: If the connection cannot be established
        """
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as e:
            raise ConnectError(
                f"Unable to open a connection to {host}:{port}, {e}",
                host=host,
                port=port,
                errno=e.errno,
            ) from e
        return cls(sock)

    def write(self, data: bytes) -> int:
        try:
            return self._sock.send(data)
        except OSError as e:
            logger.debug("socket_write_failed", error=str(e))
            return 0

    def read(self, size: int) -> bytes:
        return self._sock.recv(size)

    def shutdown_write(self) -> None:
        try:
            self._sock.shutdown(socket.SHUT_WR)
        except OSError as e:
            logger.debug("socket_shutdown_failed", error=str(e))

    def close(self) -> None:
        self._sock.close()


class FireForgetHttpTransport(Transport):
    """
    Sends chunks as HTTP POST requests, one connection per session.

    Each chunk becomes one request; all but the last request of a session
    ask the collector to keep the connection alive. A request only counts
    as delivered when every byte of it was written.
    """

    def __init__(
        self,
        config: Optional[ShipperConfig] = None,
        serializer: Optional[Serializer] = None,
        connection_factory: Optional[ConnectionFactory] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the transport.

        Args:
            config: Shipper configuration. Uses global config if not provided.
            serializer: Record serializer (JSON by default)
            connection_factory: Opens connections; defaults to TCP sockets
            sleep: Sleep function used between write retries
        """
        self.config = config or get_config()
        self.host = self.config.host
        self.port = self.config.port
        self.serializer = serializer or Serializer(content_type=self.config.content_type)
        self._connection_factory = connection_factory or SocketConnection.open
        self._sleep = sleep

    def send(
        self,
        tag: str,
        chunks: Sequence[Chunk],
        timestamp: Optional[Timestamp] = None,
    ) -> List[bool]:
        """Open a connection, post every chunk, drain responses and close."""
        if not chunks:
            return []

        connection = self._connection_factory(
            self.host, self.port, self.config.connection_timeout
        )
        logger.debug(
            "session_opened",
            address=self.config.address,
            tag=tag,
            chunks=len(chunks),
        )

        writer = RetryingWriter(
            connection.write,
            retries=self.config.write_retries,
            delay=self.config.write_retry_delay,
            sleep=self._sleep,
        )

        results: List[bool] = []
        failed = False
        sent_requests = 0

        try:
            for i, chunk in enumerate(chunks):
                if failed:
                    results.append(False)
                    continue

                payload, serialized = self._serialize(chunk)
                request = build_request(
                    tag=tag,
                    host=self.host,
                    content_type=self.serializer.content_type,
                    payload=payload,
                    last=i == len(chunks) - 1,
                    timestamp=timestamp,
                )

                outcome = writer.write(request)
                if outcome.written:
                    sent_requests += 1

                delivered = serialized and outcome.complete
                results.append(delivered)

                if not delivered:
                    failed = True
                    logger.warning(
                        "chunk_write_failed",
                        tag=tag,
                        chunk=i,
                        records=chunk.size,
                        written=outcome.written,
                        total=outcome.total,
                        serialized=serialized,
                    )

            if failed:
                connection.shutdown_write()

            self._drain(connection, sent_requests)
        finally:
            connection.close()

        logger.debug(
            "session_closed",
            address=self.config.address,
            delivered=sum(results),
            failed=len(results) - sum(results),
        )
        return results

    def _serialize(self, chunk: Chunk) -> Tuple[bytes, bool]:
        """Serialize a chunk, falling back to an empty payload on failure."""
        try:
            return self.serializer.serialize_records(chunk.records), True
        except SerializationError as e:
            logger.error("chunk_serialization_failed", keys=chunk.keys, error=str(e))
            return b"", False

    def read_size(self, sent_requests: int) -> int:
        """Estimate a read buffer size for the responses of a session."""
        estimate = max(1, sent_requests) * self.config.response_size_estimate
        block = self.config.drain_block_size
        return -(-estimate // block) * block

    def _drain(self, connection: Connection, sent_requests: int) -> int:
        """
        Read and discard responses until the collector closes the stream.

        The collector handles requests on a connection in sequence and may
        stop processing if responses are left unread.
        """
        size = self.read_size(sent_requests)
        received = 0
        try:
            while True:
                data = connection.read(size)
                if not data:
                    break
                received += len(data)
        except OSError as e:
            logger.warning("drain_failed", error=str(e), received=received)
            return received

        logger.debug("session_drained", received=received)
        return received
