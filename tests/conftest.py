"""
Pytest configuration and shared fixtures for the test suite.
"""

from typing import Any, Dict, List, Optional, Sequence

import pytest

from shipper.config import ShipperConfig
from shipper.core.chunk import Chunk
from shipper.serializer import Serializer
from shipper.transport.interface import Connection, ConnectError, Transport


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> ShipperConfig:
    """Create a test configuration."""
    return ShipperConfig(
        host="collector.test",
        port=9880,
        connection_timeout=1.0,
        batch_size=2,
        batches_per_connection=2,
        write_retries=3,
        write_retry_delay=0,
        rpc_endpoint="http://collector.test:24444",
        log_level="DEBUG",
    )


# ============================================================================
# Test Data Generators
# ============================================================================

def generate_records(count: int, start: int = 0) -> Dict[int, dict]:
    """Generate keyed records shaped like structured log lines."""
    return {
        i: {"a": i % 4 + 1, "b": 2 if i < 4 else 4}
        for i in range(start, start + count)
    }


@pytest.fixture
def sample_records() -> Dict[int, dict]:
    """Eight keyed records: two sessions of two chunks with the test config."""
    return generate_records(8)


# ============================================================================
# Fake Connection
# ============================================================================

class FakeConnection(Connection):
    """
    In-memory connection.

    ``write_plan`` caps each successive write: an int limits the bytes
    accepted (0 simulates a failed write), None accepts everything. Once
    the plan is used up every write is accepted in full.
    """

    def __init__(
        self,
        write_plan: Optional[Sequence[Optional[int]]] = None,
        responses: Sequence[bytes] = (b"HTTP/1.1 200 OK\r\nContent-Length: 0\r\n\r\n",),
        read_error: Optional[Exception] = None,
    ):
        self.write_plan = list(write_plan or [])
        self.responses = list(responses)
        self.read_error = read_error
        self.written = bytearray()
        self.write_calls = 0
        self.read_sizes: List[int] = []
        self.write_shutdown = False
        self.closed = False

    def write(self, data: bytes) -> int:
        self.write_calls += 1
        limit = self.write_plan.pop(0) if self.write_plan else None
        count = len(data) if limit is None else min(limit, len(data))
        self.written += data[:count]
        return count

    def read(self, size: int) -> bytes:
        self.read_sizes.append(size)
        if self.read_error is not None:
            raise self.read_error
        if self.responses:
            return self.responses.pop(0)
        return b""

    def shutdown_write(self) -> None:
        self.write_shutdown = True

    def close(self) -> None:
        self.closed = True

    @property
    def requests(self) -> List[bytes]:
        """Split the written bytes back into individual requests."""
        data = bytes(self.written)
        requests = []
        while data:
            head, _, rest = data.partition(b"\r\n\r\n")
            length = 0
            for line in head.split(b"\r\n"):
                if line.lower().startswith(b"content-length:"):
                    length = int(line.split(b":", 1)[1])
            requests.append(head + b"\r\n\r\n" + rest[:length])
            data = rest[length:]
        return requests


class ConnectionFactory:
    """Hands out prepared fake connections and records connect calls."""

    def __init__(self, *connections: FakeConnection, error: Optional[Exception] = None):
        self.connections = list(connections)
        self.error = error
        self.calls: List[tuple] = []
        self.opened: List[FakeConnection] = []

    def __call__(self, host: str, port: int, timeout: float) -> FakeConnection:
        self.calls.append((host, port, timeout))
        if self.error is not None:
            raise self.error
        connection = self.connections.pop(0) if self.connections else FakeConnection()
        self.opened.append(connection)
        return connection


@pytest.fixture
def connection_factory() -> ConnectionFactory:
    """Create a factory handing out well-behaved fake connections."""
    return ConnectionFactory()


@pytest.fixture
def refused_factory() -> ConnectionFactory:
    """Create a factory whose connections are always refused."""
    return ConnectionFactory(
        error=ConnectError("Unable to open a connection to collector.test:9880", "collector.test", 9880, 111)
    )


# ============================================================================
# Recording Transport
# ============================================================================

class RecordingTransport(Transport):
    """Transport that records every session and replays scripted results."""

    def __init__(self, responses: Optional[List[Any]] = None):
        self.responses = list(responses or [])
        self.calls: List[Dict[str, Any]] = []
        self._serializer = Serializer()

    def send(self, tag: str, chunks: Sequence[Chunk], timestamp=None) -> List[bool]:
        self.calls.append({
            "tag": tag,
            "records": [self._serializer.serialize_records(c.records).decode() for c in chunks],
            "keys": [list(c.keys) for c in chunks],
            "timestamp": timestamp,
        })
        response = self.responses.pop(0) if self.responses else [True] * len(chunks)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def recording_transport() -> RecordingTransport:
    """Create a recording transport that accepts everything."""
    return RecordingTransport()
