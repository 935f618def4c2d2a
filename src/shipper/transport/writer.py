"""
Write-with-retry state machine.

Keeps writing the unwritten suffix of a byte string until it is fully
written, or until a number of consecutive zero-byte writes exhausts the
retry budget. Any forward progress resets the budget.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


class WriteState(str, Enum):
    """State of a retrying write."""
    WRITING = "writing"           # Ready to attempt a write
    RETRYING = "retrying"         # Last attempt wrote nothing, budget remains
    EXHAUSTED = "exhausted"       # Too many consecutive zero-byte writes
    DONE = "done"                 # Every byte written


@dataclass
class WriteResult:
    """Outcome of a retrying write."""

    written: int
    total: int
    state: WriteState
    attempts: int = 0

    @property
    def complete(self) -> bool:
        """Check if every byte was written."""
        return self.state == WriteState.DONE and self.written == self.total


class RetryingWriter:
    """
    Writes a byte string through a write function with consecutive-failure retry.

    Usage:
        ```python
        writer = RetryingWriter(connection.write, retries=3, delay=0.001)
        result = writer.write(request_bytes)
        if not result.complete:
            ...
        ```
    """

    def __init__(
        self,
        write: Callable[[bytes], Optional[int]],
        retries: int = 3,
        delay: float = 0.001,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the writer.

        Args:
            write: Function writing a byte string, returning the bytes written
            retries: Consecutive zero-byte writes tolerated before giving up
            delay: Seconds to sleep before each retry
            sleep: Sleep function (injectable for tests)
        """
        if retries < 1:
            raise ValueError(f"retries must be at least 1, got {retries}")

        self._write = write
        self.retries = retries
        self.delay = delay
        self._sleep = sleep

    def write(self, data: bytes) -> WriteResult:
        """
        Write ``data`` completely, retrying zero-byte writes.

        Returns:
            WriteResult with the number of bytes actually written
        """
        total = len(data)
        view = memoryview(data)
        written = 0
        attempts = 0
        remaining = self.retries
        state = WriteState.WRITING if total else WriteState.DONE

        while state in (WriteState.WRITING, WriteState.RETRYING):
            if state == WriteState.RETRYING:
                self._sleep(self.delay)

            attempts += 1
            count = self._write(view[written:].tobytes()) or 0

            if count > 0:
                written = min(total, written + count)
                remaining = self.retries
                state = WriteState.DONE if written >= total else WriteState.WRITING
                continue

            remaining -= 1
            state = WriteState.RETRYING if remaining > 0 else WriteState.EXHAUSTED

        if state == WriteState.EXHAUSTED:
            logger.warning(
                "write_retries_exhausted",
                written=written,
                total=total,
                attempts=attempts,
            )

        return WriteResult(written=written, total=total, state=state, attempts=attempts)
