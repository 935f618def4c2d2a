"""
Batch emitter.

Coordinates chunking, session grouping and the transport to ship a whole
collection of records, reporting delivery per record.
"""

from typing import Any, List, Optional

import structlog

from shipper.config import ShipperConfig, get_config
from shipper.core.chunk import ResultMap, Session
from shipper.engine.chunker import KeyedRecords, plan_sessions
from shipper.serializer import Serializer
from shipper.transport.http import FireForgetHttpTransport
from shipper.transport.interface import Timestamp, Transport

logger = structlog.get_logger(__name__)


class Emitter:
    """
    Ships tagged records to the collector.

    Records are split into chunks of ``batch_size`` (one request each) and
    chunks are grouped ``batches_per_connection`` at a time onto a single
    connection. The first failed request stops the whole operation: every
    record not yet confirmed as written is reported as failed.

    Usage:
        ```python
        emitter = Emitter()
        ok = emitter.emit("app.access", {"path": "/", "status": 200})
        results = emitter.emit_batch("app.access", records)
        failed = [key for key, ok in results.items() if not ok]
        ```
    """

    def __init__(
        self,
        config: Optional[ShipperConfig] = None,
        transport: Optional[Transport] = None,
        serializer: Optional[Serializer] = None,
        batch_size: Optional[int] = None,
        batches_per_connection: Optional[int] = None,
    ):
        """
        Initialize the emitter.

        Args:
            config: Shipper configuration. Uses global config if not provided.
            transport: Custom transport (HTTP over TCP if not provided)
            serializer: Serializer for the default transport
            batch_size: Override for the maximum records per request
            batches_per_connection: Override for the maximum requests per connection

        Raises:
            ValueError: If a batch setting is below 1
        """
        self.config = config or get_config()
        self.transport = transport or FireForgetHttpTransport(
            config=self.config,
            serializer=serializer,
        )
        self.batch_size = batch_size if batch_size is not None else self.config.batch_size
        self.batches_per_connection = (
            batches_per_connection
            if batches_per_connection is not None
            else self.config.batches_per_connection
        )

        if self.batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {self.batch_size}")
        if self.batches_per_connection < 1:
            raise ValueError(
                f"batches_per_connection must be at least 1, got {self.batches_per_connection}"
            )

    def emit(self, tag: str, record: Any, timestamp: Optional[Timestamp] = None) -> bool:
        """
        Emit a single record.

        Returns:
            True if the record was written to the collector
        """
        results = self.emit_batch(tag, [record], timestamp)
        return results[0]

    def emit_batch(
        self,
        tag: str,
        records: KeyedRecords,
        timestamp: Optional[Timestamp] = None,
    ) -> ResultMap:
        """
        Emit multiple records.

        Args:
            tag: Destination tag at the collector
            records: Mapping of key -> record, or a sequence of records
            timestamp: Optional time in seconds attached to each request

        Returns:
            Mapping of every input key to True (written) or False

        Raises:
            ValueError: If the tag is empty
            ConnectError: If a connection to the collector cannot be opened
        """
        if not tag:
            raise ValueError("tag must be a non-empty string")

        sessions = plan_sessions(records, self.batch_size, self.batches_per_connection)
        results: ResultMap = {}

        for index, session in enumerate(sessions):
            outcomes = self.transport.send(tag, session.chunks, timestamp)

            failed = False
            for position, chunk in enumerate(session.chunks):
                delivered = bool(outcomes[position]) if position < len(outcomes) else False
                for key in chunk.keys:
                    results[key] = delivered
                failed = failed or not delivered

            if failed:
                skipped = self._mark_failed(results, sessions[index + 1:])
                logger.warning(
                    "emit_batch_aborted",
                    tag=tag,
                    session=index,
                    sessions=len(sessions),
                    failed=sum(1 for ok in results.values() if not ok),
                    skipped=skipped,
                )
                return results

        logger.debug("emit_batch_completed", tag=tag, records=len(results), sessions=len(sessions))
        return results

    @staticmethod
    def _mark_failed(results: ResultMap, sessions: List[Session]) -> int:
        """Mark every record of the given sessions as failed."""
        count = 0
        for session in sessions:
            for key in session.get_keys():
                results[key] = False
                count += 1
        return count
