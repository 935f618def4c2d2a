"""
Record serialization.

The transport only needs a way to turn one record, or a list of records,
into bytes together with the matching content type.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Sequence, Union

SerializeFunc = Callable[[Any], Union[bytes, str]]


class SerializationError(Exception):
    """Raised when a record cannot be turned into bytes."""
    pass


def json_serialize(value: Any) -> bytes:
    """Compact JSON encoding, e.g. ``{"a":1,"b":2}``."""
    return json.dumps(
        value,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    ).encode("utf-8")


@dataclass(frozen=True)
class Serializer:
    """
    Pairs a serialize function with the content type it produces.

    Attributes:
        func: Callable returning bytes (or str, encoded as UTF-8)
        content_type: Value sent in the Content-Type header
    """

    func: SerializeFunc = json_serialize
    content_type: str = "application/json"

    def serialize(self, value: Any) -> bytes:
        """
        Serialize a value.

        Raises:
            SerializationError: If the function fails or returns a non-byte value
        """
        try:
            result = self.func(value)
        except Exception as e:
            raise SerializationError(f"Serializer failed: {e}") from e

        if isinstance(result, str):
            return result.encode("utf-8")
        if isinstance(result, (bytes, bytearray)):
            return bytes(result)
        raise SerializationError(
            f"Serializer returned {type(result).__name__}, expected bytes or str"
        )

    def serialize_records(self, records: Sequence[Any]) -> bytes:
        """
        Serialize the records of one request.

        A single record is sent bare; several are sent as an array.
        """
        if len(records) == 1:
            return self.serialize(records[0])
        return self.serialize(list(records))
