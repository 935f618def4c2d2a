"""
Logging integration.

FluentHandler buffers standard library log records and ships them to the
collector as one batch per flush.
"""

import logging
import traceback
from logging.handlers import BufferingHandler
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from shipper.core.emitter import Emitter

PACKAGE_LOGGER = "shipper"

Prefix = Callable[[logging.LogRecord], Dict[str, Any]]
Suffix = Union[Dict[str, Any], Callable[[logging.LogRecord, Dict[str, Any]], Dict[str, Any]]]


class ExportError(Exception):
    """Raised when buffered log records could not be shipped."""
    pass


def merge(base: Dict[str, Any], extra: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``extra`` into a copy of ``base``."""
    result = dict(base)
    for key, value in extra.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge(result[key], value)
        else:
            result[key] = value
    return result


class FluentHandler(BufferingHandler):
    """
    Buffers log records and emits them to the collector under a single tag.

    Use standard logging filters (``handler.addFilter``) to skip records.

    Usage:
        ```python
        handler = FluentHandler("app.log", capacity=200, hide_keys=["password"])
        logging.getLogger().addHandler(handler)
        ```
    """

    def __init__(
        self,
        tag: str,
        emitter: Optional[Emitter] = None,
        capacity: int = 100,
        merge_dict_message: bool = False,
        format_exception_as_dict: bool = False,
        prefix: Optional[Prefix] = None,
        suffix: Optional[Suffix] = None,
        hide_keys: Iterable[str] = (),
    ):
        """
        Initialize the handler.

        Args:
            tag: Tag attached to every shipped record
            emitter: Emitter used to ship records (built from global config if not provided)
            capacity: Number of buffered records that triggers a flush
            merge_dict_message: Merge dict messages into the record instead of nesting them
            format_exception_as_dict: Structure exceptions instead of using the traceback text
            prefix: Callable returning fields to start each record with
            suffix: Dict merged into each record, or callable(record, data) -> data
            hide_keys: Keys removed from each record before shipping
        """
        super().__init__(capacity)
        self.tag = tag
        self.emitter = emitter or Emitter()
        self.merge_dict_message = merge_dict_message
        self.format_exception_as_dict = format_exception_as_dict
        self.prefix = prefix
        self.suffix = suffix
        self.hide_keys = set(hide_keys)

    def emit(self, record: logging.LogRecord) -> None:
        # Records from this package would otherwise be shipped while shipping
        if record.name == PACKAGE_LOGGER or record.name.startswith(PACKAGE_LOGGER + "."):
            return
        super().emit(record)

    def flush(self) -> None:
        """Ship every buffered record."""
        self.acquire()
        try:
            records, self.buffer = self.buffer, []
        finally:
            self.release()

        if not records:
            return

        try:
            self.export(records)
        except ExportError:
            self.handleError(records[-1])

    def export(self, records: List[logging.LogRecord]) -> None:
        """
        Format and emit records as one batch.

        Raises:
            ExportError: If any record could not be shipped
        """
        try:
            messages = [self.format_record(record) for record in records]
            results = self.emitter.emit_batch(self.tag, messages)
        except Exception as e:
            raise ExportError(
                f"Caught exception while attempting to export log messages: {e}"
            ) from e

        failures = sum(1 for ok in results.values() if not ok)
        if failures:
            raise ExportError(
                f"Unable to emit batch of log messages: {failures} failed "
                f"message(s) out of {len(messages)} total."
            )

    def format_record(self, record: logging.LogRecord) -> Dict[str, Any]:
        """Convert a log record into the dict shipped to the collector."""
        data = dict(self.prefix(record)) if self.prefix else {}
        data.update(
            timestamp=record.created,
            level=record.levelname.lower(),
            category=record.name,
        )

        if isinstance(record.msg, dict) and self.merge_dict_message:
            data = merge(data, record.msg)
        elif isinstance(record.msg, dict):
            data["message"] = record.msg
        else:
            data["message"] = record.getMessage()

        if record.exc_info and record.exc_info[1] is not None:
            data["exception"] = self.format_exception(record)

        if callable(self.suffix):
            data = self.suffix(record, data)
        elif self.suffix:
            data = merge(data, self.suffix)

        for key in self.hide_keys:
            data.pop(key, None)

        return data

    def format_exception(self, record: logging.LogRecord) -> Union[str, Dict[str, Any]]:
        """Render the record's exception as text or as a dict."""
        exc_type, exc, tb = record.exc_info
        if not self.format_exception_as_dict:
            return "".join(traceback.format_exception(exc_type, exc, tb)).rstrip()

        frames = traceback.extract_tb(tb)
        last = frames[-1] if frames else None
        return {
            "class": f"{exc_type.__module__}.{exc_type.__qualname__}",
            "message": str(exc),
            "file": last.filename if last else None,
            "line": last.lineno if last else None,
            "trace": traceback.format_list(frames),
        }
