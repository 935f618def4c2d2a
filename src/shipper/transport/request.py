"""
Request construction for the collector's HTTP input.
"""

from typing import Optional

from shipper.transport.interface import Timestamp

PROTOCOL_VERSION = "HTTP/1.1"
KEEP_ALIVE = "Keep-Alive"
CLOSE = "Close"


def request_path(tag: str, timestamp: Optional[Timestamp] = None) -> str:
    """Build the request target, e.g. ``/app.log?time=1571234567``."""
    path = "/" + tag
    if timestamp is not None:
        path += f"?time={timestamp}"
    return path


def build_request(
    tag: str,
    host: str,
    content_type: str,
    payload: bytes,
    last: bool,
    timestamp: Optional[Timestamp] = None,
) -> bytes:
    """
    Build a complete POST request.

    Args:
        tag: Destination tag
        host: Value of the Host header
        content_type: Content type of the payload
        payload: Serialized records
        last: Whether this is the final request on the connection
        timestamp: Optional time in seconds

    Returns:
        Request head followed by the payload
    """
    lines = [
        f"POST {request_path(tag, timestamp)} {PROTOCOL_VERSION}",
        f"Host: {host}",
        f"Content-Type: {content_type}",
        f"Content-Length: {len(payload)}",
        f"Connection: {CLOSE if last else KEEP_ALIVE}",
        "",
        "",
    ]
    return "\r\n".join(lines).encode("utf-8") + payload
