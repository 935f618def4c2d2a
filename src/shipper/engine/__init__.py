"""
Batching engine.

Splits records into request-sized chunks and groups chunks into
connection-sized sessions.
"""

from shipper.engine.chunker import chunk_records, group_sessions, plan_sessions

__all__ = [
    "chunk_records",
    "group_sessions",
    "plan_sessions",
]
