"""Utilities for ingesting extracted vendor data."""

from .stream import (
    ExtractionStreamConsumer,
    MessageType,
    StreamMessage,
    StreamOutcome,
    decode_message,
    iter_lines_from_chunks,
    iter_sse_payloads,
    open_extraction_stream,
)

__all__ = [
    "ExtractionStreamConsumer",
    "MessageType",
    "StreamMessage",
    "StreamOutcome",
    "decode_message",
    "iter_lines_from_chunks",
    "iter_sse_payloads",
    "open_extraction_stream",
]
