"""Consume the website extraction stream and feed partial updates onward.

The extraction service answers a POST with a ``text/event-stream`` body made
of ``data: <json>`` lines. Each JSON object carries a ``type``:

``status``
    progress text, logged only;
``section``
    a partial vendor document for one logical section, applied immediately;
``complete``
    the final combined partial, applied last and therefore winning over
    earlier sections for the same paths;
``error``
    a failed section (or a failed run), logged without stopping the stream.

Malformed frames are logged and skipped. Transport failures raise
:class:`~core.errors.ExtractionStreamError` and end the parse attempt.
"""

from __future__ import annotations

import codecs
import json
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError

import config
from core.errors import ExtractionStreamError, StreamDecodeError
from utils.logging_context import log_context

logger = logging.getLogger(__name__)

_DATA_PREFIX = "data:"
_RUN_SECTION = "stream"


class MessageType(StrEnum):
    STATUS = "status"
    SECTION = "section"
    COMPLETE = "complete"
    ERROR = "error"


class StreamMessage(BaseModel):
    """One decoded frame of the extraction stream."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: MessageType
    message: str | None = None
    section: str | None = None
    display_name: str | None = Field(default=None, alias="displayName")
    data: dict[str, Any] | None = None

    @property
    def label(self) -> str:
        return self.display_name or self.section or _RUN_SECTION


@dataclass
class StreamOutcome:
    """Bookkeeping for a consumed stream."""

    applied_sections: list[str] = field(default_factory=list)
    section_errors: dict[str, str] = field(default_factory=dict)
    status_messages: list[str] = field(default_factory=list)
    skipped_frames: int = 0
    completed: bool = False
    cancelled: bool = False


def _decode_line(line: str | bytes) -> str:
    if isinstance(line, bytes):
        return line.decode("utf-8", errors="replace")
    return line


def iter_lines_from_chunks(chunks: Iterable[str | bytes]) -> Iterator[str]:
    """Reassemble newline-terminated lines from arbitrarily split chunks.

    Multi-byte UTF-8 sequences may straddle chunk boundaries. A trailing
    line without a newline is yielded once the chunks run out.
    """

    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    for chunk in chunks:
        buffer += decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        *complete, buffer = buffer.split("\n")
        for line in complete:
            yield line.rstrip("\r")
    buffer += decoder.decode(b"", final=True)
    if buffer:
        yield buffer.rstrip("\r")


def iter_sse_payloads(lines: Iterable[str | bytes]) -> Iterator[str]:
    """Yield the payload of every ``data:`` line in ``lines``.

    Blank lines, comments and other SSE fields are ignored.
    """

    for raw_line in lines:
        line = _decode_line(raw_line).rstrip("\r\n")
        if not line.startswith(_DATA_PREFIX):
            continue
        payload = line[len(_DATA_PREFIX) :]
        if payload.startswith(" "):
            payload = payload[1:]
        if payload:
            yield payload


def decode_message(payload: str) -> StreamMessage:
    """Parse a single frame payload into a :class:`StreamMessage`.

    Raises:
        StreamDecodeError: If ``payload`` is not JSON or not a known message.
    """

    try:
        raw = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise StreamDecodeError(f"invalid JSON in stream frame: {exc.msg}", raw=payload) from exc
    if not isinstance(raw, Mapping):
        raise StreamDecodeError("stream frame is not a JSON object", raw=payload)
    try:
        return StreamMessage.model_validate(raw)
    except ValidationError as exc:
        raise StreamDecodeError(f"unsupported stream frame: {exc.error_count()} validation error(s)", raw=payload) from exc


class ExtractionStreamConsumer:
    """Dispatch decoded stream messages to ``apply_partial`` in arrival order.

    ``is_active`` is polled before every message; once it returns ``False``
    the consumer stops without delivering anything else, so a closed wizard
    never receives merges.
    """

    def __init__(
        self,
        apply_partial: Callable[[Mapping[str, Any]], object],
        *,
        is_active: Callable[[], bool] | None = None,
        on_status: Callable[[str], None] | None = None,
    ) -> None:
        self._apply_partial = apply_partial
        self._is_active = is_active or (lambda: True)
        self._on_status = on_status

    def consume(self, lines: Iterable[str | bytes]) -> StreamOutcome:
        """Read ``lines`` to the end (or until cancelled) and return the outcome."""

        outcome = StreamOutcome()
        for payload in iter_sse_payloads(lines):
            if not self._is_active():
                logger.info("Extraction stream cancelled; dropping remaining messages")
                outcome.cancelled = True
                break
            try:
                message = decode_message(payload)
            except StreamDecodeError as exc:
                logger.warning("Skipping malformed stream frame: %s", exc)
                outcome.skipped_frames += 1
                continue
            with log_context(stream_section=message.section or _RUN_SECTION):
                self._dispatch(message, outcome)
        if not outcome.cancelled and not outcome.completed:
            logger.info("Extraction stream ended without a complete message")
        return outcome

    def _dispatch(self, message: StreamMessage, outcome: StreamOutcome) -> None:
        if message.type is MessageType.STATUS:
            text = message.message or ""
            logger.info("Extraction status: %s", text)
            outcome.status_messages.append(text)
            if self._on_status is not None:
                self._on_status(text)
            return
        if message.type is MessageType.ERROR:
            text = message.message or "Extraction failed"
            logger.error("Extraction error in %s: %s", message.label, text)
            outcome.section_errors[message.section or _RUN_SECTION] = text
            return
        if message.data is None:
            logger.warning("Ignoring %s message without data", message.type.value)
            return
        self._apply_partial(message.data)
        if message.type is MessageType.COMPLETE:
            outcome.completed = True
            logger.info("Extraction complete")
        else:
            outcome.applied_sections.append(message.section or _RUN_SECTION)
            logger.info("Applied extracted section %s", message.label)


def open_extraction_stream(
    url: str,
    *,
    endpoint: str | None = None,
    timeout: float | None = None,
) -> Iterator[str]:
    """Start an extraction run for ``url`` and yield the raw stream lines.

    Args:
        url: Website the service should scrape.
        endpoint: Extraction endpoint; defaults to the configured one.
        timeout: Read timeout in seconds for the streaming response.

    Raises:
        ExtractionStreamError: If the request fails or the connection drops.
    """

    target = endpoint or config.get_extraction_stream_endpoint()
    try:
        response = requests.post(
            target,
            json={"url": url},
            headers={"Accept": "text/event-stream"},
            stream=True,
            timeout=timeout or config.EXTRACTION_STREAM_TIMEOUT,
        )
    except requests.RequestException as exc:  # pragma: no cover - network
        logger.warning("Failed to start extraction stream for %s: %s", url, exc)
        raise ExtractionStreamError("Failed to start parsing") from exc
    with response:
        if not response.ok:
            logger.warning("Extraction endpoint rejected %s (status %s)", url, response.status_code)
            raise ExtractionStreamError("Failed to start parsing")
        if response.encoding is None:
            response.encoding = "utf-8"
        try:
            for line in response.iter_lines(decode_unicode=True):
                if line is not None:
                    yield line
        except requests.RequestException as exc:
            logger.warning("Extraction stream for %s broke off: %s", url, exc)
            raise ExtractionStreamError() from exc


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
