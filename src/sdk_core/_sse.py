"""
Server-Sent Events (SSE) decoding.

This module turns a sequence of raw byte chunks into StreamEvent objects:
- `event:` names the event type (defaults to "message")
- `data:` lines carry the payload; repeated lines are joined with "\\n"
- `id:` and `retry:` are passed through on the event
- lines starting with `:` are comments

Chunk boundaries may fall anywhere, including inside a multi-byte UTF-8
character or inside a field. Only complete frames (terminated by a blank
line) ever produce events.
"""

from __future__ import annotations

import codecs
import json
from collections import deque
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable, Iterator
from typing import Any

from sdk_core._errors import StreamFormatError
from sdk_core._logging import get_logger
from sdk_core._types import DEFAULT_EVENT_TYPE, StreamEvent

logger = get_logger(__name__)


class EventStreamDecoder:
    """
    Incremental SSE decoder.

    Push bytes in with feed() as they arrive and call finish() once the
    source is exhausted. The decoder keeps a strict UTF-8 decoder and the
    not-yet-terminated frame text between calls.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")("strict")
        self._buffer = ""
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether the decoder has finished or failed."""
        return self._closed

    def feed(self, chunk: bytes) -> list[StreamEvent]:
        """
        Feed a chunk of bytes and return any events completed by it.

        Args:
            chunk: Raw bytes from the body

        Returns:
            List of complete events, in arrival order

        Raises:
            StreamFormatError: If the bytes are not valid UTF-8, or the
                decoder was already finished
        """
        if self._closed:
            raise StreamFormatError("Event stream decoder is already finished")
        return self._push_text(self._decode(chunk, final=False))

    def finish(self) -> list[StreamEvent]:
        """
        Finish decoding at end of input.

        A trailing frame without its terminating blank line is incomplete
        and is discarded.

        Returns:
            Any events completed by the final decoder flush
        """
        if self._closed:
            return []
        events = self._push_text(self._decode(b"", final=True))
        if self._buffer.strip():
            logger.debug(
                "stream_trailing_frame_discarded",
                component="event_stream",
                pending_chars=len(self._buffer),
            )
        self._reset()
        return events

    def _decode(self, chunk: bytes, *, final: bool) -> str:
        try:
            return self._decoder.decode(chunk, final=final)
        except UnicodeDecodeError as e:
            # Events already returned stay delivered; the frame in progress
            # and everything after it are dropped.
            self._reset()
            raise StreamFormatError(f"Invalid UTF-8 in event stream: {e}") from e

    def _reset(self) -> None:
        self._buffer = ""
        self._closed = True

    def _push_text(self, text: str) -> list[StreamEvent]:
        if not text:
            return []

        # A "\r" at the end of the buffer stays until its "\n" arrives
        self._buffer = (self._buffer + text).replace("\r\n", "\n")

        events: list[StreamEvent] = []
        while "\n\n" in self._buffer:
            frame, self._buffer = self._buffer.split("\n\n", 1)
            event = parse_frame(frame)
            if event is not None:
                events.append(event)
        return events


def parse_frame(frame: str) -> StreamEvent | None:
    """
    Parse one blank-line-delimited frame into an event.

    Args:
        frame: Frame text with "\\n" line endings, without the terminator

    Returns:
        The event, or None if the frame carried no recognized field
    """
    event_type: str | None = None
    event_id: str | None = None
    retry: int | None = None
    data_lines: list[str] = []
    recognized = False

    for line in frame.split("\n"):
        if not line or line.startswith(":"):
            continue

        field, _, value = line.partition(":")
        # At most one space after the colon belongs to the syntax
        if value.startswith(" "):
            value = value[1:]

        if field == "event":
            event_type = value
            recognized = True
        elif field == "data":
            data_lines.append(value)
            recognized = True
        elif field == "id":
            event_id = value
            recognized = True
        elif field == "retry":
            if value.isascii() and value.isdigit():
                retry = int(value)
                recognized = True
        # Ignore unknown fields

    if not recognized:
        return None

    return StreamEvent(
        data=_decode_data(data_lines) if data_lines else None,
        event=event_type or DEFAULT_EVENT_TYPE,
        id=event_id,
        retry=retry,
    )


def _decode_data(lines: list[str]) -> Any:
    """Join data lines and parse them as JSON, keeping the raw string on failure."""
    raw = "\n".join(lines)
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def iter_events(chunks: Iterable[bytes]) -> Iterator[StreamEvent]:
    """
    Decode SSE events from a synchronous byte source.

    Args:
        chunks: Iterable yielding bytes

    Yields:
        Decoded events
    """
    decoder = EventStreamDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)
    yield from decoder.finish()


class EventStream:
    """
    Lazy, single-pass stream of events over an asynchronous byte source.

    Each ``__anext__`` pulls chunks from the source only until at least one
    event is complete. When the source ends, fails, or the stream is closed,
    the source is released and the stream stays finished.

    Usage:

        async with EventStream(response.aiter_bytes()) as events:
            async for event in events:
                handle(event)
    """

    def __init__(
        self,
        source: AsyncIterator[bytes],
        *,
        validate: Callable[[Any], Any] | None = None,
        on_close: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        """
        Args:
            source: Async iterator yielding body chunks
            validate: Called with each event's data before it is returned;
                an exception from it aborts the stream
            on_close: Awaited once when the stream is released
        """
        self._source = source
        self._validate = validate
        self._on_close = on_close
        self._decoder = EventStreamDecoder()
        self._pending: deque[StreamEvent] = deque()
        self._finished = False

    @property
    def finished(self) -> bool:
        """Whether the stream has ended and released its source."""
        return self._finished

    def __aiter__(self) -> EventStream:
        return self

    async def __anext__(self) -> StreamEvent:
        try:
            while not self._pending:
                if self._finished:
                    raise StopAsyncIteration
                try:
                    chunk = await self._source.__anext__()
                except StopAsyncIteration:
                    events = self._decoder.finish()
                    await self._release()
                    self._pending.extend(events)
                    continue
                self._pending.extend(self._decoder.feed(chunk))

            event = self._pending.popleft()
            if self._validate is not None:
                self._validate(event.data)
            return event
        except StopAsyncIteration:
            raise
        except BaseException:
            await self.aclose()
            raise

    async def aclose(self) -> None:
        """Release the underlying source and drop undelivered events."""
        self._pending.clear()
        await self._release()

    async def _release(self) -> None:
        if self._finished:
            return
        self._finished = True

        close_source = getattr(self._source, "aclose", None)
        try:
            if close_source is not None:
                await close_source()
        finally:
            if self._on_close is not None:
                await self._on_close()

    async def __aenter__(self) -> EventStream:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
