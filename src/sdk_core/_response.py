"""
PendingResponse and BinaryResponse implementations.

A PendingResponse wraps one in-flight HTTP response and resolves it lazily,
exactly once, into the value the caller asked for.
"""

from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import AsyncIterator, Awaitable, Callable, Generator
from typing import Any, Generic, TypeVar

import httpx
import pydantic
from pydantic import TypeAdapter

from sdk_core._errors import StreamConsumedError, StreamFormatError, ValidationError
from sdk_core._sse import EventStream
from sdk_core._types import CONTENT_TYPE_HEADER, NO_BODY_STATUSES, StreamEvent
from sdk_core._util import (
    is_json_content_type,
    is_text_content_type,
    maybe_await,
    normalize_content_type,
)

T = TypeVar("T")
U = TypeVar("U")

SchemaLike = type[Any] | TypeAdapter[Any]


class BinaryResponse:
    """
    A response whose body is neither JSON nor text.

    Nothing is read from the body until one of the accessors is awaited.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def response(self) -> httpx.Response:
        """The underlying httpx response."""
        return self._response

    @property
    def content_type(self) -> str | None:
        """The declared media type, without parameters (None if absent)."""
        return normalize_content_type(self._response.headers.get(CONTENT_TYPE_HEADER)) or None

    async def read(self) -> bytes:
        """Read the whole body as bytes."""
        return await self._response.aread()

    async def text(self) -> str:
        """Read the whole body as UTF-8 text."""
        return (await self.read()).decode("utf-8", errors="replace")

    async def aclose(self) -> None:
        """Release the body without reading it."""
        await self._response.aclose()


class PendingResponse(Generic[T]):
    """
    Lazily interpreted HTTP response.

    Awaiting resolves to, depending on the options:
    - want_raw: the httpx.Response itself, body untouched
    - want_stream: an EventStream over the body, whatever its content type
    - otherwise, by content type: parsed JSON (validated against ``schema``
      when given), text for text/*, or a BinaryResponse

    The resolution is computed once and cached, so awaiting again, or
    combining with map()/recover()/on_complete(), never touches the body
    twice. An event stream is a single pass.

    Usage:

        user = await client.make_request(config, schema=User)

        async for event in client.make_request(config, want_stream=True):
            handle(event)
    """

    def __init__(
        self,
        response: Awaitable[httpx.Response],
        *,
        want_raw: bool = False,
        want_stream: bool = False,
        schema: SchemaLike | None = None,
    ) -> None:
        self._source = response
        self._want_raw = want_raw
        self._want_stream = want_stream
        self._adapter: TypeAdapter[Any] | None = None
        if schema is not None:
            self._adapter = (
                schema if isinstance(schema, TypeAdapter) else TypeAdapter(schema)
            )

        self._response_task: asyncio.Future[httpx.Response] | None = None
        self._resolution: asyncio.Future[Any] | None = None
        self._stream: EventStream | None = None

    @property
    def want_raw(self) -> bool:
        return self._want_raw

    @property
    def want_stream(self) -> bool:
        return self._want_stream

    # === Resolution ===

    def __await__(self) -> Generator[Any, None, T]:
        return self._resolve_once().__await__()

    async def _resolve_once(self) -> Any:
        if self._resolution is None:
            self._resolution = asyncio.ensure_future(self._resolve())
        return await self._resolution

    async def _get_response(self) -> httpx.Response:
        if self._response_task is None:
            self._response_task = asyncio.ensure_future(self._source)
        return await self._response_task

    async def _resolve(self) -> Any:
        response = await self._get_response()
        if self._want_raw:
            return response
        if self._want_stream:
            return self._event_stream()
        return await self._interpret(response)

    async def _interpret(self, response: httpx.Response) -> Any:
        content_type = response.headers.get(CONTENT_TYPE_HEADER)

        if is_json_content_type(content_type):
            content = await response.aread()
            try:
                value = json.loads(content.decode("utf-8"))
            except ValueError as e:
                raise ValidationError(
                    "Response body is not valid JSON", diagnostic=str(e)
                ) from e
            self._validate(value)
            return value

        if is_text_content_type(content_type):
            content = await response.aread()
            return content.decode("utf-8", errors="replace")

        return BinaryResponse(response)

    def _validate(self, value: Any) -> None:
        """Check a decoded payload against the schema, if one is configured."""
        if self._adapter is None:
            return
        try:
            self._adapter.validate_python(value)
        except pydantic.ValidationError as e:
            raise ValidationError(
                f"Response failed schema validation ({e.error_count()} errors)",
                diagnostic=e.errors(),
            ) from e

    async def as_response(self) -> httpx.Response:
        """
        Return the underlying httpx.Response without reading its body.

        Returns:
            The raw response
        """
        return await self._get_response()

    # === Deferred composition ===

    async def map(self, fn: Callable[[T], U | Awaitable[U]]) -> U:
        """Apply ``fn`` (sync or async) to the eventual result."""
        result = await self
        return await maybe_await(fn(result))

    async def recover(self, fn: Callable[[Exception], Any]) -> Any:
        """Resolve, or hand a raised exception to ``fn`` and return its result."""
        try:
            return await self
        except Exception as e:
            return await maybe_await(fn(e))

    async def on_complete(self, fn: Callable[[], Any]) -> T:
        """Resolve, running ``fn`` afterwards whether resolution failed or not."""
        try:
            return await self
        finally:
            await maybe_await(fn())

    # === Event stream ===

    def as_event_stream(self) -> EventStream:
        """
        Open the response's event stream.

        The stream is a single pass. This method succeeds only while no
        stream exists yet: once the stream has been obtained, whether here
        or by awaiting the pending response, calling it again raises.
        Iterating the pending response directly pulls from that one stream.
        Misuse of the body is reported on the first pull:
        - StreamFormatError("Response is not an event stream") unless the
          response was created with want_stream
        - StreamFormatError("Response body is undefined") for bodiless
          responses
        - StreamConsumedError if the body was already drained without
          being buffered

        Raises:
            StreamConsumedError: If the stream was already opened
        """
        if self._stream is not None:
            raise StreamConsumedError("Event stream was already opened")
        return self._event_stream()

    def _event_stream(self) -> EventStream:
        if self._stream is None:
            self._stream = EventStream(
                self._body_chunks(),
                validate=self._validate if self._adapter is not None else None,
                on_close=self._close_response,
            )
        return self._stream

    async def _close_response(self) -> None:
        # A stream closed before its first pull never runs the body's cleanup
        task = self._response_task
        if task is None or not task.done():
            return
        if not task.cancelled() and task.exception() is None:
            await task.result().aclose()

    async def _body_chunks(self) -> AsyncIterator[bytes]:
        if not self._want_stream:
            raise StreamFormatError("Response is not an event stream")

        response = await self._get_response()
        if _body_is_undefined(response):
            await response.aclose()
            raise StreamFormatError("Response body is undefined")

        try:
            async for chunk in response.aiter_bytes():
                yield chunk
        except httpx.StreamConsumed as e:
            raise StreamConsumedError(
                "Response body was already consumed before streaming"
            ) from e
        finally:
            await response.aclose()

    def __aiter__(self) -> PendingResponse[T]:
        return self

    async def __anext__(self) -> StreamEvent:
        """Pull the next event; StopAsyncIteration once the source ends."""
        return await self._event_stream().__anext__()

    # === Lifecycle ===

    async def aclose(self) -> None:
        """Release the response and any open stream."""
        if self._stream is not None:
            await self._stream.aclose()

        task = self._response_task
        if task is None:
            # Never started: drop the pending request without sending it
            if inspect.iscoroutine(self._source):
                self._source.close()
            return
        if not task.done():
            task.cancel()
            return
        await self._close_response()

    async def __aenter__(self) -> T:
        return await self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()


def _body_is_undefined(response: httpx.Response) -> bool:
    """Check whether a response can carry no body at all."""
    if response.status_code in NO_BODY_STATUSES:
        return True
    try:
        return response.request.method.upper() == "HEAD"
    except RuntimeError:
        # Response was built without a request
        return False
