"""
Pytest configuration and fixtures for sdk-core tests.

HTTP traffic is faked with httpx.MockTransport; no test needs a server.
"""

from collections.abc import AsyncIterator, Callable, Iterable

import httpx
import pytest
import structlog


@pytest.fixture
def anyio_backend() -> str:
    """The runtime is built on asyncio primitives."""
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_structlog() -> None:
    """Keep logging configuration from leaking between tests."""
    structlog.reset_defaults()


def chunked(*chunks: bytes) -> Callable[[], AsyncIterator[bytes]]:
    """Build a factory for an async byte source yielding ``chunks``."""

    async def source() -> AsyncIterator[bytes]:
        for chunk in chunks:
            yield chunk

    return source


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in the given chunks, recording aclose()."""

    def __init__(self, chunks: Iterable[bytes]) -> None:
        self.chunks = list(chunks)
        self.closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


def make_response(
    status: int = 200,
    *,
    content_type: str | None = "application/json",
    content: bytes | None = None,
    chunks: Iterable[bytes] | None = None,
    method: str = "GET",
    url: str = "https://api.example.com/resource",
) -> httpx.Response:
    """Build an httpx.Response attached to a request, like send() returns."""
    headers = {"content-type": content_type} if content_type else {}
    request = httpx.Request(method, url)
    if chunks is not None:
        return httpx.Response(
            status, headers=headers, stream=ChunkedStream(chunks), request=request
        )
    return httpx.Response(status, headers=headers, content=content, request=request)


async def resolved(response: httpx.Response) -> httpx.Response:
    """Coroutine source for PendingResponse tests."""
    return response


class Recorder:
    """MockTransport handler that replays queued responses and records requests."""

    def __init__(self, *responses: httpx.Response | Exception) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        # The last queued response repeats once the queue is drained
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        if isinstance(item.stream, ChunkedStream):
            return item
        return httpx.Response(item.status_code, headers=item.headers, content=item.content)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def recorder_client() -> Callable[..., tuple[httpx.AsyncClient, Recorder]]:
    """Factory for an AsyncClient backed by a Recorder."""

    def factory(*responses: httpx.Response | Exception) -> tuple[httpx.AsyncClient, Recorder]:
        recorder = Recorder(*responses)
        return httpx.AsyncClient(transport=httpx.MockTransport(recorder)), recorder

    return factory
