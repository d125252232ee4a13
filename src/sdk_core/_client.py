"""
CoreClient - request executor with auth and retries.

Turns a RequestConfig into an httpx request, retries retryable statuses
according to a RetryPolicy, and hands the accepted response to a
PendingResponse for interpretation.
"""

from __future__ import annotations

from typing import Any

import httpx

from sdk_core._errors import HttpStatusError, TransportError
from sdk_core._logging import get_logger
from sdk_core._response import PendingResponse, SchemaLike
from sdk_core._retry import RetryPolicy, sleep
from sdk_core._types import RequestConfig, RequestMutator, RetryStrategy
from sdk_core._util import decode_error_body, join_url

logger = get_logger(__name__)


class CoreClient:
    """
    Async HTTP client shared by generated SDK operations.

    Example:
        >>> async with CoreClient("https://api.example.com", auth=token_manager) as client:
        ...     user = await client.make_request(RequestConfig("get", "/users/1"))
    """

    def __init__(
        self,
        base_url: str,
        *,
        auth: RequestMutator | None = None,
        retry: RetryStrategy | None = None,
        timeout: float | httpx.Timeout | None = None,
        default_headers: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Create a client.

        No network IO is performed by the constructor.

        Args:
            base_url: Base URL that request paths are joined to
            auth: Auth provider applied to every attempt
            retry: Client-wide retry strategy (per-request values override it)
            timeout: Request timeout
            default_headers: Headers sent with every request
            client: Optional httpx.AsyncClient to use
        """
        self._base_url = base_url
        self._auth = auth
        self._retry = retry
        self._timeout = timeout or 30.0
        self._default_headers = dict(default_headers or {})

        self._own_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def auth(self) -> RequestMutator | None:
        return self._auth

    def build_url(self, path: str, base_url: str | None = None) -> str:
        """Join ``path`` to the client's (or the given) base URL."""
        return join_url(base_url or self._base_url, path)

    def make_request(
        self,
        config: RequestConfig,
        *,
        retry: RetryStrategy | None = None,
        want_raw: bool = False,
        want_stream: bool = False,
        schema: SchemaLike | None = None,
        timeout: float | httpx.Timeout | None = None,
    ) -> PendingResponse[Any]:
        """
        Start a request and return its pending response.

        The request is sent when the result is first awaited or iterated.

        Args:
            config: The request to send
            retry: Per-request retry overrides
            want_raw: Resolve to the httpx.Response itself
            want_stream: Resolve to an event stream over the body
            schema: Type or TypeAdapter the decoded body must satisfy
            timeout: Per-request timeout

        Returns:
            PendingResponse wrapping the accepted response

        Raises (when awaited):
            HttpStatusError: For a non-2xx status that is not retried
            TransportError: If no response could be obtained
        """
        policy = RetryPolicy.merge(base=self._retry, override=retry)
        return PendingResponse(
            self._execute(config, policy, timeout),
            want_raw=want_raw,
            want_stream=want_stream,
            schema=schema,
        )

    async def _execute(
        self,
        config: RequestConfig,
        policy: RetryPolicy,
        timeout: float | httpx.Timeout | None,
    ) -> httpx.Response:
        log = logger.bind(
            component="core_client",
            method=config.method.upper(),
            path=config.path,
        )
        delay_ms = policy.initial_delay_ms
        attempt = 0

        while True:
            attempt += 1
            request = await self._build_request(config, timeout)

            try:
                response = await self._client.send(request, stream=True)
            except httpx.RequestError as e:
                log.warning("request_failed", attempt=attempt, error=str(e))
                raise TransportError(f"Request failed: {e}", url=str(request.url)) from e

            if response.is_success:
                return response

            status = response.status_code
            if policy.should_retry(attempt, status):
                await response.aclose()
                log.info(
                    "request_retry",
                    attempt=attempt,
                    status=status,
                    delay_ms=delay_ms,
                )
                await sleep(delay_ms)
                delay_ms = policy.calc_next_delay(delay_ms)
                continue

            try:
                content = await response.aread()
            finally:
                await response.aclose()
            log.warning("request_rejected", attempt=attempt, status=status)
            raise HttpStatusError(
                status,
                url=str(request.url),
                body=decode_error_body(content),
                headers=dict(response.headers),
            )

    async def _build_request(
        self,
        config: RequestConfig,
        timeout: float | httpx.Timeout | None,
    ) -> httpx.Request:
        """Apply auth to a fresh copy of ``config`` and build the httpx request."""
        if self._auth is not None:
            config = await self._auth.apply_auth(config)

        headers = {**self._default_headers, **config.headers}
        if config.cookies:
            headers["Cookie"] = "; ".join(f"{k}={v}" for k, v in config.cookies.items())

        return self._client.build_request(
            config.method.upper(),
            self.build_url(config.path, config.base_url),
            headers=headers,
            params=config.params or None,
            json=config.json,
            content=config.content,
            data=config.data,
            timeout=timeout or self._timeout,
        )

    async def aclose(self) -> None:
        """Close the client and release resources."""
        if self._own_client:
            await self._client.aclose()

    async def __aenter__(self) -> CoreClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
