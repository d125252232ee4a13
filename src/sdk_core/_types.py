"""
Core types for the SDK core runtime.

This module defines the fundamental types used throughout the library.
"""

from collections.abc import Awaitable
from dataclasses import dataclass, field
from datetime import datetime
from typing import (
    Any,
    Literal,
    Protocol,
    TypedDict,
)

# Where the OAuth2 client credentials travel on the token request
CredentialsLocation = Literal["request_body", "basic_authorization_header"]

# Encoding of the OAuth2 token request body
BodyContent = Literal["form", "json"]


@dataclass(frozen=True, slots=True)
class StreamEvent:
    """
    A single Server-Sent Event.

    Attributes:
        data: The decoded payload (parsed JSON, or the raw string when the
            payload is not JSON; None when the frame had no data line)
        event: The event type ("message" unless the frame named one)
        id: The event id, if the frame carried one
        retry: Reconnection hint in milliseconds, if the frame carried one
    """

    data: Any = None
    event: str = "message"
    id: str | None = None
    retry: int | None = None


@dataclass(frozen=True, slots=True)
class TokenRecord:
    """
    A cached OAuth2 access token.

    Attributes:
        access_token: The bearer token value
        expires_at: Timezone-aware instant after which the token is stale
    """

    access_token: str
    expires_at: datetime


@dataclass
class RequestConfig:
    """
    Description of an outgoing request.

    Auth providers receive and return this object; the client turns it
    into an httpx request.

    Attributes:
        method: HTTP method (case-insensitive)
        path: Path relative to the client's base URL
        headers: Request headers
        params: Query parameters
        cookies: Cookies sent as a single Cookie header
        json: JSON-serializable body
        content: Raw body (bytes or str)
        data: Form fields (urlencoded by httpx)
        base_url: Per-request base URL override
    """

    method: str
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)
    json: Any = None
    content: bytes | str | None = None
    data: dict[str, Any] | None = None
    base_url: str | None = None


class RequestMutator(Protocol):
    """Capability to attach credentials to an outgoing request."""

    def set_value(self, value: str | None) -> None: ...

    def apply_auth(self, config: RequestConfig) -> Awaitable[RequestConfig]: ...


class RetryStrategy(TypedDict, total=False):
    """Partial retry configuration; unset fields fall through to the base."""

    max_retries: int
    status_codes: tuple[int, ...] | list[int]
    initial_delay_ms: float
    max_delay_ms: float
    backoff_factor: float


# Protocol constants
DEFAULT_EVENT_TYPE = "message"
AUTHORIZATION_HEADER = "Authorization"
CONTENT_TYPE_HEADER = "content-type"

# Statuses whose responses never carry a body
NO_BODY_STATUSES = (204, 205, 304)
