"""
SDK Core Runtime

Shared runtime for generated HTTP API clients.

This package interprets responses (JSON, text, binary, or Server-Sent Event
streams), retries failed attempts with exponential backoff, and manages
OAuth2 access tokens.

Example usage:
    >>> from sdk_core import CoreClient, RequestConfig
    >>>
    >>> async with CoreClient("https://api.example.com") as client:
    ...     user = await client.make_request(RequestConfig("get", "/users/1"))
    >>>
    >>> # Event streaming
    >>> async with CoreClient("https://api.example.com") as client:
    ...     pending = client.make_request(
    ...         RequestConfig("post", "/chat"), want_stream=True
    ...     )
    ...     async for event in pending:
    ...         print(event.data)
"""

from importlib.metadata import PackageNotFoundError, version

from sdk_core._auth import AuthBearer
from sdk_core._client import CoreClient
from sdk_core._errors import (
    AuthError,
    ConfigurationError,
    HttpStatusError,
    SdkError,
    StreamConsumedError,
    StreamFormatError,
    TransportError,
    ValidationError,
)
from sdk_core._logging import configure_logging, get_logger
from sdk_core._oauth2 import (
    ClientCredentialsGrant,
    OAuth2,
    OAuth2Grant,
    PasswordGrant,
    TokenManager,
)
from sdk_core._response import BinaryResponse, PendingResponse
from sdk_core._retry import RetryPolicy, sleep
from sdk_core._sse import EventStream, EventStreamDecoder, iter_events
from sdk_core._types import (
    BodyContent,
    CredentialsLocation,
    RequestConfig,
    RequestMutator,
    RetryStrategy,
    StreamEvent,
    TokenRecord,
)

__all__ = [
    # Types
    "StreamEvent",
    "TokenRecord",
    "RequestConfig",
    "RequestMutator",
    "RetryStrategy",
    "CredentialsLocation",
    "BodyContent",
    # Errors
    "SdkError",
    "TransportError",
    "HttpStatusError",
    "ValidationError",
    "StreamFormatError",
    "StreamConsumedError",
    "AuthError",
    "ConfigurationError",
    # Responses
    "PendingResponse",
    "BinaryResponse",
    # Event streams
    "EventStreamDecoder",
    "EventStream",
    "iter_events",
    # Retries
    "RetryPolicy",
    "sleep",
    # Auth
    "AuthBearer",
    "TokenManager",
    "OAuth2",
    "OAuth2Grant",
    "ClientCredentialsGrant",
    "PasswordGrant",
    # Client
    "CoreClient",
    # Logging
    "configure_logging",
    "get_logger",
]

# Use importlib.metadata for version (works with installed package)
# Fall back to hard-coded version for editable installs
try:
    __version__ = version("sdk-core")
except PackageNotFoundError:
    __version__ = "0.1.0"
