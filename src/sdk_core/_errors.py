"""
Exception hierarchy for the SDK core runtime.

This module defines all exceptions that can be raised by the library.
"""

from typing import Any


class SdkError(Exception):
    """
    Base exception for all SDK core errors.

    Attributes:
        message: Human-readable error message
        status: HTTP status code (if applicable)
        code: Error code for programmatic handling
        details: Additional error details
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        code: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details

    def __str__(self) -> str:
        parts = [self.message]
        if self.status is not None:
            parts.append(f"(status={self.status})")
        if self.code is not None:
            parts.append(f"[{self.code}]")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"status={self.status!r}, "
            f"code={self.code!r})"
        )


class TransportError(SdkError):
    """
    Exception for failures before any response exists.

    Raised for network failures, timeouts, DNS errors and the like. The
    underlying httpx exception is chained as ``__cause__``.

    Attributes:
        url: The URL that was being requested
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message, code="TRANSPORT_ERROR")
        self.url = url

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.url:
            parts.append(f"at {self.url}")
        return " ".join(parts)


class HttpStatusError(SdkError):
    """
    Exception raised when a response was received but deemed unsuccessful.

    Raised both when retries were exhausted and when the status was never
    retryable in the first place.

    Attributes:
        status: HTTP status code
        body: Response body (parsed JSON when possible, else text)
        headers: Response headers
        url: The URL that was requested
    """

    def __init__(
        self,
        status: int,
        *,
        url: str | None = None,
        body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        message = f"HTTP error {status}"
        if url:
            message = f"{message} at {url}"
        super().__init__(message, status=status, code="HTTP_ERROR", details=body)
        self.url = url
        self.body = body
        self.headers = headers or {}


class ValidationError(SdkError):
    """
    Exception raised when a decoded payload does not match its schema.

    Attributes:
        diagnostic: Structured validator output (pydantic's ``errors()`` list)
    """

    def __init__(
        self,
        message: str = "Response failed schema validation",
        diagnostic: Any = None,
    ) -> None:
        super().__init__(message, code="VALIDATION_ERROR", details=diagnostic)
        self.diagnostic = diagnostic


class StreamFormatError(SdkError):
    """Exception for malformed event streams or unsupported streaming usage."""

    def __init__(self, message: str, code: str = "STREAM_FORMAT") -> None:
        super().__init__(message, code=code)


class StreamConsumedError(StreamFormatError):
    """
    Exception raised when attempting to consume a response body twice.

    A response body is single-read; an event stream is a single pass and
    cannot be re-entered once handed out.
    """

    def __init__(
        self,
        message: str = "Response body has already been consumed",
        attempted_method: str | None = None,
        consumed_by: str | None = None,
    ) -> None:
        if attempted_method and consumed_by:
            message = (
                f"Cannot call {attempted_method}() - response body was already "
                f"consumed via {consumed_by}()"
            )
        super().__init__(message, code="ALREADY_CONSUMED")
        self.attempted_method = attempted_method
        self.consumed_by = consumed_by


class AuthError(SdkError):
    """
    Exception raised when the token endpoint rejects a credential exchange
    or returns a malformed token response.

    Attributes:
        status: HTTP status from the token endpoint (None for malformed bodies)
        body: Parsed error body from the token endpoint
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message, status=status, code="AUTH_ERROR", details=body)
        self.body = body


class ConfigurationError(SdkError):
    """Exception raised for invalid API usage or configuration."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR")
