"""Tests for error handling."""

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


class TestSdkError:
    """Tests for SdkError."""

    def test_basic_error(self) -> None:
        error = SdkError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.status is None
        assert error.code is None

    def test_error_with_status_and_code(self) -> None:
        error = SdkError("Not found", status=404, code="NOT_FOUND")
        assert "Not found" in str(error)
        assert "(status=404)" in str(error)
        assert "[NOT_FOUND]" in str(error)

    def test_repr(self) -> None:
        error = SdkError("boom", status=500, code="X")
        assert repr(error) == "SdkError(message='boom', status=500, code='X')"


class TestTransportError:
    """Tests for TransportError."""

    def test_includes_url(self) -> None:
        error = TransportError("Request failed", url="https://api.example.com/x")
        assert error.code == "TRANSPORT_ERROR"
        assert error.url == "https://api.example.com/x"
        assert "at https://api.example.com/x" in str(error)

    def test_without_url(self) -> None:
        error = TransportError("Request failed")
        assert str(error) == "Request failed [TRANSPORT_ERROR]"


class TestHttpStatusError:
    """Tests for HttpStatusError."""

    def test_carries_response_details(self) -> None:
        error = HttpStatusError(
            503,
            url="https://api.example.com/x",
            body={"error": "unavailable"},
            headers={"retry-after": "1"},
        )
        assert error.status == 503
        assert error.code == "HTTP_ERROR"
        assert error.body == {"error": "unavailable"}
        assert error.details == {"error": "unavailable"}
        assert error.headers == {"retry-after": "1"}
        assert "HTTP error 503 at https://api.example.com/x" in str(error)

    def test_headers_default_to_empty(self) -> None:
        assert HttpStatusError(400).headers == {}


class TestValidationError:
    """Tests for ValidationError."""

    def test_carries_diagnostic(self) -> None:
        diagnostic = [{"loc": ("name",), "msg": "Field required"}]
        error = ValidationError(diagnostic=diagnostic)
        assert error.code == "VALIDATION_ERROR"
        assert error.diagnostic == diagnostic
        assert "schema validation" in str(error)


class TestStreamErrors:
    """Tests for StreamFormatError and StreamConsumedError."""

    def test_stream_format_error(self) -> None:
        error = StreamFormatError("Response is not an event stream")
        assert error.code == "STREAM_FORMAT"

    def test_consumed_is_stream_format_error(self) -> None:
        error = StreamConsumedError()
        assert isinstance(error, StreamFormatError)
        assert error.code == "ALREADY_CONSUMED"

    def test_consumed_with_methods(self) -> None:
        error = StreamConsumedError(
            attempted_method="as_event_stream", consumed_by="read"
        )
        assert "as_event_stream()" in str(error)
        assert "read()" in str(error)


class TestAuthErrors:
    """Tests for AuthError and ConfigurationError."""

    def test_auth_error(self) -> None:
        error = AuthError("rejected", status=401, body={"error": "invalid_client"})
        assert error.status == 401
        assert error.code == "AUTH_ERROR"
        assert error.body == {"error": "invalid_client"}

    def test_configuration_error(self) -> None:
        error = ConfigurationError("bad setup")
        assert isinstance(error, SdkError)
        assert error.code == "CONFIGURATION_ERROR"
