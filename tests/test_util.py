"""Tests for utility functions."""

import pytest

from sdk_core._util import (
    decode_error_body,
    is_json_content_type,
    is_text_content_type,
    join_url,
    maybe_await,
    normalize_content_type,
    resolve_pointer,
)


class TestContentTypes:
    """Tests for content type helpers."""

    def test_normalize_strips_parameters(self) -> None:
        assert normalize_content_type("Application/JSON; charset=utf-8") == "application/json"

    def test_normalize_none(self) -> None:
        assert normalize_content_type(None) == ""

    def test_json_types(self) -> None:
        assert is_json_content_type("application/json")
        assert is_json_content_type("application/json; charset=utf-8")
        assert is_json_content_type("application/problem+json")
        assert not is_json_content_type("text/plain")
        assert not is_json_content_type(None)

    def test_text_types(self) -> None:
        assert is_text_content_type("text/plain")
        assert is_text_content_type("text/event-stream")
        assert not is_text_content_type("application/octet-stream")
        assert not is_text_content_type(None)


class TestJoinUrl:
    """Tests for join_url."""

    @pytest.mark.parametrize(
        ("base", "path"),
        [
            ("https://api.example.com", "/users"),
            ("https://api.example.com/", "/users"),
            ("https://api.example.com/", "users"),
            ("https://api.example.com", "users"),
        ],
    )
    def test_exactly_one_slash(self, base: str, path: str) -> None:
        assert join_url(base, path) == "https://api.example.com/users"

    def test_empty_path(self) -> None:
        assert join_url("https://api.example.com", "") == "https://api.example.com"


class TestResolvePointer:
    """Tests for resolve_pointer."""

    def test_top_level(self) -> None:
        assert resolve_pointer({"access_token": "abc"}, "/access_token") == "abc"

    def test_nested_and_index(self) -> None:
        doc = {"data": [{"token": "t0"}, {"token": "t1"}]}
        assert resolve_pointer(doc, "/data/1/token") == "t1"

    def test_escapes(self) -> None:
        doc = {"a/b": {"c~d": 1}}
        assert resolve_pointer(doc, "/a~1b/c~0d") == 1

    def test_empty_pointer_is_whole_document(self) -> None:
        doc = {"x": 1}
        assert resolve_pointer(doc, "") is doc

    def test_missing_raises_key_error(self) -> None:
        with pytest.raises(KeyError):
            resolve_pointer({"x": 1}, "/y")
        with pytest.raises(KeyError):
            resolve_pointer({"x": [1]}, "/x/5")
        with pytest.raises(KeyError):
            resolve_pointer({"x": "scalar"}, "/x/y")

    def test_invalid_pointer(self) -> None:
        with pytest.raises(KeyError):
            resolve_pointer({"x": 1}, "x")


class TestDecodeErrorBody:
    """Tests for decode_error_body."""

    def test_json(self) -> None:
        assert decode_error_body(b'{"error": "bad"}') == {"error": "bad"}

    def test_text(self) -> None:
        assert decode_error_body(b"Service Unavailable") == "Service Unavailable"

    def test_empty(self) -> None:
        assert decode_error_body(b"") is None


class TestMaybeAwait:
    """Tests for maybe_await."""

    @pytest.mark.anyio
    async def test_plain_value(self) -> None:
        assert await maybe_await(3) == 3

    @pytest.mark.anyio
    async def test_awaitable(self) -> None:
        async def value() -> int:
            return 4

        assert await maybe_await(value()) == 4
