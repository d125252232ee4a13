"""
Shared utility functions for the SDK core runtime.
"""

import json
from typing import Any


def normalize_content_type(content_type: str | None) -> str:
    """
    Normalize content type by extracting the media type (before any semicolon).

    Handles cases like "application/json; charset=utf-8".

    Args:
        content_type: The content type string

    Returns:
        Normalized content type (lowercase, no parameters)
    """
    if not content_type:
        return ""
    return content_type.split(";")[0].strip().lower()


def is_json_content_type(content_type: str | None) -> bool:
    """
    Check if a content type indicates JSON.

    Matches application/json and any structured-syntax ``+json`` suffix
    (e.g. application/problem+json).

    Args:
        content_type: The content type string

    Returns:
        True if the body should be parsed as JSON
    """
    normalized = normalize_content_type(content_type)
    return normalized == "application/json" or normalized.endswith("+json")


def is_text_content_type(content_type: str | None) -> bool:
    """Check if a content type is in the text/* family."""
    return normalize_content_type(content_type).startswith("text/")


def join_url(base_url: str, path: str) -> str:
    """
    Join a base URL and a relative path with exactly one slash between them.

    Args:
        base_url: The base URL (a trailing slash is tolerated)
        path: The path (a leading slash is tolerated)

    Returns:
        The joined URL
    """
    if not path:
        return base_url
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def resolve_pointer(document: Any, pointer: str) -> Any:
    """
    Resolve a JSON Pointer (RFC 6901) against a decoded JSON document.

    Args:
        document: The decoded JSON value
        pointer: Pointer string such as "/access_token" or "/data/0/token"

    Returns:
        The referenced value

    Raises:
        KeyError: If the pointer does not resolve
    """
    if pointer == "":
        return document
    if not pointer.startswith("/"):
        raise KeyError(f"Invalid JSON pointer: {pointer!r}")

    current = document
    for raw in pointer[1:].split("/"):
        token = raw.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict):
            if token not in current:
                raise KeyError(pointer)
            current = current[token]
        elif isinstance(current, list):
            if not token.isdigit() or int(token) >= len(current):
                raise KeyError(pointer)
            current = current[int(token)]
        else:
            raise KeyError(pointer)
    return current


def decode_error_body(content: bytes) -> Any:
    """
    Decode an error response body for attaching to an exception.

    Returns parsed JSON when the body is JSON, the text otherwise, and
    None for an empty body.
    """
    if not content:
        return None
    text = content.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


async def maybe_await(value: Any) -> Any:
    """Await ``value`` if it is awaitable, otherwise return it as-is."""
    if hasattr(value, "__await__"):
        return await value
    return value
