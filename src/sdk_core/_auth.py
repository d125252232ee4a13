"""
Bearer-header request mutator.

This is the default collaborator a TokenManager writes fresh access tokens
into. Other static providers (basic, api key) live outside the core.
"""

from __future__ import annotations

from dataclasses import replace

from sdk_core._types import AUTHORIZATION_HEADER, RequestConfig


class AuthBearer:
    """Attach ``Authorization: Bearer <token>`` to outgoing requests."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token

    def set_value(self, value: str | None) -> None:
        """Replace the token used for subsequent requests."""
        self._token = value

    async def apply_auth(self, config: RequestConfig) -> RequestConfig:
        """Return a copy of ``config`` carrying the bearer header."""
        if self._token is None:
            return config
        headers = {**config.headers, AUTHORIZATION_HEADER: f"Bearer {self._token}"}
        return replace(config, headers=headers)
