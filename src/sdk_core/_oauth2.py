"""
OAuth2 credential lifecycle.

A TokenManager owns exactly one cached TokenRecord. It hands the cached
token to its request mutator while the token is fresh, and exchanges its
configured grant at the token endpoint when it is not.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, ClassVar

import httpx

from sdk_core._auth import AuthBearer
from sdk_core._errors import AuthError, ConfigurationError, TransportError
from sdk_core._logging import get_logger
from sdk_core._types import (
    BodyContent,
    CredentialsLocation,
    RequestConfig,
    RequestMutator,
    TokenRecord,
)
from sdk_core._util import decode_error_body, join_url, resolve_pointer

logger = get_logger(__name__)

DEFAULT_ACCESS_TOKEN_POINTER = "/access_token"
DEFAULT_EXPIRES_IN_POINTER = "/expires_in"
DEFAULT_EXPIRY_SKEW_SECONDS = 10.0


@dataclass(kw_only=True)
class OAuth2Grant:
    """
    Base for token endpoint grants.

    Attributes:
        client_id: OAuth2 client id
        client_secret: OAuth2 client secret
        scope: Requested scope; a list is joined with spaces
        token_url: Token endpoint override (relative to the manager's base URL)
        extra: Additional fields sent verbatim in the token request body
    """

    grant_type: ClassVar[str]

    client_id: str | None = None
    client_secret: str | None = None
    scope: str | list[str] | None = None
    token_url: str | None = None
    extra: dict[str, str] = field(default_factory=dict)

    def grant_fields(self) -> dict[str, str]:
        """Fields specific to this grant type."""
        return {}


@dataclass(kw_only=True)
class ClientCredentialsGrant(OAuth2Grant):
    """The ``client_credentials`` grant."""

    grant_type: ClassVar[str] = "client_credentials"


@dataclass(kw_only=True)
class PasswordGrant(OAuth2Grant):
    """The resource owner ``password`` grant."""

    grant_type: ClassVar[str] = "password"

    username: str
    password: str

    def grant_fields(self) -> dict[str, str]:
        return {"username": self.username, "password": self.password}


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenManager:
    """
    OAuth2 auth provider with a cached access token.

    The token record is state owned by this instance alone; create one
    manager per OAuth2 credential. Concurrent apply_auth() calls that find no
    fresh token share a single token endpoint exchange.

    Example:
        >>> auth = TokenManager(
        ...     base_url="https://auth.example.com",
        ...     default_token_url="/oauth/token",
        ...     form=ClientCredentialsGrant(client_id="id", client_secret="secret"),
        ... )
        >>> config = await auth.apply_auth(RequestConfig("get", "/users"))
    """

    def __init__(
        self,
        *,
        base_url: str,
        default_token_url: str,
        access_token_pointer: str = DEFAULT_ACCESS_TOKEN_POINTER,
        expires_in_pointer: str = DEFAULT_EXPIRES_IN_POINTER,
        credentials_location: CredentialsLocation = "request_body",
        body_content: BodyContent = "form",
        request_mutator: RequestMutator | None = None,
        form: OAuth2Grant | None = None,
        token: TokenRecord | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | httpx.Timeout | None = None,
        expiry_skew: float = DEFAULT_EXPIRY_SKEW_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Create a token manager.

        No network IO is performed by the constructor.

        Args:
            base_url: Base URL of the authorization server
            default_token_url: Token endpoint path used when a grant has none
            access_token_pointer: JSON pointer to the token in the response
            expires_in_pointer: JSON pointer to the lifetime (seconds)
            credentials_location: Send client credentials in the body or as
                an HTTP Basic header
            body_content: Encode the token request as a form or as JSON
            request_mutator: Receives fresh tokens and attaches them
                (default: AuthBearer)
            form: Grant used when apply_auth() needs a new token
            token: Initial token record, e.g. restored from storage
            client: Optional httpx.AsyncClient for token requests
            timeout: Timeout for token requests when the client is owned
            expiry_skew: Seconds before expiry at which a token counts as stale
            clock: Returns the current time (timezone-aware)
        """
        self._base_url = base_url
        self._default_token_url = default_token_url
        self._access_token_pointer = access_token_pointer
        self._expires_in_pointer = expires_in_pointer
        self._credentials_location = credentials_location
        self._body_content = body_content
        self._request_mutator: RequestMutator = request_mutator or AuthBearer()
        self._form = form
        self._token = token
        self._expiry_skew = timedelta(seconds=expiry_skew)
        self._clock = clock

        # Client management
        self._own_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout or 30.0)

        self._refresh_lock = asyncio.Lock()

    @property
    def token(self) -> TokenRecord | None:
        """The cached token record, fresh or not."""
        return self._token

    @property
    def form(self) -> OAuth2Grant | None:
        """The grant used for automatic refreshes."""
        return self._form

    def is_token_valid(self) -> bool:
        """Whether the cached token can be used without refreshing."""
        return self._is_fresh(self._token)

    def _is_fresh(self, record: TokenRecord | None) -> bool:
        if record is None:
            return False
        return self._clock() < record.expires_at - self._expiry_skew

    def set_value(self, value: str | None) -> None:
        """Always fails: OAuth2 credentials are obtained, never assigned."""
        raise ConfigurationError(
            "an OAuth2 auth provider cannot be used as a requestMutator"
        )

    def invalidate(self) -> None:
        """Drop the cached token so the next apply_auth() refreshes."""
        self._token = None

    async def apply_auth(self, config: RequestConfig) -> RequestConfig:
        """
        Return ``config`` with a bearer credential attached.

        Uses the cached token while fresh; otherwise refreshes with the
        configured grant first.

        Raises:
            ConfigurationError: If a refresh is needed but no grant is configured
            AuthError: If the token endpoint rejects the exchange
            TransportError: If the token endpoint cannot be reached
        """
        record = self._token
        if not self._is_fresh(record):
            async with self._refresh_lock:
                # Another task may have refreshed while we waited
                record = self._token
                if not self._is_fresh(record):
                    if self._form is None:
                        raise ConfigurationError(
                            "OAuth2 token is missing or expired and no grant "
                            "is configured to refresh it"
                        )
                    record = await self.refresh(self._form)

        assert record is not None
        self._request_mutator.set_value(record.access_token)
        return await self._request_mutator.apply_auth(config)

    async def refresh(self, grant: OAuth2Grant) -> TokenRecord:
        """
        Exchange ``grant`` at the token endpoint and cache the result.

        Args:
            grant: The grant to exchange

        Returns:
            The new token record

        Raises:
            AuthError: On a non-2xx status or a malformed token response
            TransportError: If the token endpoint cannot be reached
        """
        url = join_url(self._base_url, grant.token_url or self._default_token_url)
        log = logger.bind(
            component="oauth2",
            grant_type=grant.grant_type,
            token_url=url,
        )

        body = self._token_request_body(grant)
        auth: httpx.Auth | None = None
        if self._credentials_location == "basic_authorization_header":
            if grant.client_id is None:
                raise ConfigurationError(
                    "client_id is required for basic_authorization_header credentials"
                )
            auth = httpx.BasicAuth(grant.client_id, grant.client_secret or "")

        try:
            if self._body_content == "json":
                response = await self._client.post(url, json=body, auth=auth)
            else:
                response = await self._client.post(url, data=body, auth=auth)
        except httpx.RequestError as e:
            log.warning("token_refresh_failed", error=str(e))
            raise TransportError(f"Token request failed: {e}", url=url) from e

        if not response.is_success:
            error_body = decode_error_body(response.content)
            log.warning("token_refresh_failed", status=response.status_code)
            raise AuthError(
                "Token endpoint rejected the credential exchange",
                status=response.status_code,
                body=error_body,
            )

        record = self._parse_token_response(response)
        self._token = record
        log.info("token_refreshed", expires_at=record.expires_at.isoformat())
        return record

    def _token_request_body(self, grant: OAuth2Grant) -> dict[str, Any]:
        body: dict[str, Any] = {"grant_type": grant.grant_type}
        body.update(grant.grant_fields())

        if self._credentials_location == "request_body":
            if grant.client_id is not None:
                body["client_id"] = grant.client_id
            if grant.client_secret is not None:
                body["client_secret"] = grant.client_secret

        if grant.scope:
            body["scope"] = (
                " ".join(grant.scope) if isinstance(grant.scope, list) else grant.scope
            )

        body.update(grant.extra)
        return body

    def _parse_token_response(self, response: httpx.Response) -> TokenRecord:
        status = response.status_code
        try:
            payload = response.json()
        except ValueError as e:
            raise AuthError(
                "Token endpoint returned a non-JSON body",
                status=status,
                body=response.text,
            ) from e

        try:
            access_token = resolve_pointer(payload, self._access_token_pointer)
            expires_in = resolve_pointer(payload, self._expires_in_pointer)
        except KeyError as e:
            raise AuthError(
                f"Token response is missing {e.args[0]!r}",
                status=status,
                body=payload,
            ) from e

        if not isinstance(access_token, str) or not access_token:
            raise AuthError(
                "Token response carries no usable access token",
                status=status,
                body=payload,
            )
        try:
            expires_at = self._clock() + timedelta(seconds=float(expires_in))
        except (TypeError, ValueError, OverflowError) as e:
            raise AuthError(
                f"Token response has an invalid expiry: {expires_in!r}",
                status=status,
                body=payload,
            ) from e

        return TokenRecord(access_token=access_token, expires_at=expires_at)

    async def aclose(self) -> None:
        """Close the token client if this manager created it."""
        if self._own_client:
            await self._client.aclose()

    async def __aenter__(self) -> TokenManager:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()


# Name used by generated SDKs for the auth provider
OAuth2 = TokenManager
