# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/sncf_oauth

"""
OAuth2 authorization-code flow mechanics used by the SNCF driver.

The engine knows the protocol (redirect URL, signed state cookie, code exchange,
authenticated GET). Provider specifics are supplied by the driver through hooks.
"""

import hashlib
import hmac
import json
import secrets
from collections.abc import Callable, Iterable
from typing import Any
from urllib.parse import urlencode

import httpx
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from pydantic import SecretStr

from sncf_oauth.context import HttpContext
from sncf_oauth.exceptions import ProviderResponseError
from sncf_oauth.models import Endpoints
from sncf_oauth.transport import safe_fetch
from sncf_oauth.utils.logger import logger


class RedirectRequest:
    """
    Builder for the authorization URL the user is redirected to.
    """

    def __init__(self, base_url: str, scope_param_name: str = "scope", scopes_separator: str = " ") -> None:
        self.base_url = base_url
        self.scope_param_name = scope_param_name
        self.scopes_separator = scopes_separator
        self.params: dict[str, str] = {}

    def param(self, key: str, value: str) -> "RedirectRequest":
        self.params[key] = value
        return self

    def clear_param(self, key: str) -> "RedirectRequest":
        self.params.pop(key, None)
        return self

    def scopes(self, scopes: Iterable[str]) -> "RedirectRequest":
        """Sets the scope parameter, joining the values with the separator."""
        self.params[self.scope_param_name] = self.scopes_separator.join(str(s) for s in scopes)
        return self

    def url(self) -> str:
        if not self.params:
            return self.base_url
        return f"{self.base_url}?{urlencode(self.params)}"


class ApiRequest:
    """
    A single outgoing call to the provider, customizable before it is sent.

    Attributes:
        url (str): Target URL.
        headers (dict[str, str]): Request headers.
        params (dict[str, str]): Query-string parameters.
        fields (dict[str, str]): Form fields (sent by `post`).
    """

    def __init__(self, client: httpx.AsyncClient, url: str) -> None:
        self.client = client
        self.url = url
        self.headers: dict[str, str] = {}
        self.params: dict[str, str] = {}
        self.fields: dict[str, str] = {}
        self.response_format = "json"

    def header(self, key: str, value: str) -> "ApiRequest":
        self.headers[key] = value
        return self

    def clear_header(self, key: str) -> "ApiRequest":
        self.headers.pop(key, None)
        return self

    def param(self, key: str, value: str) -> "ApiRequest":
        self.params[key] = value
        return self

    def clear_param(self, key: str) -> "ApiRequest":
        self.params.pop(key, None)
        return self

    def field(self, key: str, value: str) -> "ApiRequest":
        self.fields[key] = value
        return self

    def clear_field(self, key: str) -> "ApiRequest":
        self.fields.pop(key, None)
        return self

    def parse_as(self, response_format: str) -> "ApiRequest":
        """
        Selects how the body is decoded.

        Args:
            response_format: "json" or "text".
        """
        if response_format not in ("json", "text"):
            raise ValueError(f"Unsupported response format '{response_format}'")
        self.response_format = response_format
        return self

    async def get(self) -> Any:
        return await self._send("GET")

    async def post(self) -> Any:
        return await self._send("POST")

    async def _send(self, method: str) -> Any:
        """
        Sends the request and decodes the body.

        Raises:
            ProviderResponseError: If the status is not 2xx.
            ValueError: If the body is not valid JSON while JSON was requested.
            OversizedResponseError: If the body is too large.
            httpx.HTTPError: On network failure.
        """
        status_code, body = await safe_fetch(
            self.client,
            method,
            self.url,
            headers=self.headers,
            params=self.params,
            data=self.fields if method == "POST" else None,
        )
        text = body.decode("utf-8", errors="replace")
        if not 200 <= status_code < 300:
            raise ProviderResponseError(status_code, text)

        if self.response_format == "json":
            return json.loads(text)
        return text


class StateSigner:
    """
    Signs the CSRF state stored in the browser cookie with HMAC-SHA256.
    """

    def __init__(self, secret: SecretStr) -> None:
        self._key = secret.get_secret_value().encode("utf-8")

    def _digest(self, value: str) -> str:
        return hmac.new(self._key, value.encode("utf-8"), hashlib.sha256).hexdigest()

    def sign(self, value: str) -> str:
        return f"{value}.{self._digest(value)}"

    def unsign(self, signed: str) -> str | None:
        """
        Returns the original value, or None when the signature does not match.
        """
        value, sep, signature = signed.rpartition(".")
        if not sep or not value:
            return None
        if not hmac.compare_digest(signature.encode("utf-8"), self._digest(value).encode("utf-8")):
            return None
        return value


class OAuth2Engine:
    """
    Drives the generic parts of the OAuth2 authorization-code flow for one request.

    Attributes:
        ctx (HttpContext): The current request/response.
        endpoints (Endpoints): Provider URLs.
        is_stateless (bool): When True, no state cookie is issued or verified.
    """

    code_param_name = "code"
    error_param_name = "error"
    state_param_name = "state"
    scope_param_name = "scope"
    scopes_separator = " "

    def __init__(
        self,
        ctx: HttpContext,
        *,
        endpoints: Endpoints,
        client_id: str,
        client_secret: SecretStr,
        callback_url: str,
        state_cookie_name: str,
        state_secret: SecretStr,
        state_cookie_max_age: int = 600,
        client: httpx.AsyncClient | None = None,
        http_timeout: float | None = None,
    ) -> None:
        """
        Initialize the OAuth2Engine.

        Args:
            ctx: The request context of the current authentication attempt.
            endpoints: Authorize, token and user-info URLs.
            client_id: OAuth2 client ID.
            client_secret: OAuth2 client secret.
            callback_url: Redirect URI registered with the provider.
            state_cookie_name: Name of the cookie holding the signed state.
            state_secret: Key used to sign the state cookie.
            state_cookie_max_age: Cookie lifetime in seconds.
            client: External async client (optional). If not provided, one is created on first use and owned.
            http_timeout: Timeout for the owned client. None keeps httpx defaults.
        """
        self.ctx = ctx
        self.endpoints = endpoints
        self.client_id = client_id
        self.client_secret = client_secret
        self.callback_url = callback_url
        self.state_cookie_name = state_cookie_name
        self.state_cookie_max_age = state_cookie_max_age
        self.signer = StateSigner(state_secret)
        self.is_stateless = False
        self._state: str | None = None
        self._client = client
        self._internal_client = client is None
        self._http_timeout = http_timeout

    async def __aenter__(self) -> "OAuth2Engine":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Closes the HTTP client if this engine created it."""
        if self._internal_client and self._client is not None:
            await self._client.aclose()

    @property
    def client(self) -> httpx.AsyncClient:
        """
        The HTTP client used for outbound calls.

        An owned client is only created on first use, and created again if it was closed.
        """
        if self._client is None or (self._internal_client and self._client.is_closed):
            kwargs: dict[str, Any] = {} if self._http_timeout is None else {"timeout": self._http_timeout}
            self._client = httpx.AsyncClient(**kwargs)
            # Instrument the client for distributed tracing
            HTTPXClientInstrumentor().instrument_client(self._client)
        return self._client

    def load_state(self) -> None:
        """
        Restores the state issued by a previous redirect and clears its cookie.

        A cookie with an invalid signature is treated as absent.
        """
        if self.is_stateless:
            return
        raw = self.ctx.get_cookie(self.state_cookie_name)
        self._state = self.signer.unsign(raw) if raw else None
        self.ctx.clear_cookie(self.state_cookie_name)

    def redirect_url(self, configure: Callable[[RedirectRequest], None] | None = None) -> str:
        """
        Builds the authorization URL and issues the state cookie.

        Args:
            configure: Hook invoked with the request before the state is attached.

        Returns:
            str: The URL to redirect the user to.
        """
        request = RedirectRequest(self.endpoints.authorize_url, self.scope_param_name, self.scopes_separator)
        request.param("client_id", self.client_id)
        request.param("redirect_uri", self.callback_url)

        if configure is not None:
            configure(request)

        if not self.is_stateless:
            state = secrets.token_urlsafe(32)
            self.ctx.set_cookie(
                self.state_cookie_name,
                self.signer.sign(state),
                max_age=self.state_cookie_max_age,
                httponly=True,
            )
            request.param(self.state_param_name, state)

        return request.url()

    def state_mismatch(self) -> bool:
        """
        Tells if the callback state is missing or differs from the one stored in the cookie.
        """
        if self.is_stateless:
            return False
        received = self.ctx.query_param(self.state_param_name)
        if not self._state or not received:
            return True
        return not hmac.compare_digest(self._state.encode("utf-8"), received.encode("utf-8"))

    def get_code(self) -> str | None:
        return self.ctx.query_param(self.code_param_name)

    def has_code(self) -> bool:
        return bool(self.get_code())

    def get_error(self) -> str | None:
        return self.ctx.query_param(self.error_param_name)

    def has_error(self) -> bool:
        return bool(self.get_error())

    def api_request(self, url: str) -> ApiRequest:
        return ApiRequest(self.client, url)

    async def exchange_code(self, code: str, configure: Callable[[ApiRequest], None] | None = None) -> Any:
        """
        POSTs the authorization code to the token endpoint.

        The body carries the standard authorization-code grant fields, including the
        client credentials; `configure` may rewrite headers and fields before sending.

        Args:
            code: The authorization code received on the callback.
            configure: Hook invoked with the token request before it is sent.

        Returns:
            Any: The decoded JSON body.

        Raises:
            ProviderResponseError: If the token endpoint does not answer 2xx.
            ValueError: If the body is not JSON.
            httpx.HTTPError: On network failure.
        """
        request = self.api_request(self.endpoints.token_url)
        request.field("grant_type", "authorization_code")
        request.field("redirect_uri", self.callback_url)
        request.field("client_id", self.client_id)
        request.field("client_secret", self.client_secret.get_secret_value())
        request.field("code", code)
        request.header("Accept", "application/json")

        if configure is not None:
            configure(request)

        logger.debug(f"Exchanging authorization code at {self.endpoints.token_url}")
        return await request.post()
