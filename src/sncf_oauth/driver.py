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
SncfDriver component: OAuth2 social login against the SNCF identity provider.
"""

import base64
from collections.abc import Callable, Mapping
from typing import Any

import httpx
from opentelemetry import trace
from pydantic import ValidationError

from sncf_oauth.config import SncfDriverConfig, load_config
from sncf_oauth.context import HttpContext
from sncf_oauth.endpoints import endpoints_for
from sncf_oauth.engine import ApiRequest, OAuth2Engine, RedirectRequest
from sncf_oauth.exceptions import (
    AccessDeniedError,
    OAuthExchangeError,
    OversizedResponseError,
    ProviderResponseError,
    StateMismatchError,
    UserInfoFetchError,
)
from sncf_oauth.models import DEFAULT_SCOPES, AccessToken, BearerToken, UserProfile
from sncf_oauth.utils.logger import logger

tracer = trace.get_tracer(__name__)

RequestCallback = Callable[[ApiRequest], None]


class SncfDriver:
    """
    OAuth2 driver for the SNCF IDP, bound to a single authentication request.

    Provider specifics (endpoints, scopes, client authentication, profile mapping)
    live here; the protocol mechanics are delegated to an `OAuth2Engine`.

    Attributes:
        ctx (HttpContext): The current request/response.
        config (SncfDriverConfig): The driver configuration.
        endpoints (Endpoints): URLs resolved from `config.env`.
        engine (OAuth2Engine): The flow engine.
    """

    name = "sncf"
    state_cookie_name = "sncf_oauth_state"
    denied_error = "user_denied"

    def __init__(
        self,
        ctx: HttpContext,
        config: SncfDriverConfig | Mapping[str, Any],
        engine: OAuth2Engine | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the SncfDriver.

        Args:
            ctx: The request context of the current authentication attempt.
            config: The driver configuration, or a mapping validated into one.
            engine: Pre-built engine (optional). Built from the config when omitted.
            client: External async client for the built engine (optional).

        Raises:
            ConfigurationError: If the configuration is invalid.
        """
        if not isinstance(config, SncfDriverConfig):
            config = load_config(**config)

        self.ctx = ctx
        self.config = config
        self.endpoints = endpoints_for(config.env, config.issuer)
        self.engine = engine or OAuth2Engine(
            ctx,
            endpoints=self.endpoints,
            client_id=config.client_id,
            client_secret=config.client_secret,
            callback_url=config.callback_url,
            state_cookie_name=self.state_cookie_name,
            state_secret=config.state_secret,
            state_cookie_max_age=config.state_cookie_max_age,
            client=client,
            http_timeout=config.http_timeout,
        )

        # Clears the state set by the redirect request. Must stay last.
        self.engine.load_state()

    async def __aenter__(self) -> "SncfDriver":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.engine.aclose()

    def stateless(self) -> "SncfDriver":
        """
        Disables CSRF state handling for this instance.
        """
        self.engine.is_stateless = True
        return self

    def _configure_redirect_request(self, request: RedirectRequest) -> None:
        request.scopes(self.config.scopes or DEFAULT_SCOPES)
        request.param("response_type", "code")

    def _configure_access_token_request(self, request: ApiRequest) -> None:
        # The IDP only accepts client credentials through HTTP Basic authentication
        credentials = f"{self.config.client_id}:{self.config.client_secret.get_secret_value()}"
        encoded = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
        request.header("Content-Type", "application/x-www-form-urlencoded")
        request.header("Authorization", f"Basic {encoded}")
        request.clear_field("client_id")
        request.clear_field("client_secret")

    def redirect_url(self, callback: Callable[[RedirectRequest], None] | None = None) -> str:
        """
        Builds the authorization URL.

        Args:
            callback: Invoked with the redirect request after the driver defaults are applied.

        Returns:
            str: The URL to send the user to.
        """

        def configure(request: RedirectRequest) -> None:
            self._configure_redirect_request(request)
            if callback is not None:
                callback(request)

        return self.engine.redirect_url(configure)

    def redirect(self, callback: Callable[[RedirectRequest], None] | None = None) -> str:
        """
        Redirects the current response to the authorization URL.

        Returns:
            str: The URL the response now points to.
        """
        url = self.redirect_url(callback)
        logger.debug(f"Redirecting to SNCF authorize endpoint ({self.config.env})")
        self.ctx.redirect(url)
        return url

    def access_denied(self) -> bool:
        return self.ctx.query_param("error") == self.denied_error

    def state_mismatch(self) -> bool:
        return self.engine.state_mismatch()

    def has_error(self) -> bool:
        return self.engine.has_error()

    def get_error(self) -> str | None:
        return self.engine.get_error()

    def has_code(self) -> bool:
        return self.engine.has_code()

    def get_code(self) -> str | None:
        return self.engine.get_code()

    async def access_token(self, callback: RequestCallback | None = None) -> AccessToken:
        """
        Exchanges the callback authorization code for an access token.

        Args:
            callback: Invoked with the token request after the driver defaults are applied.

        Returns:
            AccessToken: The token issued by the IDP.

        Raises:
            AccessDeniedError: If the user refused the authorization.
            StateMismatchError: If the CSRF state is missing or does not match.
            OAuthExchangeError: If the callback carries an error or no code, or the exchange fails.
        """
        if self.has_error():
            if self.access_denied():
                raise AccessDeniedError("The user denied the authorization request.")
            error = self.get_error()
            raise OAuthExchangeError(f"The provider returned an error: {error}", detail=error)

        if self.state_mismatch():
            raise StateMismatchError("Unable to verify the OAuth state. Missing or mismatched state cookie.")

        code = self.get_code()
        if not code:
            raise OAuthExchangeError("The callback request has no authorization code.")

        def configure(request: ApiRequest) -> None:
            self._configure_access_token_request(request)
            if callback is not None:
                callback(request)

        with tracer.start_as_current_span("sncf.exchange_code"):
            try:
                data = await self.engine.exchange_code(code, configure)
            except ProviderResponseError as e:
                raise OAuthExchangeError(
                    f"Token endpoint responded with HTTP {e.status_code}",
                    status_code=e.status_code,
                    detail=e.body,
                ) from e
            except (httpx.HTTPError, OversizedResponseError) as e:
                raise OAuthExchangeError(f"Failed to exchange the authorization code: {e}") from e
            except ValueError as e:
                raise OAuthExchangeError(f"Invalid JSON response from token endpoint: {e}") from e

            if not isinstance(data, dict) or not data.get("access_token"):
                raise OAuthExchangeError("Token endpoint response has no access_token.", detail=str(data))

            try:
                return AccessToken.from_response(data)
            except (ValidationError, TypeError, ValueError) as e:
                raise OAuthExchangeError(f"Invalid token response: {e}", detail=str(data)) from e

    def _get_authenticated_request(self, url: str, token: str) -> ApiRequest:
        request = self.engine.api_request(url)
        request.header("Authorization", f"Bearer {token}")
        request.header("Accept", "application/json")
        request.parse_as("json")
        return request

    async def _get_user_info(self, token: str, callback: RequestCallback | None) -> dict[str, Any]:
        """
        Fetches the raw user-info payload.

        Raises:
            UserInfoFetchError: On network error, non-2xx status or a body that is not a JSON object.
        """
        request = self._get_authenticated_request(self.endpoints.user_info_url, token)
        if callback is not None:
            callback(request)

        with tracer.start_as_current_span("sncf.fetch_user_info"):
            try:
                body = await request.get()
            except ProviderResponseError as e:
                raise UserInfoFetchError(
                    f"User-info endpoint responded with HTTP {e.status_code}",
                    status_code=e.status_code,
                    detail=e.body,
                ) from e
            except (httpx.HTTPError, OversizedResponseError) as e:
                raise UserInfoFetchError(f"Failed to fetch user info: {e}") from e
            except ValueError as e:
                raise UserInfoFetchError(f"Invalid JSON response from user-info endpoint: {e}") from e

        if not isinstance(body, dict):
            raise UserInfoFetchError("User-info response is not a JSON object.", detail=str(body))
        return body

    @staticmethod
    def _to_profile(body: dict[str, Any], token: AccessToken | BearerToken) -> UserProfile:
        """
        Maps the raw SNCF payload to a `UserProfile`.

        The e-mail is read from `Mail`, the field name the IDP actually uses.
        """
        if body.get("sub") is None:
            raise UserInfoFetchError("User-info response has no 'sub'.", detail=str(body))

        full_name = f"{body.get('family_name') or ''} {body.get('first_name') or ''}".strip()
        display_name = body.get("displayName")
        mail = body.get("Mail")

        return UserProfile(
            id=str(body["sub"]),
            nick_name=str(display_name) if display_name is not None else full_name,
            name=full_name,
            email=str(mail) if mail is not None else None,
            original=body,
            token=token,
        )

    async def user(self, callback: RequestCallback | None = None) -> UserProfile:
        """
        Completes the flow: exchanges the code, then fetches the user profile.

        An HTTP client owned by the engine is closed once the flow ends.

        Args:
            callback: Invoked with the token request and with the user-info request,
                each right before it is sent.

        Returns:
            UserProfile: The normalized profile, carrying the `AccessToken`.

        Raises:
            AccessDeniedError, StateMismatchError, OAuthExchangeError: From the code exchange.
            UserInfoFetchError: If the user-info call fails.
        """
        try:
            token = await self.access_token(callback)
            body = await self._get_user_info(token.token, callback)
        finally:
            await self.engine.aclose()
        logger.debug("SNCF user profile fetched after code exchange")
        return self._to_profile(body, token)

    async def user_from_token(self, access_token: str, callback: RequestCallback | None = None) -> UserProfile:
        """
        Fetches the user profile with an already obtained bearer token.

        No code exchange happens; the returned token is `BearerToken(token=access_token)`.
        An HTTP client owned by the engine is closed once the call ends.

        Raises:
            UserInfoFetchError: If the user-info call fails.
        """
        try:
            body = await self._get_user_info(access_token, callback)
        finally:
            await self.engine.aclose()
        logger.debug("SNCF user profile fetched from existing token")
        return self._to_profile(body, BearerToken(token=access_token))
