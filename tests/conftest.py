# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/sncf_oauth

import json
from collections.abc import Callable
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest
from pydantic import SecretStr

from sncf_oauth.config import SncfDriverConfig
from sncf_oauth.context import SimpleHttpContext
from sncf_oauth.engine import StateSigner

CLIENT_ID = "my-client"
CLIENT_SECRET = "my-secret"
CALLBACK_URL = "https://app.example.com/auth/sncf/callback"
STATE_SECRET = "test-state-secret"
KNOWN_STATE = "known-state-value"

TOKEN_RESPONSE: dict[str, Any] = {
    "access_token": "at-123",
    "refresh_token": "rt-456",
    "scope": "openid email profile",
    "id_token": "header.payload.signature",
    "token_type": "Bearer",
    "expires_in": 3599,
}

USER_INFO: dict[str, Any] = {
    "sub": "u1",
    "family_name": "Doe",
    "first_name": "Jane",
    "Mail": "j@x.com",
}


class RecordingIdp:
    """
    Fake SNCF IDP served through `httpx.MockTransport`, recording every request.
    """

    def __init__(
        self,
        token_status: int = 200,
        token_body: Any = None,
        user_status: int = 200,
        user_body: Any = None,
    ) -> None:
        self.token_status = token_status
        self.token_body = TOKEN_RESPONSE if token_body is None else token_body
        self.user_status = user_status
        self.user_body = USER_INFO if user_body is None else user_body
        self.requests: list[httpx.Request] = []

    @staticmethod
    def _response(status: int, body: Any) -> httpx.Response:
        if isinstance(body, (bytes, str)):
            return httpx.Response(status, content=body)
        return httpx.Response(status, content=json.dumps(body).encode("utf-8"))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/access_token"):
            return self._response(self.token_status, self.token_body)
        if request.url.path.endswith("/userinfo"):
            return self._response(self.user_status, self.user_body)
        return httpx.Response(404)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def calls_to(self, suffix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(suffix)]


def form_fields(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode("utf-8")).items()}


def signed_state(state: str = KNOWN_STATE, secret: str = STATE_SECRET) -> str:
    return StateSigner(SecretStr(secret)).sign(state)


@pytest.fixture
def make_config() -> Callable[..., SncfDriverConfig]:
    def _make(**overrides: Any) -> SncfDriverConfig:
        values: dict[str, Any] = {
            "client_id": CLIENT_ID,
            "client_secret": SecretStr(CLIENT_SECRET),
            "callback_url": CALLBACK_URL,
            "env": "prod",
            "state_secret": SecretStr(STATE_SECRET),
        }
        values.update(overrides)
        return SncfDriverConfig(**values)

    return _make


@pytest.fixture
def config(make_config: Callable[..., SncfDriverConfig]) -> SncfDriverConfig:
    return make_config()


@pytest.fixture
def idp() -> RecordingIdp:
    return RecordingIdp()


@pytest.fixture
def callback_ctx() -> SimpleHttpContext:
    """A callback request carrying a valid code and matching state."""
    return SimpleHttpContext(
        query={"code": "auth-code", "state": KNOWN_STATE},
        cookies={"sncf_oauth_state": signed_state()},
    )
