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
Configuration for the sncf-oauth package.
"""

from typing import Any, Literal
from urllib.parse import urlparse

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sncf_oauth.exceptions import ConfigurationError
from sncf_oauth.models import SncfEnvironment, SncfScope


class SncfDriverConfig(BaseSettings):
    """
    Configuration settings for the SNCF driver.

    Attributes:
        driver (Literal["sncf"]): The driver identifier.
        client_id (str): The OAuth2 client ID registered with the SNCF IDP.
        client_secret (SecretStr): The OAuth2 client secret.
        callback_url (str): The redirect URI the IDP sends the user back to.
        env (SncfEnvironment): Which IDP deployment to talk to (prod, rec or dev).
        issuer (str | None): Reserved for a custom environment. Currently has no effect.
        scopes (list[SncfScope] | None): Scopes to request. Defaults to openid, email and profile.
        state_secret (SecretStr): Key used to sign the CSRF state cookie.
        state_cookie_max_age (int): Lifetime of the state cookie in seconds.
        http_timeout (float | None): Timeout for the internally created HTTP client.
    """

    model_config = SettingsConfigDict(
        env_prefix="SNCF_OAUTH_",
        case_sensitive=False,
        frozen=True,
    )

    driver: Literal["sncf"] = "sncf"
    client_id: str
    client_secret: SecretStr
    callback_url: str
    env: SncfEnvironment = SncfEnvironment.PROD
    issuer: str | None = None
    scopes: list[SncfScope] | None = None
    state_secret: SecretStr = SecretStr("sncf-oauth-unsafe-default-state-secret")
    state_cookie_max_age: int = Field(default=600, gt=0)
    http_timeout: float | None = Field(default=None, gt=0)

    @field_validator("client_id", "callback_url")
    @classmethod
    def not_blank(cls, v: str) -> str:
        """
        Rejects empty or whitespace-only values.
        """
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("client_secret")
    @classmethod
    def secret_not_blank(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("callback_url")
    @classmethod
    def validate_callback_url(cls, v: str) -> str:
        """
        Ensures the callback URL is absolute, since the IDP redirects the browser to it.
        """
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"'{v}' is not an absolute http(s) URL")
        return v


def load_config(**values: Any) -> SncfDriverConfig:
    """
    Builds a `SncfDriverConfig`, reading missing values from `SNCF_OAUTH_*` environment variables.

    Args:
        **values: Explicit configuration values.

    Returns:
        SncfDriverConfig: The validated configuration.

    Raises:
        ConfigurationError: If a required field is missing or a value is invalid.
    """
    try:
        return SncfDriverConfig(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid SNCF driver configuration: {e}") from e
