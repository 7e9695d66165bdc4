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
Custom exceptions for the sncf-oauth package.
"""


class SncfOAuthError(Exception):
    """Base exception for all sncf-oauth errors."""


class ConfigurationError(SncfOAuthError):
    """Raised when the driver configuration is missing or invalid."""


class AccessDeniedError(SncfOAuthError):
    """
    Raised when the user refused the authorization request (`error=user_denied`).
    Recoverable: the application should offer to retry or to log in another way.
    """


class StateMismatchError(SncfOAuthError):
    """Raised when the CSRF state cookie is missing or does not match the callback state."""


class ProviderResponseError(SncfOAuthError):
    """Raised when the provider answers with a non-success HTTP status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Provider responded with HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class OversizedResponseError(SncfOAuthError):
    """Raised when an HTTP response is too large."""


class OAuthExchangeError(SncfOAuthError):
    """
    Raised when the authorization code cannot be exchanged for an access token.

    Attributes:
        status_code (int | None): HTTP status of the token endpoint, when one was received.
        detail (str | None): Raw error detail reported by the provider.
    """

    def __init__(self, message: str, status_code: int | None = None, detail: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class UserInfoFetchError(SncfOAuthError):
    """
    Raised when the user-info endpoint call fails (network, non-2xx, malformed JSON).

    Attributes:
        status_code (int | None): HTTP status of the user-info endpoint, when one was received.
        detail (str | None): Raw response body, when available.
    """

    def __init__(self, message: str, status_code: int | None = None, detail: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail
