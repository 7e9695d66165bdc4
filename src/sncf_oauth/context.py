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
Request context abstraction: what the driver needs from the hosting web framework.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class HttpContext(Protocol):
    """
    The slice of an incoming HTTP request/response the OAuth2 flow relies on.

    Framework adapters implement this on top of their own request objects.
    """

    def query_param(self, name: str) -> str | None:
        """Returns a query-string value of the inbound request, or None."""
        ...

    def get_cookie(self, name: str) -> str | None:
        """Returns a cookie sent with the inbound request, or None."""
        ...

    def set_cookie(self, name: str, value: str, max_age: int, httponly: bool = True) -> None:
        """Schedules a cookie on the outbound response."""
        ...

    def clear_cookie(self, name: str) -> None:
        """Schedules the removal of a cookie on the outbound response."""
        ...

    def redirect(self, url: str) -> None:
        """Turns the outbound response into a redirect to `url`."""
        ...


@dataclass
class SimpleHttpContext:
    """
    In-memory `HttpContext`.

    Inbound values are read from `query` and `cookies`. Outbound effects are recorded in
    `response_cookies` (None marks a cleared cookie), `cookie_options` (the `max_age` and
    `httponly` of each set cookie) and `redirect_location`.
    """

    query: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)
    response_cookies: dict[str, str | None] = field(default_factory=dict)
    cookie_options: dict[str, dict[str, Any]] = field(default_factory=dict)
    redirect_location: str | None = None

    def query_param(self, name: str) -> str | None:
        return self.query.get(name)

    def get_cookie(self, name: str) -> str | None:
        return self.cookies.get(name)

    def set_cookie(self, name: str, value: str, max_age: int, httponly: bool = True) -> None:
        self.response_cookies[name] = value
        self.cookie_options[name] = {"max_age": max_age, "httponly": httponly}

    def clear_cookie(self, name: str) -> None:
        self.response_cookies[name] = None
        self.cookie_options.pop(name, None)

    def redirect(self, url: str) -> None:
        self.redirect_location = url
