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
Bounded HTTP fetching for IDP calls.
"""

from typing import Any

import httpx

from sncf_oauth.exceptions import OversizedResponseError

MAX_RESPONSE_BYTES = 1_000_000


async def safe_fetch(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, str] | None = None,
    data: dict[str, str] | None = None,
    max_bytes: int = MAX_RESPONSE_BYTES,
) -> tuple[int, bytes]:
    """
    Performs a request and reads the body, refusing responses larger than `max_bytes`.

    The status code is returned as is; callers decide what counts as a failure.

    Args:
        client: The async HTTP client to use.
        method: HTTP method.
        url: Target URL (without query string).
        headers: Request headers.
        params: Query-string parameters.
        data: Form fields, sent url-encoded.
        max_bytes: Maximum accepted body size.

    Returns:
        tuple[int, bytes]: The status code and the raw body.

    Raises:
        OversizedResponseError: If the body exceeds `max_bytes`.
        httpx.HTTPError: On network failure.
    """
    kwargs: dict[str, Any] = {"headers": headers or {}}
    if params:
        kwargs["params"] = params
    if data is not None:
        kwargs["data"] = data

    async with client.stream(method, url, **kwargs) as response:
        content_length = response.headers.get("Content-Length")
        if content_length:
            try:
                if int(content_length) > max_bytes:
                    raise OversizedResponseError("Response too large")
            except ValueError:
                pass

        content = bytearray()
        async for chunk in response.aiter_bytes():
            content.extend(chunk)
            if len(content) > max_bytes:
                raise OversizedResponseError("Response too large")

        return response.status_code, bytes(content)
