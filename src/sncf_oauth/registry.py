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
Pluggable registry of social-login drivers, keyed by name.
"""

from collections.abc import Callable
from typing import Any

import httpx

from sncf_oauth.context import HttpContext
from sncf_oauth.driver import SncfDriver
from sncf_oauth.exceptions import ConfigurationError

DriverFactory = Callable[[HttpContext, Any], Any]


class DriverRegistry:
    """
    Maps driver names to factories building a driver for one request.
    """

    def __init__(self) -> None:
        self._factories: dict[str, DriverFactory] = {}

    def extend(self, name: str, factory: DriverFactory) -> None:
        """
        Registers (or replaces) the factory for `name`.

        Args:
            name: The driver identifier, as used in configuration.
            factory: Callable taking `(ctx, config)` and returning a driver instance.
        """
        self._factories[name] = factory

    def names(self) -> list[str]:
        return sorted(self._factories)

    def use(self, name: str, ctx: HttpContext, config: Any) -> Any:
        """
        Builds the driver registered under `name` for the current request.

        Raises:
            ConfigurationError: If no driver is registered under `name`.
        """
        factory = self._factories.get(name)
        if factory is None:
            raise ConfigurationError(f"No social-login driver registered under '{name}'")
        return factory(ctx, config)


def register_sncf_driver(target: DriverRegistry, client: httpx.AsyncClient | None = None) -> None:
    """
    Registers the SNCF driver under its name.

    Args:
        target: The registry to extend.
        client: Async client shared by every driver built by the factory (optional).
            Without it, each driver owns a client created on its first outbound call.
    """
    target.extend(SncfDriver.name, lambda ctx, config: SncfDriver(ctx, config, client=client))


registry = DriverRegistry()
register_sncf_driver(registry)
