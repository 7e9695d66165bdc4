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
OAuth2 social login driver for the SNCF identity provider.
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .config import SncfDriverConfig, load_config
from .context import HttpContext, SimpleHttpContext
from .driver import SncfDriver
from .endpoints import endpoints_for
from .engine import ApiRequest, OAuth2Engine, RedirectRequest
from .exceptions import (
    AccessDeniedError,
    ConfigurationError,
    OAuthExchangeError,
    SncfOAuthError,
    StateMismatchError,
    UserInfoFetchError,
)
from .models import AccessToken, BearerToken, Endpoints, SncfEnvironment, SncfScope, UserProfile
from .registry import DriverRegistry, register_sncf_driver, registry
from .utils.logger import configure_logging

__all__ = [
    "AccessDeniedError",
    "AccessToken",
    "ApiRequest",
    "BearerToken",
    "ConfigurationError",
    "DriverRegistry",
    "Endpoints",
    "HttpContext",
    "OAuth2Engine",
    "OAuthExchangeError",
    "RedirectRequest",
    "SimpleHttpContext",
    "SncfDriver",
    "SncfDriverConfig",
    "SncfEnvironment",
    "SncfOAuthError",
    "SncfScope",
    "StateMismatchError",
    "UserInfoFetchError",
    "UserProfile",
    "configure_logging",
    "endpoints_for",
    "load_config",
    "register_sncf_driver",
    "registry",
]
