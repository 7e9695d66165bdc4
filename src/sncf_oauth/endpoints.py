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
Environment-aware resolution of the SNCF IDP endpoints.
"""

from sncf_oauth.models import Endpoints, SncfEnvironment

BASE_HOST = "idp.sncf.fr"

AUTHORIZE_URL = f"https://{BASE_HOST}/openam/oauth2/IDP/authorize"
TOKEN_URL = f"https://{BASE_HOST}/openam/oauth2/IDP/access_token"
USER_INFO_URL = f"https://{BASE_HOST}/openam/oauth2/IDP/userinfo"

# Non-production hosts are addressed with an explicit port
ENVIRONMENT_HOSTS: dict[str, str] = {
    SncfEnvironment.REC: "idp-rec.sncf.fr:443",
    SncfEnvironment.DEV: "idp-dev.sncf.fr:443",
}


def endpoints_for(env: str | None, issuer: str | None = None) -> Endpoints:
    """
    Computes the authorize, token and user-info URLs for an environment.

    `prod` keeps the base host. `rec` and `dev` swap it for their own host on all three URLs.
    Any other value, including an unset env with a custom `issuer`, keeps the base host:
    the issuer is accepted but not used.

    Args:
        env: The target environment.
        issuer: Reserved for a custom environment.

    Returns:
        Endpoints: The resolved URLs.
    """
    host = ENVIRONMENT_HOSTS.get(env, BASE_HOST) if env else BASE_HOST

    def _swap(url: str) -> str:
        return url.replace(BASE_HOST, host, 1)

    return Endpoints(
        authorize_url=_swap(AUTHORIZE_URL),
        token_url=_swap(TOKEN_URL),
        user_info_url=_swap(USER_INFO_URL),
    )
