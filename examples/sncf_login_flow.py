import asyncio
import os
import sys

# Add src to path for running directly
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))

import httpx

from sncf_oauth import SimpleHttpContext, SncfDriver, SncfOAuthError, configure_logging, load_config


async def main() -> None:
    """
    Walks through the SNCF login flow against the recette IDP.

    - Step 1 builds the authorization URL and the signed state cookie.
    - Step 2 fetches the profile for an access token passed in SNCF_ACCESS_TOKEN, if any.
    """
    configure_logging()
    print(">>> Starting SNCF login flow example")

    config = load_config(
        client_id=os.environ.get("SNCF_OAUTH_CLIENT_ID", "demo-client"),
        client_secret=os.environ.get("SNCF_OAUTH_CLIENT_SECRET", "demo-secret"),
        callback_url="https://localhost:8000/auth/sncf/callback",
        env="rec",
        scopes=["openid", "email", "profile", "manager"],
    )

    async with httpx.AsyncClient(timeout=5.0) as client:
        ctx = SimpleHttpContext()
        driver = SncfDriver(ctx, config, client=client)

        url = driver.redirect()
        print(f">>> Redirect the browser to: {url}")
        print(f">>> State cookie to set: {ctx.response_cookies[driver.state_cookie_name]}")

        token = os.environ.get("SNCF_ACCESS_TOKEN")
        if not token:
            print(">>> Set SNCF_ACCESS_TOKEN to fetch a profile.")
            return

        try:
            profile = await driver.user_from_token(token)
            print(f">>> Logged in as {profile.name} <{profile.email}>")
        except SncfOAuthError as e:
            print(f"!!! Login failed: {e}")


if __name__ == "__main__":
    asyncio.run(main())
