"""Access token refresh against the SpecManager auth service"""

import json
import logging
from typing import Optional

import httpx

from utils.http import default_timeout
from .token_store import TokenStore

logger = logging.getLogger(__name__)


async def refresh_tokens(
    tokens: TokenStore,
    api_base: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[str]:
    """Exchange the stored refresh token for a new token pair

    A rejection from the refresh endpoint is treated as an invalid refresh
    token and clears the whole session. Network and parse failures leave
    the stored tokens alone.

    Args:
        tokens: Token store holding the refresh token
        api_base: Base URL of the SpecManager service
        transport: Optional httpx transport (tests)

    Returns:
        The new access token, or None if refresh was not possible
    """
    refresh_token = tokens.get_refresh_token()
    if not refresh_token:
        logger.warning("[Auth] No refresh token available for refresh")
        return None

    logger.info("[Auth] Attempting to refresh access token...")
    try:
        async with httpx.AsyncClient(timeout=default_timeout(), transport=transport) as client:
            response = await client.post(
                f"{api_base.rstrip('/')}/api/auth/refresh",
                json={"refreshToken": refresh_token},
                headers={"Content-Type": "application/json"},
            )

            if not response.is_success:
                logger.error(f"[Auth] Token refresh rejected with status {response.status_code}, clearing session")
                tokens.clear_tokens()
                return None

            payload = response.json()

    except httpx.HTTPError as e:
        logger.error(f"[Auth] Token refresh request failed: {e}")
        return None
    except json.JSONDecodeError as e:
        logger.error(f"[Auth] Failed to parse token refresh response: {e}")
        return None

    access_token = payload.get("accessToken") if isinstance(payload, dict) else None
    if not isinstance(access_token, str) or not access_token:
        logger.error("[Auth] Token refresh response missing access token")
        return None

    # The server may rotate the refresh token
    new_refresh_token = payload.get("refreshToken") or refresh_token
    tokens.save_tokens(access_token, new_refresh_token)

    logger.info("[Auth] Successfully refreshed access token")
    return access_token
