"""Password-grant login against the SpecManager auth service"""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from errors import AuthError
from utils.http import default_timeout, error_message_from_response
from .token_store import TokenStore

logger = logging.getLogger(__name__)


async def exchange_credentials(
    tokens: TokenStore,
    api_base: str,
    email: str,
    password: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """Log in with email/password and persist the returned token pair

    Args:
        tokens: Token store receiving the new session
        api_base: Base URL of the SpecManager service
        email: Account identifier
        password: Account secret
        transport: Optional httpx transport (tests)

    Returns:
        Dict with access_token and the raw user payload

    Raises:
        AuthError: On rejection, transport failure or malformed response
    """
    try:
        async with httpx.AsyncClient(timeout=default_timeout(), transport=transport) as client:
            response = await client.post(
                f"{api_base.rstrip('/')}/api/auth/login",
                json={"email": email, "password": password},
                headers={"Content-Type": "application/json"},
            )
    except httpx.HTTPError as e:
        logger.error(f"[Auth] Login request failed: {e}")
        raise AuthError(f"Login failed: {e}") from e

    if not response.is_success:
        message = error_message_from_response(response, "message")
        logger.warning(f"[Auth] Login rejected with status {response.status_code}")
        raise AuthError(message or "Login failed")

    try:
        login_data = response.json()
        access_token = login_data["tokens"]["accessToken"]
        refresh_token = login_data["tokens"].get("refreshToken")
    except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
        logger.error(f"[Auth] Malformed login response: {e}")
        raise AuthError("Login failed") from e

    if not isinstance(access_token, str) or not access_token:
        raise AuthError("Login failed")

    tokens.save_tokens(access_token, refresh_token)

    return {
        "access_token": access_token,
        "user": login_data.get("user"),
    }
