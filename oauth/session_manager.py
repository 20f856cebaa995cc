"""Credential session manager: login, refresh, validation and logout"""

import logging
from typing import Any, Callable, Dict, Optional

import httpx

from settings import API_VERSION_PREFIX, OAUTH_TIMEOUT
from utils.http import default_timeout
from utils.storage import SecretStore, StateStore
from .authorization import AuthorizationURLBuilder
from .callback import OAuthCallbackCoordinator
from .token_exchange import exchange_credentials
from .token_refresh import refresh_tokens
from .token_store import TokenStore

logger = logging.getLogger(__name__)


class SessionManager:
    """Owns the token session

    This class orchestrates:
    - Password login
    - External provider (OAuth redirect) login through the callback coordinator
    - Token refresh, with refresh rejection treated as a full logout
    - Token validation against the "who am I" endpoint
    """

    def __init__(
        self,
        secrets: SecretStore,
        state_store: StateStore,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        open_url: Optional[Callable[[str], bool]] = None,
        oauth_timeout: float = OAUTH_TIMEOUT,
    ):
        self.tokens = TokenStore(secrets)
        self.transport = transport
        self.coordinator = OAuthCallbackCoordinator(
            self.tokens,
            state_store,
            url_builder=AuthorizationURLBuilder(open_url),
            timeout=oauth_timeout,
        )

    # Token access
    def is_authenticated(self) -> bool:
        """True iff an access token is stored. No network call."""
        return self.tokens.has_access_token()

    def get_access_token(self) -> Optional[str]:
        return self.tokens.get_access_token()

    def get_refresh_token(self) -> Optional[str]:
        return self.tokens.get_refresh_token()

    def store_tokens(self, access_token: str, refresh_token: Optional[str] = None):
        self.tokens.save_tokens(access_token, refresh_token)

    def logout(self):
        """Delete both tokens unconditionally"""
        self.tokens.clear_tokens()

    # Login
    async def login_with_credentials(self, api_base: str, email: str, password: str) -> Dict[str, Any]:
        """Password login

        Returns:
            Dict with access_token and the raw user payload

        Raises:
            AuthError: With the server message, or "Login failed"
        """
        return await exchange_credentials(self.tokens, api_base, email, password, transport=self.transport)

    async def login_with_external_provider(self, api_base: str) -> Dict[str, Any]:
        """Browser based login; waits for the redirect handled by the coordinator

        Returns:
            Dict with access_token

        Raises:
            AuthError: On redirect error, state mismatch or timeout
        """
        return await self.coordinator.start(api_base)

    def handle_oauth_callback(self, access_token: str, refresh_token: Optional[str] = None):
        """Store the session delivered by the OAuth redirect"""
        self.store_tokens(access_token, refresh_token)

    # Refresh / validation
    async def refresh(self, api_base: str) -> Optional[str]:
        """Refresh the access token

        Returns:
            New access token, or None (no refresh token, rejection, or failure)
        """
        try:
            return await refresh_tokens(self.tokens, api_base, transport=self.transport)
        except Exception as e:
            logger.error(f"[Auth] Token refresh failed with exception: {e}")
            return None

    async def validate(self, api_base: str) -> bool:
        """Check the stored access token with one authenticated request

        A 401 triggers exactly one refresh; any other failure reports False
        without touching the stored session.
        """
        access_token = self.get_access_token()
        if not access_token:
            return False

        try:
            async with httpx.AsyncClient(timeout=default_timeout(), transport=self.transport) as client:
                response = await client.get(
                    f"{api_base.rstrip('/')}{API_VERSION_PREFIX}/me",
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as e:
            logger.error(f"[Auth] Token validation failed: {e}")
            return False

        if response.status_code == 401:
            logger.info("[Auth] Access token rejected, trying refresh")
            return await self.refresh(api_base) is not None

        return response.is_success
