"""External URI entry point: the browser redirect that finishes an OAuth login"""

import logging
from typing import Mapping, Optional

from oauth import SessionManager
from .sidebar import SidebarHost

logger = logging.getLogger(__name__)

OAUTH_CALLBACK_PATH = "oauth-callback"


class OAuthUriHandler:
    """Validates the redirect, stores the session and wakes up the pending login"""

    def __init__(self, session: SessionManager, sidebar: Optional[SidebarHost] = None):
        self.session = session
        self.sidebar = sidebar

    async def handle_uri(self, path: str, params: Mapping[str, str]) -> bool:
        """Process one redirect

        Args:
            path: URI path, with or without the leading slash
            params: Query parameters (token, state, error)

        Returns:
            True if the redirect was accepted and the session stored
        """
        # Params carry the token; only the path is logged
        logger.info(f"[OAuth] Received URI callback: {path}")
        if path.lstrip("/") != OAUTH_CALLBACK_PATH:
            logger.debug(f"[OAuth] Ignoring URI path {path}")
            return False

        coordinator = self.session.coordinator
        token = params.get("token")
        if not coordinator.on_callback(params.get("state"), token, params.get("error")):
            self._notify(f"OAuth failed: {coordinator.last_error}", "error")
            return False

        try:
            self.session.handle_oauth_callback(token)
        except OSError as e:
            logger.error(f"[OAuth] Failed to store session: {e}")
            coordinator.reject(str(e))
            self._notify(f"OAuth failed: {e}", "error")
            return False

        logger.info("[OAuth] Successfully authenticated via OAuth")
        coordinator.resolve()
        self._notify("Successfully logged in with GitHub!", "success")

        if self.sidebar is not None:
            await self.sidebar.notify_auth_success()
        return True

    def _notify(self, message: str, level: str):
        if self.sidebar is not None:
            self.sidebar.send_notification(message, level)
