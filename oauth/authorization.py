"""OAuth authorization URL construction for the external provider login"""

import logging
import secrets
import webbrowser
from typing import Callable, Optional
from urllib.parse import urlencode

from settings import OAUTH_REDIRECT_TARGET

logger = logging.getLogger(__name__)

STATE_BYTES = 32


def generate_state() -> str:
    """Cryptographically random one-time correlation state (hex encoded)"""
    return secrets.token_hex(STATE_BYTES)


def open_in_browser(url: str) -> bool:
    """Open a URL in the default browser

    Returns:
        True if a browser was launched
    """
    return webbrowser.open(url)


class AuthorizationURLBuilder:
    """Builds the provider authorization URL and opens it"""

    def __init__(self, open_url: Optional[Callable[[str], bool]] = None):
        """Initialize authorization URL builder

        Args:
            open_url: Callable used to open the URL (defaults to the system browser)
        """
        self.open_url = open_url or open_in_browser

    def get_authorize_url(self, api_base: str, state: str) -> str:
        """Construct the provider authorize URL

        Args:
            api_base: Base URL of the SpecManager service
            state: One-time correlation state for this attempt

        Returns:
            Full authorization URL
        """
        params = {
            "state": state,
            "redirect": OAUTH_REDIRECT_TARGET,
        }
        return f"{api_base.rstrip('/')}/api/auth/github?{urlencode(params)}"

    def start_login_flow(self, api_base: str, state: str) -> str:
        """Open the authorization URL in the browser

        Returns:
            Authorization URL that was opened
        """
        auth_url = self.get_authorize_url(api_base, state)

        if self.open_url(auth_url):
            logger.info("[OAuth] Browser opened for authorization")
        else:
            # State is in the URL, so only the base is useful in the log
            logger.warning(f"[OAuth] Could not open browser automatically, open {api_base}/api/auth/github manually")

        return auth_url
