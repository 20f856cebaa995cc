"""Token pair persistence on top of the secret store"""

import logging
from typing import Optional

from utils.storage import SecretStore

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "specmanager.accessToken"
REFRESH_TOKEN_KEY = "specmanager.refreshToken"


class TokenStore:
    """Owns the access/refresh token pair inside a SecretStore

    No access token means the session is unauthenticated. The refresh
    token may exist on its own and is the only input to a refresh.
    """

    def __init__(self, secrets: SecretStore):
        self.secrets = secrets

    def save_tokens(self, access_token: str, refresh_token: Optional[str] = None):
        """Replace the stored pair in one write

        A missing refresh token removes any previously stored one.
        """
        if refresh_token:
            self.secrets.store_many({ACCESS_TOKEN_KEY: access_token, REFRESH_TOKEN_KEY: refresh_token})
        else:
            self.secrets.store_many({ACCESS_TOKEN_KEY: access_token}, remove=[REFRESH_TOKEN_KEY])
        logger.info("[Auth] Tokens stored securely")

    def get_access_token(self) -> Optional[str]:
        return self.secrets.get(ACCESS_TOKEN_KEY)

    def get_refresh_token(self) -> Optional[str]:
        return self.secrets.get(REFRESH_TOKEN_KEY)

    def clear_tokens(self):
        self.secrets.delete_many([ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY])
        logger.info("[Auth] Tokens cleared")

    def has_access_token(self) -> bool:
        return self.get_access_token() is not None
