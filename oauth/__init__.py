"""Authentication and token session package for the SpecManager host"""

from .authorization import AuthorizationURLBuilder, generate_state
from .callback import AttemptStatus, OAuthCallbackCoordinator, OAUTH_STATE_KEY
from .session_manager import SessionManager
from .token_exchange import exchange_credentials
from .token_refresh import refresh_tokens
from .token_store import TokenStore, ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY

__all__ = [
    "AuthorizationURLBuilder",
    "generate_state",
    "AttemptStatus",
    "OAuthCallbackCoordinator",
    "OAUTH_STATE_KEY",
    "SessionManager",
    "exchange_credentials",
    "refresh_tokens",
    "TokenStore",
    "ACCESS_TOKEN_KEY",
    "REFRESH_TOKEN_KEY",
]
