"""
Correlates the external OAuth browser redirect with the login attempt that started it.

The redirect arrives on a completely separate code path (the host's
``/oauth-callback`` route), so the attempt is kept as a pending future plus a
one-time state persisted in the durable state store.
"""
import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from errors import AuthError
from settings import OAUTH_TIMEOUT
from utils.storage import StateStore
from .authorization import AuthorizationURLBuilder, generate_state
from .token_store import TokenStore

logger = logging.getLogger(__name__)

OAUTH_STATE_KEY = "oauthState"

TIMEOUT_MESSAGE = "OAuth timeout - please try again"
NO_TOKEN_MESSAGE = "No token received"
STATE_MISMATCH_MESSAGE = "Invalid state parameter"
NO_PENDING_LOGIN_MESSAGE = "No login in progress"


class AttemptStatus(str, enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    TIMED_OUT = "timed-out"


@dataclass
class OAuthAttempt:
    """One in-flight external provider login"""
    state: str
    future: "asyncio.Future[Dict[str, Any]]"
    timeout_handle: Optional[asyncio.TimerHandle] = None


class OAuthCallbackCoordinator:
    """Owns the single pending OAuth attempt

    ``start`` returns a future that only settles through ``resolve``,
    ``reject`` or the timeout. Every terminal path runs ``_cleanup`` exactly
    once, which is the only place the timer is cancelled and the persisted
    state cleared.
    """

    def __init__(
        self,
        tokens: TokenStore,
        state_store: StateStore,
        url_builder: Optional[AuthorizationURLBuilder] = None,
        timeout: float = OAUTH_TIMEOUT,
    ):
        self.tokens = tokens
        self.state_store = state_store
        self.url_builder = url_builder or AuthorizationURLBuilder()
        self.timeout = timeout
        self._attempt: Optional[OAuthAttempt] = None
        self.last_outcome = AttemptStatus.IDLE
        self.last_error: Optional[str] = None

    @property
    def status(self) -> AttemptStatus:
        return AttemptStatus.PENDING if self._attempt else AttemptStatus.IDLE

    @property
    def stored_state(self) -> Optional[str]:
        return self.state_store.get(OAUTH_STATE_KEY)

    def start(self, api_base: str) -> "asyncio.Future[Dict[str, Any]]":
        """Begin a new attempt and open the provider authorization page

        A pending attempt is superseded: its timer is cancelled and its
        future is left unsettled.

        Returns:
            Future resolving to {"access_token": ...} or failing with AuthError
        """
        if self._attempt is not None:
            logger.info("[OAuth] Discarding previous pending attempt")
            self._cleanup()

        loop = asyncio.get_running_loop()
        state = generate_state()
        self.state_store.update(OAUTH_STATE_KEY, state)

        self.last_error = None
        attempt = OAuthAttempt(state=state, future=loop.create_future())
        attempt.timeout_handle = loop.call_later(self.timeout, self._on_timeout, attempt)
        self._attempt = attempt

        self.url_builder.start_login_flow(api_base, state)
        logger.info(f"[OAuth] Waiting up to {self.timeout}s for the browser redirect")
        return attempt.future

    def on_callback(self, received_state: Optional[str], token: Optional[str], error: Optional[str]) -> bool:
        """Validate an incoming redirect

        Rejects the pending attempt when the redirect carries an error, no
        token, or a state that differs from the stored one. A token arriving
        while no attempt is pending is refused.

        Returns:
            True if the caller should store ``token`` and then call ``resolve``
        """
        if error:
            logger.warning(f"[OAuth] Error received: {error}")
            self.reject(error)
            return False

        if not token:
            logger.warning("[OAuth] No token in callback")
            self.reject(NO_TOKEN_MESSAGE)
            return False

        stored_state = self.stored_state
        if stored_state and received_state != stored_state:
            logger.warning("[OAuth] State mismatch - possible CSRF attack")
            self.reject(STATE_MISMATCH_MESSAGE)
            return False

        if self._attempt is None:
            logger.warning("[OAuth] Token received with no login in progress")
            self.reject(NO_PENDING_LOGIN_MESSAGE)
            return False

        return True

    def resolve(self):
        """Settle the pending attempt with the now-stored access token"""
        attempt = self._attempt
        if attempt is None:
            self._cleanup()
            return

        access_token = self.tokens.get_access_token()
        if not attempt.future.done():
            if access_token:
                attempt.future.set_result({"access_token": access_token})
            else:
                attempt.future.set_exception(AuthError(NO_TOKEN_MESSAGE))
        self._cleanup(AttemptStatus.RESOLVED if access_token else AttemptStatus.REJECTED)

    def reject(self, message: str):
        """Fail the pending attempt with AuthError(message)"""
        self._fail(message, AttemptStatus.REJECTED)

    def _on_timeout(self, attempt: OAuthAttempt):
        if self._attempt is not attempt:
            return
        logger.warning("[OAuth] Timed out waiting for the browser redirect")
        self._fail(TIMEOUT_MESSAGE, AttemptStatus.TIMED_OUT)

    def _fail(self, message: str, outcome: AttemptStatus):
        self.last_error = message
        attempt = self._attempt
        if attempt is not None and not attempt.future.done():
            attempt.future.set_exception(AuthError(message))
        self._cleanup(outcome)

    def _cleanup(self, outcome: Optional[AttemptStatus] = None):
        attempt, self._attempt = self._attempt, None
        if attempt is not None and attempt.timeout_handle is not None:
            attempt.timeout_handle.cancel()
        if outcome is not None and attempt is not None:
            self.last_outcome = outcome
        self.state_store.update(OAUTH_STATE_KEY, None)
