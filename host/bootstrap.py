"""Activation: build the host services and wire them together"""

import asyncio
import logging
import secrets as secrets_lib
import webbrowser
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import httpx

from api import ApiClient
from bridge.message_bridge import MessageBridge
from events import EventStreamClient
from events.stream_client import Sleep
from oauth import SessionManager
from settings import BRIDGE_ALLOWED_ORIGINS, BRIDGE_KEY, OAUTH_TIMEOUT
from utils.redact import install_log_redaction
from utils.storage import SecretStore, StateStore
from .preferences import HostPreferences
from .sidebar import SidebarHost
from .uri_handler import OAuthUriHandler

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "SpecManager is now active! Open the sidebar to get started."


@dataclass
class HostServices:
    """Process-wide singletons shared by the HTTP routes and the CLI"""
    secrets: SecretStore
    state_store: StateStore
    preferences: HostPreferences
    session: SessionManager
    api: ApiClient
    stream: EventStreamClient
    bridge: MessageBridge
    sidebar: SidebarHost
    uri_handler: OAuthUriHandler
    bridge_key: str
    allowed_origins: Tuple[str, ...] = ()


def create_services(
    secrets_file: Optional[str] = None,
    state_file: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    open_url: Callable[[str], bool] = webbrowser.open,
    oauth_timeout: float = OAUTH_TIMEOUT,
    stream_sleep: Sleep = asyncio.sleep,
    bridge_key: Optional[str] = None,
    allowed_origins: Tuple[str, ...] = BRIDGE_ALLOWED_ORIGINS,
) -> HostServices:
    """Build every service against one secret store and one state store

    Args:
        secrets_file: Override for the token file (tests use tmp paths)
        state_file: Override for the durable state file
        transport: httpx transport for all outgoing calls (tests use MockTransport)
        open_url: Browser opener for OAuth and external links
        oauth_timeout: Seconds to wait for the OAuth redirect
        stream_sleep: Sleep used between stream reconnect attempts
        bridge_key: Key the UI must present on /bridge; random per launch when omitted
        allowed_origins: Browser origins accepted on /bridge
    """
    install_log_redaction()

    secrets = SecretStore(secrets_file)
    state_store = StateStore(state_file)
    preferences = HostPreferences(state_store)
    api_url = preferences.api_url

    session = SessionManager(
        secrets,
        state_store,
        transport=transport,
        open_url=open_url,
        oauth_timeout=oauth_timeout,
    )
    api = ApiClient(session, base_url=api_url, transport=transport)
    stream = EventStreamClient(session, base_url=api_url, transport=transport, sleep=stream_sleep)
    bridge = MessageBridge()
    sidebar = SidebarHost(session, api, stream, bridge, preferences, open_url=open_url)
    uri_handler = OAuthUriHandler(session, sidebar)

    logger.debug(f"Host services created (api={api_url})")
    return HostServices(
        secrets=secrets,
        state_store=state_store,
        preferences=preferences,
        session=session,
        api=api,
        stream=stream,
        bridge=bridge,
        sidebar=sidebar,
        uri_handler=uri_handler,
        bridge_key=bridge_key or BRIDGE_KEY or secrets_lib.token_urlsafe(32),
        allowed_origins=tuple(allowed_origins),
    )


def activate(services: HostServices):
    """First activation queues a one-time welcome notification for the UI"""
    if services.preferences.mark_welcome_shown():
        logger.info("First activation, queueing welcome message")
        services.sidebar.send_notification(WELCOME_MESSAGE, "info")
