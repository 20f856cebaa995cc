"""
SpecManager host package: sidebar command dispatch, OAuth redirect entry and
the FastAPI/uvicorn shell the UI surface connects to.
"""
from .app import create_app
from .bootstrap import HostServices, activate, create_services
from .preferences import HostPreferences
from .server import HostServer
from .sidebar import SidebarHost
from .uri_handler import OAuthUriHandler

__version__ = "0.1.0"

__all__ = [
    'create_app',
    'HostServices',
    'activate',
    'create_services',
    'HostPreferences',
    'HostServer',
    'SidebarHost',
    'OAuthUriHandler',
]
