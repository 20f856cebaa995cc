"""
Route handlers for the host server.
"""
from .bridge import router as bridge_router
from .health import router as health_router
from .oauth_callback import router as oauth_callback_router

__all__ = [
    'bridge_router',
    'health_router',
    'oauth_callback_router',
]
