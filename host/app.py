"""
FastAPI application initialization and configuration.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .bootstrap import HostServices, activate, create_services
from .endpoints import bridge_router, health_router, oauth_callback_router
from .middleware import log_requests_middleware

logger = logging.getLogger(__name__)


def create_app(services: Optional[HostServices] = None) -> FastAPI:
    """Build the host application around one set of services"""
    services = services or create_services()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        activate(services)
        yield
        await services.sidebar.shutdown()

    app = FastAPI(title="SpecManager Host", version="0.1.0", lifespan=lifespan)
    app.state.services = services

    # Add middleware
    app.middleware("http")(log_requests_middleware)

    # Register routers
    app.include_router(health_router)
    app.include_router(oauth_callback_router)
    app.include_router(bridge_router)

    logger.debug("FastAPI application initialized with all routers and middleware")
    return app
