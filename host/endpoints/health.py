"""
Health check endpoint.
"""
import time
from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint"""
    services = request.app.state.services
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "ui_attached": services.bridge.attached,
        "stream_connected": services.stream.is_connected(),
    }
