"""Small helpers shared by the httpx based clients"""

import json
import logging
from typing import Optional

import httpx

from settings import CONNECT_TIMEOUT, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


def default_timeout() -> httpx.Timeout:
    """Timeout used for auth and REST requests"""
    return httpx.Timeout(REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT)


def bearer_headers(access_token: str) -> dict:
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {access_token}",
    }


def error_message_from_response(response: httpx.Response, *fields: str) -> Optional[str]:
    """Best-effort error message from a JSON error body

    Looks at ``fields`` in order (default: message, error) and returns the
    first non-empty string. Bodies that are not JSON objects yield None.
    """
    fields = fields or ("message", "error")
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
        logger.debug(f"Error body for status {response.status_code} is not JSON")
        return None
    if not isinstance(body, dict):
        return None
    for field in fields:
        value = body.get(field)
        if isinstance(value, str) and value:
            return value
    return None
