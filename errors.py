"""Error taxonomy shared by the session, REST, stream and bridge layers.

Every externally-facing operation converts low-level failures (``httpx``
transport errors, JSON decoding, pydantic validation) into one of these
before the error crosses a component boundary.
"""

from typing import Optional


class SpecManagerError(Exception):
    """Base class for all SpecManager host errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthError(SpecManagerError):
    """Authentication or authorization failure

    Bad credentials, missing token, OAuth error/timeout/state mismatch.
    """


class RequestError(SpecManagerError):
    """Non-2xx REST response after the single refresh-and-retry"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StreamError(SpecManagerError):
    """Transport-level failure on the event stream connection"""


class ParseError(SpecManagerError):
    """Malformed JSON or payload shape in a stream event or bridge message"""
