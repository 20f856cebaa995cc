"""Shared utilities package for the SpecManager host"""

from .storage import JsonFileStore, SecretStore, StateStore
from .redact import install_log_redaction, redact_headers, redact_text, redact_url
from .http import bearer_headers, default_timeout, error_message_from_response

__all__ = [
    "JsonFileStore",
    "SecretStore",
    "StateStore",
    "install_log_redaction",
    "redact_headers",
    "redact_text",
    "redact_url",
    "bearer_headers",
    "default_timeout",
    "error_message_from_response",
]
