"""
Helpers for keeping credentials out of log output.
"""
import logging
import re
from typing import Dict
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

SENSITIVE_HEADERS = ('authorization', 'x-api-key', 'api-key')
SENSITIVE_QUERY_PARAMS = ('token', 'access_token', 'refresh_token', 'state')

# Libraries that log full request URLs on their own
URL_LOGGING_LIBRARIES = ('httpx', 'httpcore')

_SENSITIVE_QUERY_RE = re.compile(
    r"([?&](?:%s)=)[^&\s\"'#]+" % "|".join(SENSITIVE_QUERY_PARAMS),
    re.IGNORECASE,
)


def redact_url(url: str) -> str:
    """Replace sensitive query parameter values with [REDACTED]"""
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [
        (name, "[REDACTED]" if name.lower() in SENSITIVE_QUERY_PARAMS else value)
        for name, value in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return urlunsplit(parts._replace(query=urlencode(query, safe="[]")))


def redact_text(text: str) -> str:
    """Hide sensitive query values in any URL embedded in free text"""
    return _SENSITIVE_QUERY_RE.sub(r"\1[REDACTED]", text)


def redact_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Copy of headers with credential values hidden"""
    return {
        name: "[REDACTED]" if name.lower() in SENSITIVE_HEADERS else value
        for name, value in headers.items()
    }


class RedactingFilter(logging.Filter):
    """Rewrites records whose formatted message carries a credential in a URL"""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_text(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


_redacting_filter = RedactingFilter()


def install_log_redaction():
    """Attach the redacting filter to third-party loggers. Safe to call repeatedly."""
    for name in URL_LOGGING_LIBRARIES:
        logging.getLogger(name).addFilter(_redacting_filter)
