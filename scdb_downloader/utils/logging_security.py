"""
Secure logging utilities with credential redaction
Purpose: Keep passwords and session tokens out of verbose logs
"""
import logging
import re
from typing import Any, Dict, List, Mapping, Set, Tuple, Union

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

FormData = Union[Mapping[str, Any], List[Tuple[str, Any]]]


class SecureLogger:
    """
    Redaction helpers for request data written to logs

    Features:
    - Redacts sensitive form fields (passwords, secrets)
    - Redacts CSRF fields, whose names are random 40-hex strings
    - Redacts sensitive headers (cookies)
    - Truncates long values such as HTML error pages
    """

    # Headers that should ALWAYS be redacted
    SENSITIVE_HEADERS: Set[str] = {
        'authorization',
        'cookie',
        'set-cookie',
        'proxy-authorization',
    }

    # Field names containing any of these are redacted
    SENSITIVE_PARAMS: Set[str] = {
        'password',
        'pass',
        'pwd',
        'secret',
        'token',
        'session',
        'credentials',
    }

    CSRF_FIELD_PATTERN = re.compile(r'^[a-f0-9]{40}$')

    REDACTED = '[REDACTED]'

    @classmethod
    def is_sensitive_key(cls, key: str) -> bool:
        key_lower = key.lower().strip()
        if cls.CSRF_FIELD_PATTERN.match(key_lower):
            return True
        return any(sensitive in key_lower for sensitive in cls.SENSITIVE_PARAMS)

    @classmethod
    def sanitize_params(cls, params: FormData) -> Dict[str, Any]:
        """
        Redact sensitive form fields

        Args:
            params: Form data as a mapping or list of (key, value) pairs;
                repeated keys are collected into a list

        Returns:
            Sanitized mapping safe for logging
        """
        if not params:
            return {}

        items = params.items() if isinstance(params, Mapping) else params

        sanitized: Dict[str, Any] = {}
        for key, value in items:
            if cls.is_sensitive_key(key):
                # CSRF field names are secrets too; collapse them to one key
                if cls.CSRF_FIELD_PATTERN.match(key.lower().strip()):
                    key = 'csrf_token'
                value = cls.REDACTED
            elif isinstance(value, str):
                value = cls.truncate(value)

            if key in sanitized and value != cls.REDACTED:
                existing = sanitized[key]
                if not isinstance(existing, list):
                    existing = [existing]
                existing.append(value)
                sanitized[key] = existing
            else:
                sanitized[key] = value

        return sanitized

    @classmethod
    def sanitize_headers(cls, headers: Mapping[str, Any]) -> Dict[str, Any]:
        """Remove or redact sensitive headers"""
        if not headers:
            return {}

        return {
            key: cls.REDACTED if key.lower().strip() in cls.SENSITIVE_HEADERS else str(value)
            for key, value in headers.items()
        }

    @classmethod
    def truncate(cls, text: str, max_length: int = 200) -> str:
        """Shorten long text, e.g. an HTML page returned instead of a download"""
        if len(text) > max_length:
            return text[:max_length] + '...[TRUNCATED]'
        return text


def configure_logging(verbose: bool = False) -> None:
    """
    Configure root logging for the command-line tool

    Args:
        verbose: DEBUG output for this package when True, WARNING otherwise
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger("scdb_downloader").setLevel(level)

    # Connection-level chatter from the HTTP stack is never useful here
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
