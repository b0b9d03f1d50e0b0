"""Custom exception hierarchy for scdb-downloader.

Library code raises these; only the command-line entry point turns them
into messages and exit codes.

Exception Hierarchy:
    ScdbDownloaderError (base)
    ├── ConfigurationError
    ├── UnresolvableTokenError
    ├── AuthenticationError
    └── DownloadError
        └── UnexpectedResponseError
"""
from __future__ import annotations

from typing import Optional, Dict, Any


class ScdbDownloaderError(Exception):
    """Base exception for all scdb-downloader errors.

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(ScdbDownloaderError):
    """Raised when settings are missing, out of range, or unreadable.

    Examples:
        - Missing username or password
        - Display type outside 1-4
        - Config file that is not valid YAML
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.field = field
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, code, details)


class UnresolvableTokenError(ScdbDownloaderError):
    """Raised when a token is neither a known region nor a known country code.

    Attributes:
        token: The literal token as supplied by the caller
    """

    def __init__(
        self,
        token: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.token = token
        details = details or {}
        details["token"] = token
        super().__init__(f"invalid country/region: {token}", code, details)


class AuthenticationError(ScdbDownloaderError):
    """Raised when logging in to SCDB fails.

    Examples:
        - Login page unreachable
        - CSRF token missing from the login form
        - Login POST answered with an unexpected status
    """
    pass


class DownloadError(ScdbDownloaderError):
    """Raised when a download request or writing its result fails."""
    pass


class UnexpectedResponseError(DownloadError):
    """Raised when the server answers a download with something other than a ZIP.

    Attributes:
        content_type: Content-Type header of the response
        body: Start of the response body, usually an HTML error page
    """

    def __init__(
        self,
        content_type: str,
        body: str = "",
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.content_type = content_type
        self.body = body
        details = details or {}
        details["content_type"] = content_type
        super().__init__(
            f"unexpected response (not a zip file), Content-Type: {content_type}, Body: {body}",
            code,
            details,
        )
