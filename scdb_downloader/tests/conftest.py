"""
Shared pytest fixtures for scdb-downloader tests.

This module provides common fixtures used across all test modules.
Import fixtures from here instead of defining them in individual test files.
"""
from __future__ import annotations

from typing import Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest

from scdb_downloader.config import DownloaderConfig, get_settings
from scdb_downloader.services.http_client import create_http_client

BASE_URL = "https://www.scdb.info"
CSRF_TOKEN = "abcdef1234567890abcdef1234567890abcdef12"
SESSION_COOKIE = "PHPSESSID=test_session_id"
ZIP_BYTES = b"PK\x03\x04mock_zip_content"

LOGIN_PAGE = f"""
<!DOCTYPE html>
<html>
<head><title>SCDB Login</title></head>
<body>
<form method="POST" action="/en/login/">
    <input type="hidden" name="{CSRF_TOKEN}" value="{CSRF_TOKEN}">
    <input type="text" name="u_name" placeholder="Username">
    <input type="password" name="u_password" placeholder="Password">
    <input type="submit" name="login_submit" value="Login">
</form>
</body>
</html>
"""

LOGIN_PAGE_WITHOUT_TOKEN = """
<html><body><form method="POST" action="/en/login/">
    <input type="text" name="u_name">
</form></body></html>
"""

ERROR_PAGE = "<html><body>Please log in to download</body></html>"


class BrokenArchiveStream(httpx.SyncByteStream):
    """Body that drops the connection after the first chunk."""

    def __iter__(self):
        yield ZIP_BYTES[:4]
        raise httpx.ReadError("connection reset by peer")


class FakeScdbServer:
    """In-process stand-in for scdb.info, served through httpx.MockTransport."""

    def __init__(self):
        self.fail_login = False
        self.fail_fixed = False
        self.fail_mobile = False
        self.omit_token = False
        self.cut_downloads = False
        self.calls: Dict[str, int] = {"login": 0, "fixed": 0, "mobile": 0}
        self.login_form: Optional[Dict[str, List[str]]] = None
        self.fixed_form: Optional[Dict[str, List[str]]] = None
        self.requests: List[httpx.Request] = []

    def set_failures(self, login: bool = False, fixed: bool = False, mobile: bool = False) -> None:
        self.fail_login = login
        self.fail_fixed = fixed
        self.fail_mobile = mobile

    @staticmethod
    def _form(request: httpx.Request) -> Dict[str, List[str]]:
        return parse_qs(request.content.decode())

    @staticmethod
    def _has_session(request: httpx.Request) -> bool:
        return SESSION_COOKIE in request.headers.get("cookie", "")

    def _archive(self, failed: bool, request: httpx.Request, content_type: str) -> httpx.Response:
        if failed or not self._has_session(request):
            return httpx.Response(200, headers={"Content-Type": "text/html"}, text=ERROR_PAGE)
        if self.cut_downloads:
            return httpx.Response(
                200, headers={"Content-Type": content_type}, stream=BrokenArchiveStream()
            )
        return httpx.Response(200, headers={"Content-Type": content_type}, content=ZIP_BYTES)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/en/login/":
            if request.method == "GET":
                page = LOGIN_PAGE_WITHOUT_TOKEN if self.omit_token else LOGIN_PAGE
                return httpx.Response(200, headers={"Content-Type": "text/html"}, text=page)

            self.calls["login"] += 1
            form = self._form(request)
            self.login_form = form
            if self.fail_login:
                return httpx.Response(401, text="Login failed")
            if form.get(CSRF_TOKEN) != [CSRF_TOKEN]:
                return httpx.Response(400, text="Invalid CSRF token")
            if not form.get("u_name") or not form.get("u_password"):
                return httpx.Response(400, text="Missing credentials")
            return httpx.Response(
                302,
                headers={"Location": "/my/", "Set-Cookie": f"{SESSION_COOKIE}; Path=/"},
            )

        if path == "/my/":
            return httpx.Response(200, headers={"Content-Type": "text/html"}, text="<html>My SCDB</html>")

        if path == "/my/downloadsection":
            self.calls["fixed"] += 1
            self.fixed_form = self._form(request)
            return self._archive(self.fail_fixed, request, "application/zip")

        if path == "/intern/download/garmin-mobile.zip":
            self.calls["mobile"] += 1
            # The real site sends this (sic) for the mobile archive
            return self._archive(self.fail_mobile, request, "application/octetstream")

        return httpx.Response(404, text="Not found")


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Isolate tests from the developer's SCDB credentials, .env file and config dir."""
    for key in ("SCDB_USER", "SCDB_PASS", "SCDB_BASE_URL", "SCDB_TIMEOUT", "SCDB_VERIFY_TLS"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ============================================================================
# HTTP Fixtures
# ============================================================================

@pytest.fixture
def fake_server() -> FakeScdbServer:
    return FakeScdbServer()


@pytest.fixture
def mock_transport(fake_server) -> httpx.MockTransport:
    return httpx.MockTransport(fake_server.handler)


@pytest.fixture
def http_client(mock_transport):
    client = create_http_client(transport=mock_transport)
    yield client
    client.close()


# ============================================================================
# Data Fixtures
# ============================================================================

@pytest.fixture
def download_config(tmp_path) -> DownloaderConfig:
    """A config that passes validate_for_download()."""
    return DownloaderConfig(
        username="testuser",
        password="testpass",
        output_dir=str(tmp_path),
        countries=["NL", "B"],
    )
