"""SCDB session: form login followed by the fixed and mobile camera downloads."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from ..config import DEFAULT_BASE_URL, DownloaderConfig
from ..exceptions import (
    AuthenticationError,
    DownloadError,
    ScdbDownloaderError,
    UnexpectedResponseError,
)
from ..utils.logging_security import SecureLogger
from .http_client import create_http_client

logger = logging.getLogger(__name__)

# The login form carries a hidden field whose name and value are both 40-hex strings
CSRF_TOKEN_PATTERN = re.compile(r'name="([a-f0-9]{40})" value="([a-f0-9]{40})"')

FIXED_FILENAME = "garmin.zip"
MOBILE_FILENAME = "garmin-mobile.zip"


class ScdbDownloader:
    """Downloads the Garmin speed camera archives from scdb.info.

    One instance is one session: ``login()`` stores the session cookie in the
    client, and the download methods reuse it.

    Example:
        with ScdbDownloader(config) as downloader:
            downloader.run()
    """

    def __init__(
        self,
        config: DownloaderConfig,
        client: Optional[httpx.Client] = None,
        base_url: str = DEFAULT_BASE_URL,
    ):
        """Initialize downloader.

        Args:
            config: Credentials and download options
            client: Existing client to use; one is created (and owned) otherwise
            base_url: Site root, without trailing slash
        """
        self.config = config
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self.client = client or create_http_client()

    def __enter__(self) -> ScdbDownloader:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    @property
    def login_url(self) -> str:
        return f"{self.base_url}/en/login/"

    @property
    def download_section_url(self) -> str:
        return f"{self.base_url}/my/downloadsection"

    @property
    def mobile_download_url(self) -> str:
        return f"{self.base_url}/intern/download/garmin-mobile.zip"

    def login(self) -> None:
        """Authenticate with the SCDB website.

        Raises:
            AuthenticationError: If the login page cannot be fetched, carries
                no CSRF token, or the login POST is rejected
        """
        logger.info("Logging in to SCDB...")

        try:
            response = self.client.get(self.login_url)
        except httpx.HTTPError as e:
            raise AuthenticationError(f"failed to get login page: {e}") from e

        match = CSRF_TOKEN_PATTERN.search(response.text)
        if not match:
            raise AuthenticationError("failed to find CSRF token in login page")
        token_name, token_value = match.group(1), match.group(2)
        logger.debug("Found CSRF token in login form")

        form_data = {
            token_name: token_value,
            "u_name": self.config.username,
            "u_password": self.config.password,
            "login_submit": "Login",
        }
        logger.debug(f"Login form: {SecureLogger.sanitize_params(form_data)}")

        try:
            response = self.client.post(
                self.login_url,
                data=form_data,
                headers={"Origin": self.base_url, "Referer": self.login_url},
            )
        except httpx.HTTPError as e:
            raise AuthenticationError(f"login request failed: {e}") from e

        if response.status_code not in (httpx.codes.OK, httpx.codes.FOUND):
            raise AuthenticationError(
                f"login failed with status: {response.status_code}",
                details={"status_code": response.status_code},
            )

        logger.info("Login successful!")

    def build_fixed_form(self) -> Dict[str, Any]:
        """Form fields for the fixed camera download.

        land[] holds a list; httpx sends one land[] field per country.
        """
        config = self.config
        return {
            "download_agreement_accept": "1",
            "download_wave_right_of_rescission": "1",
            "typ": str(config.display_type),
            "dangerzones": "1" if config.danger_zones else "0",
            "france_danger": "1" if config.france_danger_mode else "0",
            "vorwarnzeit": str(config.warning_time),
            "iconsize": str(config.icon_size),
            "download_start": "Download+Now",
            "land[]": list(config.countries),
        }

    def download_fixed(self) -> Path:
        """Download the fixed speed camera database.

        Returns:
            Path of the written archive
        """
        logger.info("Downloading fixed speed cameras...")
        form = self.build_fixed_form()
        logger.debug(f"Download form: {SecureLogger.sanitize_params(form)}")

        return self._post_and_save(
            self.download_section_url,
            form,
            referer=self.download_section_url,
            output_path=Path(self.config.output_dir) / FIXED_FILENAME,
        )

    def download_mobile(self) -> Path:
        """Download the mobile speed camera database.

        Returns:
            Path of the written archive
        """
        logger.info("Downloading mobile speed cameras...")

        return self._post_and_save(
            self.mobile_download_url,
            {"mobile_submit": "Download+For+Free"},
            referer=f"{self.base_url}/my/",
            output_path=Path(self.config.output_dir) / MOBILE_FILENAME,
        )

    def _post_and_save(
        self,
        url: str,
        form: Dict[str, Any],
        referer: str,
        output_path: Path,
    ) -> Path:
        headers = {"Origin": self.base_url, "Referer": referer}

        try:
            with self.client.stream("POST", url, data=form, headers=headers) as response:
                return self.save_response_to_file(response, output_path)
        except httpx.HTTPError as e:
            raise DownloadError(f"download request failed: {e}") from e

    def save_response_to_file(self, response: httpx.Response, output_path: Path) -> Path:
        """Stream a ZIP response body to output_path.

        Raises:
            UnexpectedResponseError: If the response is not a ZIP archive
            DownloadError: If the file cannot be written
            httpx.HTTPError: If the body cannot be read; the partial file is removed
        """
        content_type = response.headers.get("Content-Type", "")
        logger.debug(f"Response status: {response.status_code}, Content-Type: {content_type}")
        logger.debug(f"Response headers: {SecureLogger.sanitize_headers(response.headers)}")

        # SCDB labels archives as application/octetstream (sic) or application/zip
        if "zip" not in content_type and "octet" not in content_type:
            body = response.read().decode("utf-8", errors="replace")
            raise UnexpectedResponseError(content_type, SecureLogger.truncate(body, 500))

        written = 0
        try:
            with open(output_path, "wb") as f:
                for chunk in response.iter_bytes():
                    f.write(chunk)
                    written += len(chunk)
        except OSError as e:
            output_path.unlink(missing_ok=True)
            raise DownloadError(f"failed to save file: {e}") from e
        except httpx.HTTPError:
            # A truncated archive must not look like a finished download
            output_path.unlink(missing_ok=True)
            raise

        logger.info(f"Downloaded {written} bytes to {output_path}")
        return output_path

    def run(self) -> List[Path]:
        """Log in, then download whichever archives are enabled.

        Returns:
            Paths of the written archives

        Raises:
            AuthenticationError: "login failed: ..."
            DownloadError: "failed to download fixed/mobile cameras: ..."
        """
        try:
            self.login()
        except AuthenticationError as e:
            raise AuthenticationError(f"login failed: {e.message}", details=e.details) from e

        written: List[Path] = []
        stages = (
            (self.config.download_fixed, "fixed", self.download_fixed),
            (self.config.download_mobile, "mobile", self.download_mobile),
        )
        for enabled, name, download in stages:
            if not enabled:
                continue
            try:
                written.append(download())
            except ScdbDownloaderError as e:
                raise DownloadError(
                    f"failed to download {name} cameras: {e.message}", details=e.details
                ) from e

        return written
