import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List

import pydantic
import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.scdb.info"
DEFAULT_TIMEOUT = 300.0


class Settings(BaseSettings):
    """Environment configuration (credentials and connection settings)."""

    scdb_user: str | None = Field(default=None, alias="SCDB_USER")
    scdb_pass: str | None = Field(default=None, alias="SCDB_PASS")
    base_url: str = Field(default=DEFAULT_BASE_URL, alias="SCDB_BASE_URL")
    timeout: float = Field(
        default=DEFAULT_TIMEOUT,
        alias="SCDB_TIMEOUT",
        description="Request timeout in seconds; downloads can take minutes",
    )
    verify_tls: bool = Field(
        default=False,
        alias="SCDB_VERIFY_TLS",
        description="Verify the server certificate (off: scdb.info has served unverifiable certificates)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,  # Treat empty strings as not set
    )


@lru_cache
def get_settings() -> Settings:
    """
    Read settings from the environment and .env.

    Raises:
        ConfigurationError: If an SCDB_* variable has an invalid value
    """
    try:
        return Settings()
    except pydantic.ValidationError as e:
        raise ConfigurationError(f"invalid environment settings: {e}") from e


class DownloaderConfig(BaseModel):
    """Download options; field names are the YAML config file keys."""

    model_config = ConfigDict(extra="ignore")

    username: str = ""
    password: str = ""
    output_dir: str = "."
    countries: List[str] = Field(default_factory=list)
    # 1=Split all, 2=Split speed/red, 3=All in one, 4=All in one (alt icon)
    display_type: int = 1
    danger_zones: bool = True
    # True=display as danger zone, False=display correct position
    france_danger_mode: bool = False
    # 1=22x22, 2=24x24, 3=32x32, 4=48x48, 5=80x80
    icon_size: int = 5
    # Seconds, 0 = disabled
    warning_time: int = 0
    download_fixed: bool = True
    download_mobile: bool = True
    verbose: bool = False
    config_file: str | None = Field(default=None, exclude=True)

    def validate_settings(self) -> None:
        """Check option ranges. Credentials and countries are not required."""
        if not 1 <= self.display_type <= 4:
            raise ConfigurationError(
                f"display type must be 1-4 (got {self.display_type})", field="display_type"
            )
        if not 1 <= self.icon_size <= 5:
            raise ConfigurationError(
                f"icon size must be 1-5 (got {self.icon_size})", field="icon_size"
            )
        if self.warning_time < 0:
            raise ConfigurationError(
                f"warning time cannot be negative (got {self.warning_time})", field="warning_time"
            )

    def validate_for_download(self) -> None:
        """Check everything a download run needs.

        Raises:
            ConfigurationError: naming the first offending field
        """
        if not self.username or not self.password:
            raise ConfigurationError(
                "username and password are required\n"
                "Provide via --user/--pass flags or SCDB_USER/SCDB_PASS environment variables",
                field="username" if not self.username else "password",
            )

        self.validate_settings()

        if not self.download_fixed and not self.download_mobile:
            raise ConfigurationError(
                "at least one of --fixed or --mobile must be enabled", field="download_fixed"
            )

        if not self.countries:
            raise ConfigurationError("no countries specified", field="countries")


def load_config_file(path: str | Path) -> DownloaderConfig:
    """
    Load a DownloaderConfig from a YAML file.

    Keys missing from the file keep their defaults; unknown keys are ignored.

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"cannot read config file: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"error parsing config file: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"error parsing config file: expected a mapping, got {type(data).__name__}"
        )

    try:
        config = DownloaderConfig.model_validate(data)
    except pydantic.ValidationError as e:
        raise ConfigurationError(f"error parsing config file: {e}") from e

    config.config_file = str(path)
    logger.debug(f"Loaded config from {path}")
    return config


def save_config_file(config: DownloaderConfig, path: str | Path) -> None:
    """Write config as YAML, creating parent directories; the file is private (0600)."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        data = yaml.safe_dump(config.model_dump(), sort_keys=False)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.chmod(path, 0o600)
    except OSError as e:
        raise ConfigurationError(f"failed to write config file {path}: {e}") from e

    logger.debug(f"Saved config to {path}")


def get_default_config_path() -> Path:
    """
    Return the default config file location.

    $XDG_CONFIG_HOME/scdb/config.yml if set, else ~/.config/scdb/config.yml;
    ./scdb-config.yml if the home directory cannot be determined.
    """
    try:
        home = Path.home()
    except RuntimeError:
        return Path("./scdb-config.yml")

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "scdb" / "config.yml"

    return home / ".config" / "scdb" / "config.yml"
