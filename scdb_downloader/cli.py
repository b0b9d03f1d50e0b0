#!/usr/bin/env python3
"""
SCDB Speed Camera Downloader

Logs in to scdb.info and downloads the Garmin fixed and mobile speed camera
databases for a chosen set of countries.

Usage:
    scdb-downloader --user NAME --pass SECRET [--countries dach,benelux] [--verbose]
    scdb-downloader --countries europe --saveconfig default
    scdb-downloader --config ~/.config/scdb/config.yml
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from . import __version__
from .config import (
    DownloaderConfig,
    get_default_config_path,
    get_settings,
    load_config_file,
    save_config_file,
)
from .exceptions import ConfigurationError, ScdbDownloaderError, UnresolvableTokenError
from .regions import CountryResolver
from .services.downloader import ScdbDownloader
from .services.http_client import create_http_client
from .utils.logging_security import configure_logging

logger = logging.getLogger(__name__)

ALL_COUNTRIES_KEYWORD = "all"

# argparse dest -> DownloaderConfig field
FLAG_FIELDS: Dict[str, str] = {
    "user": "username",
    "password": "password",
    "output": "output_dir",
    "display": "display_type",
    "iconsize": "icon_size",
    "dangerzones": "danger_zones",
    "francedanger": "france_danger_mode",
    "warningtime": "warning_time",
    "fixed": "download_fixed",
    "mobile": "download_mobile",
    "verbose": "verbose",
}

EPILOG = """\
Regions:
  {regions}

Examples:
  # Download all countries with defaults
  %(prog)s --user myuser --pass mypass

  # Download specific regions
  %(prog)s --countries "dach,benelux" --francedanger --warningtime 300

  # Use config file
  %(prog)s --config ~/.config/scdb/config.yml

Environment Variables:
  SCDB_USER     Username (alternative to --user)
  SCDB_PASS     Password (alternative to --pass)

Default config file: {default_config}
"""


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser; every option defaults to None so the
    config file can supply values the command line leaves out."""
    parser = argparse.ArgumentParser(
        prog="scdb-downloader",
        description=f"SCDB Speed Camera Downloader v{__version__}\n"
                    "Download speed camera databases from scdb.info",
        epilog=EPILOG.format(
            regions=", ".join(CountryResolver.region_names()),
            default_config=get_default_config_path(),
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    auth = parser.add_argument_group("Authentication (required)")
    auth.add_argument("--user", help="SCDB username (or use SCDB_USER env var)")
    auth.add_argument("--pass", dest="password", help="SCDB password (or use SCDB_PASS env var)")

    download = parser.add_argument_group("Download Options")
    download.add_argument("--output", help="Output directory (default: current dir)")
    download.add_argument(
        "--countries",
        help="Comma-separated country codes (NL,B,D), regions, or 'all' (default: all)",
    )
    download.add_argument(
        "--fixed", action=argparse.BooleanOptionalAction, default=None,
        help="Download fixed cameras (default: true)",
    )
    download.add_argument(
        "--mobile", action=argparse.BooleanOptionalAction, default=None,
        help="Download mobile cameras (default: true)",
    )

    camera = parser.add_argument_group("Camera Configuration")
    camera.add_argument(
        "--display", type=int,
        help="Display type 1-4: 1=Split all, 2=Split speed/red, 3=All in one, 4=Alt icon (default: 1)",
    )
    camera.add_argument(
        "--iconsize", type=int,
        help="Icon size 1-5: 1=22x22, 2=24x24, 3=32x32, 4=48x48, 5=80x80 pixels (default: 5)",
    )
    camera.add_argument(
        "--dangerzones", action=argparse.BooleanOptionalAction, default=None,
        help="Include danger zones (default: true)",
    )
    camera.add_argument(
        "--francedanger", action=argparse.BooleanOptionalAction, default=None,
        help="France: show cameras as danger zones instead of exact positions (default: false)",
    )
    camera.add_argument(
        "--warningtime", type=int,
        help="Warning time in seconds, 0=disabled (default: 0)",
    )

    config_group = parser.add_argument_group("Configuration File")
    config_group.add_argument("--config", help="Load settings from YAML file")
    config_group.add_argument(
        "--saveconfig",
        help="Save current settings to YAML file and exit ('default' for the default path)",
    )

    parser.add_argument(
        "--verbose", action=argparse.BooleanOptionalAction, default=None,
        help="Enable verbose output (default: false)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def split_countries(value: str) -> List[str]:
    """Split a comma-separated --countries value, trimming each entry."""
    return [token.strip() for token in value.split(",")]


def resolve_countries(tokens: List[str]) -> List[str]:
    """Expand country tokens; the single token 'all' selects every country.

    Raises:
        UnresolvableTokenError: For any unknown region or country code
    """
    if tokens == [ALL_COUNTRIES_KEYWORD]:
        return CountryResolver.all_country_codes()
    return CountryResolver.expand(tokens)


def build_config(args: argparse.Namespace) -> DownloaderConfig:
    """Merge defaults, config file, command line and environment.

    Raises:
        ConfigurationError: If the config file or the environment is invalid
        UnresolvableTokenError: If a country token is unknown
    """
    config = load_config_file(args.config) if args.config else DownloaderConfig()

    overrides = {
        field: getattr(args, dest)
        for dest, field in FLAG_FIELDS.items()
        if getattr(args, dest) is not None
    }
    config = config.model_copy(update=overrides)

    settings = get_settings()
    if not config.username and settings.scdb_user:
        config.username = settings.scdb_user
    if not config.password and settings.scdb_pass:
        config.password = settings.scdb_pass

    if args.countries is not None:
        tokens = split_countries(args.countries)
    elif config.countries:
        tokens = [token.strip() for token in config.countries]
    else:
        tokens = [ALL_COUNTRIES_KEYWORD]
    config.countries = resolve_countries(tokens)

    return config


def log_config_summary(config: DownloaderConfig) -> None:
    logger.info("SCDB Downloader Configuration:")
    logger.info(f"  User: {config.username}")
    logger.info(f"  Output: {config.output_dir}")
    logger.info(f"  Countries: {config.countries} ({len(config.countries)} total)")
    logger.info(f"  Display Type: {config.display_type}")
    logger.info(f"  Icon Size: {config.icon_size}")
    logger.info(f"  Warning Time: {config.warning_time} seconds")
    logger.info(f"  Danger Zones: {config.danger_zones}")
    logger.info(f"  France Danger Mode: {config.france_danger_mode}")
    logger.info(f"  Download Fixed: {config.download_fixed}")
    logger.info(f"  Download Mobile: {config.download_mobile}")
    if config.config_file:
        logger.info(f"  Config File: {config.config_file}")


def save_only(config: DownloaderConfig, target: str) -> int:
    """Handle --saveconfig: validate option ranges, write the file, exit."""
    path = get_default_config_path() if target == "default" else Path(target)

    try:
        config.validate_settings()
        save_config_file(config, path)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print(f"Configuration saved to: {path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    try:
        config = build_config(args)
    except UnresolvableTokenError as e:
        print(f"Error parsing countries: {e.message}", file=sys.stderr)
        print(
            f"\nAvailable regions: {', '.join(CountryResolver.region_names())}",
            file=sys.stderr,
        )
        return 1
    except ConfigurationError as e:
        print(f"Error loading config file {args.config}: {e.message}", file=sys.stderr)
        return 1

    configure_logging(config.verbose)

    if args.saveconfig:
        return save_only(config, args.saveconfig)

    try:
        config.validate_for_download()
    except ConfigurationError as e:
        print(f"Error: {e.message}\n", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    try:
        Path(config.output_dir).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print(f"Error creating output directory: {e}", file=sys.stderr)
        return 1

    if config.verbose:
        log_config_summary(config)

    try:
        with create_http_client(timeout=settings.timeout, verify=settings.verify_tls) as client:
            downloader = ScdbDownloader(config, client=client, base_url=settings.base_url)
            written = downloader.run()
    except ScdbDownloaderError as e:
        print(f"Download failed: {e.message}", file=sys.stderr)
        return 1

    logger.info(f"Downloads completed successfully! ({len(written)} file(s))")
    return 0


if __name__ == "__main__":
    sys.exit(main())
