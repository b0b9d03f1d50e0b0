"""Services for talking to scdb.info."""
from .downloader import ScdbDownloader
from .http_client import create_http_client

__all__ = [
    'ScdbDownloader',
    'create_http_client',
]
