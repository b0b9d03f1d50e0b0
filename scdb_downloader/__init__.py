"""scdb-downloader: fetch the Garmin speed camera databases from scdb.info."""

__version__ = "1.2.0"
