"""GNSS observations and products downloader."""

__version__ = "1.8.0"
