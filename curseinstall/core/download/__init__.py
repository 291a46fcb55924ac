"""Download package - concurrent file downloads"""

from .downloader import ModDownloader

__all__ = [
    "ModDownloader"
]
