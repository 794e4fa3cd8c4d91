from .downloader import DownloadError, MediaDownloader

__all__ = ["DownloadError", "MediaDownloader"]
