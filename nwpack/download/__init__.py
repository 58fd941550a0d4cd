"""下载模块"""

from .downloader import (
    BaseDownloader,
    CodecDownloader,
    DownloadError,
    RuntimeDownloader,
    resolve_version,
)

__all__ = [
    "BaseDownloader",
    "CodecDownloader",
    "DownloadError",
    "RuntimeDownloader",
    "resolve_version",
]
