"""HTTP transport, profile loading and file downloads."""

from .downloader import download_to_path, downloaded_file
from .profile import SharingProfile
from .rest_client import SharingRestClient, build_http_client

__all__ = [
    "SharingProfile",
    "SharingRestClient",
    "build_http_client",
    "download_to_path",
    "downloaded_file",
]
