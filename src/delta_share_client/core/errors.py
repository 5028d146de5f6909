"""Error taxonomy for the Delta Sharing client.

Fatal conditions are exceptions deriving from ``DeltaSharingError``:
- TransportError: non-2xx status or connection failure
- MalformedResponseError: a JSON/NDJSON body that cannot be parsed
- SchemaMismatchError: downloaded files disagree on columns or types
- ProfileError: unusable profile or settings document

Recoverable conditions are not raised:
- PartialDownloadWarning: one file could not be downloaded and was skipped
- EmptyResultNotice: why a table read produced no rows
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class DeltaSharingError(Exception):
    """Base class for all client errors."""


class TransportError(DeltaSharingError):
    """Raised when the server answers with a non-2xx status or is unreachable.

    Attributes:
        status_code: HTTP status, or None when no response was received.
        body: Response body text, verbatim (empty for HEAD requests).
        url: The requested URL.
    """

    def __init__(self, status_code: Optional[int], body: str = "", url: str = "") -> None:
        self.status_code = status_code
        self.body = body
        self.url = url
        status = status_code if status_code is not None else "connection error"
        super().__init__(f"API request failed: {status} - {body}")


class MalformedResponseError(DeltaSharingError, ValueError):
    """Raised when a response body is not the JSON/NDJSON shape expected."""

    def __init__(self, message: str, line_number: Optional[int] = None) -> None:
        self.line_number = line_number
        if line_number is not None:
            message = f"{message} (line {line_number})"
        super().__init__(message)


class SchemaMismatchError(DeltaSharingError):
    """Raised when decoded files cannot be concatenated into one table."""


class ProfileError(DeltaSharingError, ValueError):
    """Raised for invalid profile files and client settings."""


class PartialDownloadWarning(UserWarning):
    """Emitted once per file that failed to download during a table read."""


class EmptyResultNotice(str, Enum):
    """Why a table read returned an empty table.

    NO_FILES: the server returned no files for the query.
    FILTERED_EMPTY: files existed but none matched the partition filter.
    ALL_FAILED: every matching file failed to download.
    """

    NO_FILES = "no_files"
    FILTERED_EMPTY = "filtered_empty"
    ALL_FAILED = "all_failed"


__all__ = [
    "DeltaSharingError",
    "TransportError",
    "MalformedResponseError",
    "SchemaMismatchError",
    "ProfileError",
    "PartialDownloadWarning",
    "EmptyResultNotice",
]
