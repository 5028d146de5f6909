"""Delta Sharing client - list shares, query tables and read them into memory.

The package talks to a Delta Sharing server over HTTP, resolves table queries
into signed Parquet file URLs, optionally filters those files by partition
values, and concatenates the downloaded files into pandas, Arrow or polars
tables.
"""

__all__ = [
    "__version__",
    "DeltaSharingClient",
    "EmptyResultNotice",
    "PartialDownloadWarning",
    "TransportError",
    "MalformedResponseError",
    "SchemaMismatchError",
]

__version__ = "0.1.0"

from .client import DeltaSharingClient  # noqa: E402
from .core.errors import (  # noqa: E402
    EmptyResultNotice,
    MalformedResponseError,
    PartialDownloadWarning,
    SchemaMismatchError,
    TransportError,
)
