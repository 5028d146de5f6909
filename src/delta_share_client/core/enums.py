"""Core enumerations used across the package."""

from __future__ import annotations

from enum import Enum


class ActionTag(str, Enum):
    """Keys that tag one NDJSON line of a metadata/query response.

    Values are the wire spelling used by the server.
    """

    PROTOCOL = "protocol"
    METADATA = "metaData"
    FILE = "file"


class TableFormat(str, Enum):
    """In-memory representations a table can be materialized into."""

    PANDAS = "pandas"
    ARROW = "arrow"
    POLARS = "polars"


__all__ = ["ActionTag", "TableFormat"]
