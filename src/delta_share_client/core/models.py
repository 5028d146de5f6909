"""Protocol data models.

This module defines the records built from server responses:
- Share, Schema, TableRef: listing records
- Protocol, TableMetadata, FileEntry: NDJSON actions of a table query
- QueryResult: protocol, metadata and files of one query/metadata call
- Listing: one page of listing records with a fixed column set
- TableReadResult: a materialized table plus what happened to its files

All records are created fresh from a response and never mutated.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Mapping, Optional, Tuple, TypeVar

import pandas as pd

from .errors import EmptyResultNotice, MalformedResponseError


def _require(data: Mapping[str, Any], key: str, kind: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise MalformedResponseError(f"{kind} record is missing '{key}'")
    return value


@dataclass(frozen=True)
class Share:
    """A top-level share on the server."""

    name: str

    COLUMNS = ("name",)


@dataclass(frozen=True)
class Schema:
    """A schema within a share."""

    name: str
    share: str

    COLUMNS = ("name", "share")


@dataclass(frozen=True)
class TableRef:
    """A table addressed by share, schema and name."""

    name: str
    share: str
    schema: str

    COLUMNS = ("name", "share", "schema")

    @property
    def full_name(self) -> str:
        return f"{self.share}.{self.schema}.{self.name}"


@dataclass(frozen=True)
class Protocol:
    """Minimum reader capability required by a table.

    Extra keys sent by the server are kept verbatim in ``raw``.
    """

    min_reader_version: int
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Protocol":
        if not isinstance(data, Mapping):
            raise MalformedResponseError("protocol record must be an object")
        try:
            version = int(_require(data, "minReaderVersion", "protocol"))
        except (TypeError, ValueError) as e:
            raise MalformedResponseError(f"protocol minReaderVersion is not an integer: {e}") from e
        return cls(min_reader_version=version, raw=dict(data))


@dataclass(frozen=True)
class TableMetadata:
    """Schema and partitioning of a table at one version."""

    id: Optional[str]
    format: Dict[str, Any] = field(default_factory=dict)
    schema_string: Optional[str] = None
    partition_columns: Tuple[str, ...] = ()
    configuration: Dict[str, Any] = field(default_factory=dict)
    version: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TableMetadata":
        if not isinstance(data, Mapping):
            raise MalformedResponseError("metaData record must be an object")
        version = data.get("version")
        try:
            version = int(version) if version is not None else None
        except (TypeError, ValueError) as e:
            raise MalformedResponseError(f"metaData version is not an integer: {e}") from e
        return cls(
            id=data.get("id"),
            format=dict(data.get("format") or {}),
            schema_string=data.get("schemaString"),
            partition_columns=tuple(str(c) for c in data.get("partitionColumns") or ()),
            configuration=dict(data.get("configuration") or {}),
            version=version,
            name=data.get("name"),
            description=data.get("description"),
        )

    def column_names(self) -> List[str]:
        """Column names declared by the Delta schema string, [] when unknown."""
        if not self.schema_string:
            return []
        try:
            schema = json.loads(self.schema_string)
        except (TypeError, ValueError):
            return []
        if not isinstance(schema, dict):
            return []
        return [
            str(f["name"])
            for f in schema.get("fields") or []
            if isinstance(f, dict) and f.get("name")
        ]


@dataclass(frozen=True)
class FileEntry:
    """One data file of a table, reachable through a signed URL."""

    url: str
    id: Optional[str] = None
    partition_values: Dict[str, str] = field(default_factory=dict)
    size: Optional[int] = None
    stats: Optional[str] = None
    version: Optional[int] = None
    timestamp: Optional[int] = None
    expiration_timestamp: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FileEntry":
        if not isinstance(data, Mapping):
            raise MalformedResponseError("file record must be an object")
        url = _require(data, "url", "file")
        size = data.get("size")
        try:
            size = int(size) if size is not None else None
        except (TypeError, ValueError) as e:
            raise MalformedResponseError(f"file size is not an integer: {e}") from e
        return cls(
            url=str(url),
            id=data.get("id"),
            partition_values={
                str(k): ("" if v is None else str(v))
                for k, v in (data.get("partitionValues") or {}).items()
            },
            size=size,
            stats=data.get("stats"),
            version=data.get("version"),
            timestamp=data.get("timestamp"),
            expiration_timestamp=data.get("expirationTimestamp"),
        )


@dataclass(frozen=True)
class QueryResult:
    """Protocol, metadata and files resolved from one NDJSON response."""

    protocol: Optional[Protocol] = None
    metadata: Optional[TableMetadata] = None
    files: List[FileEntry] = field(default_factory=list)

    @property
    def urls(self) -> List[str]:
        return [f.url for f in self.files]


RecordT = TypeVar("RecordT", Share, Schema, TableRef)


@dataclass(frozen=True)
class Listing(Generic[RecordT]):
    """One page of listing records.

    ``columns`` is fixed per record kind so an empty page still describes its
    shape. ``next_page_token`` is passed through from the server unexamined.
    """

    items: List[RecordT]
    columns: Tuple[str, ...]
    next_page_token: Optional[str] = None

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    @property
    def names(self) -> List[str]:
        return [item.name for item in self.items]

    def to_pandas(self) -> pd.DataFrame:
        """Return the records as a frame with exactly ``columns``."""
        if not self.items:
            return pd.DataFrame({c: pd.Series(dtype="object") for c in self.columns})
        rows = [{c: getattr(item, c) for c in self.columns} for item in self.items]
        return pd.DataFrame(rows, columns=list(self.columns))


@dataclass
class TableReadResult:
    """A materialized table and the bookkeeping of how it was assembled.

    Attributes:
        table: pandas DataFrame, pyarrow Table or polars DataFrame.
        file_count: Files returned by the server before partition filtering.
        filtered_count: Files left after partition filtering.
        failed_urls: URLs whose download failed; their rows are missing.
        notice: Why the table is empty, None when at least one file was read.
    """

    table: Any
    file_count: int = 0
    filtered_count: int = 0
    failed_urls: List[str] = field(default_factory=list)
    notice: Optional[EmptyResultNotice] = None

    @property
    def dropped_count(self) -> int:
        return len(self.failed_urls)

    @property
    def is_partial(self) -> bool:
        return bool(self.failed_urls) and self.notice is None
