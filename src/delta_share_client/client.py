"""High-level Delta Sharing client.

``DeltaSharingClient`` wires the transport, the response parsers, the
partition filter and the table materializer together:

    query_table -> filter_files_by_partition -> materialize_files

Listing calls are independent and return one ``Listing`` page each.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import httpx
import pandas as pd
import pyarrow as pa

from .core.config import TABLE_VERSION_HEADER, ClientSettings
from .core.enums import TableFormat
from .core.errors import EmptyResultNotice, MalformedResponseError
from .core.models import Listing, QueryResult, Schema, Share, TableReadResult, TableRef
from .core.query import empty_table, filter_files_by_partition, materialize_files
from .core.utils import (
    all_tables_path,
    schemas_path,
    shares_path,
    table_path,
    tables_path,
)
from .ingestion import (
    parse_actions,
    parse_json,
    parse_ndjson,
    parse_schema_listing,
    parse_share_listing,
    parse_table_listing,
)
from .sources.profile import SharingProfile
from .sources.rest_client import SharingRestClient


logger = logging.getLogger(__name__)


def _page_params(max_results: Optional[int], page_token: Optional[str]) -> Dict[str, Any]:
    return {"maxResults": max_results, "pageToken": page_token}


class DeltaSharingClient:
    """Client for one Delta Sharing server.

    Args:
        endpoint: Base URL of the server, e.g.
            ``http://localhost:8080/api/delta-sharing/``.
        token: Optional bearer token.
        profile_path: Optional ``.share`` profile; its endpoint and token take
            precedence over the arguments.
        settings: Transport and download settings.
        http_client: Optional pre-configured ``httpx.Client``; the caller
            keeps ownership of it.

    Examples:
        >>> client = DeltaSharingClient("http://localhost:8080/api/delta-sharing/")
        >>> client.list_shares().to_pandas()  # doctest: +SKIP
        >>> df = client.read_table(  # doctest: +SKIP
        ...     "historical", "default", "observations",
        ...     partition_filter={"year": 2024, "month": 1},
        ... )
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        token: Optional[str] = None,
        profile_path: Optional[Union[str, Path]] = None,
        *,
        settings: Optional[ClientSettings] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        if profile_path is not None:
            profile = SharingProfile.read_from_file(profile_path)
            endpoint = profile.endpoint
            token = profile.bearer_token
        if not endpoint:
            raise ValueError("Either 'endpoint' or 'profile_path' must be provided")
        self.settings = settings or ClientSettings()
        self._rest = SharingRestClient(
            endpoint, token, settings=self.settings, http_client=http_client
        )

    @classmethod
    def from_profile(
        cls, profile: SharingProfile, *, settings: Optional[ClientSettings] = None
    ) -> "DeltaSharingClient":
        return cls(profile.endpoint, profile.bearer_token, settings=settings)

    @property
    def endpoint(self) -> str:
        return self._rest.endpoint

    @property
    def authenticated(self) -> bool:
        return self._rest.token is not None

    def __repr__(self) -> str:
        return f"DeltaSharingClient(endpoint={self.endpoint!r}, authenticated={self.authenticated})"

    def close(self) -> None:
        self._rest.close()

    def __enter__(self) -> "DeltaSharingClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def list_shares(
        self, max_results: Optional[int] = None, page_token: Optional[str] = None
    ) -> Listing[Share]:
        """List one page of shares visible to the caller."""
        response = self._rest.get(shares_path(), _page_params(max_results, page_token))
        return parse_share_listing(parse_json(response.text))

    def list_schemas(
        self, share: str, max_results: Optional[int] = None, page_token: Optional[str] = None
    ) -> Listing[Schema]:
        """List one page of schemas in a share."""
        response = self._rest.get(schemas_path(share), _page_params(max_results, page_token))
        return parse_schema_listing(parse_json(response.text), share)

    def list_tables(
        self,
        share: str,
        schema: str,
        max_results: Optional[int] = None,
        page_token: Optional[str] = None,
    ) -> Listing[TableRef]:
        """List one page of tables in a schema."""
        response = self._rest.get(
            tables_path(share, schema), _page_params(max_results, page_token)
        )
        return parse_table_listing(parse_json(response.text), share, schema)

    def list_all_tables(
        self, share: str, max_results: Optional[int] = None, page_token: Optional[str] = None
    ) -> Listing[TableRef]:
        """List one page of tables across all schemas of a share."""
        response = self._rest.get(all_tables_path(share), _page_params(max_results, page_token))
        return parse_table_listing(parse_json(response.text), share)

    # ------------------------------------------------------------------
    # Table metadata and queries
    # ------------------------------------------------------------------

    def get_table_metadata(self, share: str, schema: str, table: str) -> QueryResult:
        """Return the protocol and metadata of a table (no files)."""
        response = self._rest.get(table_path(share, schema, table, "metadata"))
        result = parse_actions(parse_ndjson(response.text))
        return dataclasses.replace(result, files=[])

    def get_table_version(self, share: str, schema: str, table: str) -> Optional[int]:
        """Return the current table version, or None if the server omits it."""
        response = self._rest.head(table_path(share, schema, table, "version"))
        header = response.headers.get(TABLE_VERSION_HEADER)
        if header is None:
            return None
        try:
            return int(header)
        except ValueError as e:
            raise MalformedResponseError(
                f"Invalid {TABLE_VERSION_HEADER} header: {header!r}"
            ) from e

    def query_table(
        self,
        share: str,
        schema: str,
        table: str,
        predicate_hints: Optional[List[str]] = None,
        limit_hint: Optional[int] = None,
        version: Optional[int] = None,
    ) -> QueryResult:
        """Resolve a table query into protocol, metadata and signed file URLs."""
        body: Dict[str, Any] = {}
        if predicate_hints is not None:
            body["predicateHints"] = list(predicate_hints)
        if limit_hint is not None:
            body["limitHint"] = limit_hint
        if version is not None:
            body["version"] = version
        response = self._rest.post(table_path(share, schema, table, "query"), body)
        return parse_actions(parse_ndjson(response.text))

    # ------------------------------------------------------------------
    # Reading tables
    # ------------------------------------------------------------------

    def read(
        self,
        share: str,
        schema: str,
        table: str,
        *,
        partition_filter: Optional[Mapping[str, Any]] = None,
        predicate_hints: Optional[List[str]] = None,
        limit_hint: Optional[int] = None,
        version: Optional[int] = None,
        output: TableFormat = TableFormat.PANDAS,
        show_progress: Optional[bool] = None,
    ) -> TableReadResult:
        """Query, filter and materialize a table, keeping the bookkeeping.

        ``partition_filter`` is applied client-side to the signed URLs; it is
        useful when the server does not honor predicate hints.
        """
        query = self.query_table(
            share,
            schema,
            table,
            predicate_hints=predicate_hints,
            limit_hint=limit_hint,
            version=version,
        )
        columns = query.metadata.column_names() if query.metadata else []

        if not query.files:
            logger.info("Table %s.%s.%s has no files", share, schema, table)
            return TableReadResult(
                table=empty_table(output, columns), notice=EmptyResultNotice.NO_FILES
            )

        files = filter_files_by_partition(query.files, partition_filter)
        if not files:
            logger.info("No files match the partition filter")
            return TableReadResult(
                table=empty_table(output, columns),
                file_count=len(query.files),
                filtered_count=0,
                notice=EmptyResultNotice.FILTERED_EMPTY,
            )

        result = materialize_files(
            files,
            self._rest.http_client,
            output=output,
            columns=columns,
            chunk_size=self.settings.download_chunk_size,
            show_progress=(
                self.settings.show_progress if show_progress is None else show_progress
            ),
        )
        result.file_count = len(query.files)
        return result

    def read_table(
        self,
        share: str,
        schema: str,
        table: str,
        partition_filter: Optional[Mapping[str, Any]] = None,
        predicate_hints: Optional[List[str]] = None,
        limit_hint: Optional[int] = None,
        version: Optional[int] = None,
    ) -> pd.DataFrame:
        """Read a table into a pandas DataFrame."""
        return self.read(
            share,
            schema,
            table,
            partition_filter=partition_filter,
            predicate_hints=predicate_hints,
            limit_hint=limit_hint,
            version=version,
        ).table

    def read_table_arrow(
        self,
        share: str,
        schema: str,
        table: str,
        partition_filter: Optional[Mapping[str, Any]] = None,
        predicate_hints: Optional[List[str]] = None,
        limit_hint: Optional[int] = None,
        version: Optional[int] = None,
    ) -> pa.Table:
        """Read a table into a pyarrow Table; better suited to large tables."""
        return self.read(
            share,
            schema,
            table,
            partition_filter=partition_filter,
            predicate_hints=predicate_hints,
            limit_hint=limit_hint,
            version=version,
            output=TableFormat.ARROW,
        ).table

    def read_table_polars(
        self,
        share: str,
        schema: str,
        table: str,
        partition_filter: Optional[Mapping[str, Any]] = None,
        predicate_hints: Optional[List[str]] = None,
        limit_hint: Optional[int] = None,
        version: Optional[int] = None,
    ):
        """Read a table into a polars DataFrame."""
        return self.read(
            share,
            schema,
            table,
            partition_filter=partition_filter,
            predicate_hints=predicate_hints,
            limit_hint=limit_hint,
            version=version,
            output=TableFormat.POLARS,
        ).table
