from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import Any, List, Optional, Sequence

import httpx
import pandas as pd
import polars as pl
import pyarrow as pa
import pyarrow.parquet as pq
from tqdm import tqdm

from ..config import DOWNLOAD_CHUNK_SIZE
from ..enums import TableFormat
from ..errors import (
    EmptyResultNotice,
    PartialDownloadWarning,
    SchemaMismatchError,
    TransportError,
)
from ..models import FileEntry, TableReadResult
from ...sources.downloader import downloaded_file


logger = logging.getLogger(__name__)


def empty_table(output: TableFormat, columns: Optional[Sequence[str]] = None) -> Any:
    """Return a zero-row table in the requested representation.

    When columns are known (from table metadata) they are kept, typed as null.
    """
    names = list(dict.fromkeys(columns or []))
    arrow_table = pa.table({c: pa.array([], type=pa.null()) for c in names})
    if output == TableFormat.ARROW:
        return arrow_table
    if output == TableFormat.POLARS:
        return pl.from_arrow(arrow_table)
    return pd.DataFrame(columns=names)


def _align(table: pa.Table, reference: pa.Schema, url: str) -> pa.Table:
    """Reorder table to the reference column order; reject any type difference.

    Nullability and field metadata may differ; they are reconciled by
    ``_common_schema`` before concatenation.
    """
    if set(table.column_names) != set(reference.names) or len(table.column_names) != len(
        reference.names
    ):
        raise SchemaMismatchError(
            f"Column set of {url} differs from the first file: "
            f"{sorted(table.column_names)} != {sorted(reference.names)}"
        )
    if table.column_names != reference.names:
        table = table.select(reference.names)
    for expected in reference:
        actual = table.schema.field(expected.name)
        if not actual.type.equals(expected.type):
            raise SchemaMismatchError(
                f"Column '{expected.name}' of {url} has type {actual.type}, "
                f"expected {expected.type}"
            )
    return table


def _common_schema(tables: List[pa.Table]) -> pa.Schema:
    """First file's schema, with a field nullable if any file allows nulls in it."""
    reference = tables[0].schema
    fields = [
        field.with_nullable(any(t.schema.field(i).nullable for t in tables))
        for i, field in enumerate(reference)
    ]
    return pa.schema(fields, metadata=reference.metadata)


def _combine(tables: List[pa.Table], output: TableFormat) -> Any:
    target = _common_schema(tables)
    tables = [t if t.schema.equals(target, check_metadata=True) else t.cast(target) for t in tables]
    if output == TableFormat.PANDAS:
        # row-wise concatenation, one frame per file
        return pd.concat([t.to_pandas() for t in tables], ignore_index=True)
    combined = pa.concat_tables(tables)
    if output == TableFormat.POLARS:
        return pl.from_arrow(combined)
    return combined


def materialize_files(
    files: Sequence[FileEntry],
    http_client: httpx.Client,
    *,
    output: TableFormat = TableFormat.PANDAS,
    columns: Optional[Sequence[str]] = None,
    chunk_size: int = DOWNLOAD_CHUNK_SIZE,
    show_progress: bool = False,
    temp_dir: Optional[Path] = None,
) -> TableReadResult:
    """Download, decode and concatenate Parquet files in file-list order.

    - A file that fails to download is logged, reported as a
      PartialDownloadWarning and left out of the table.
    - If every file fails the result is an empty table, not an error.
    - Files must agree on column names and types, otherwise
      SchemaMismatchError is raised. Column order follows the first file.
    - Each download lives in a temporary file removed right after decoding.

    Args:
        files: Files to read, typically already partition-filtered.
        http_client: Client used to fetch the signed URLs.
        output: Representation of the returned table.
        columns: Column names used for the empty table when nothing was read.

    Returns:
        TableReadResult with ``file_count`` and ``filtered_count`` set to
        ``len(files)``; the caller fills in pre-filter counts.
    """
    decoded: List[pa.Table] = []
    failed: List[str] = []
    reference: Optional[pa.Schema] = None

    logger.info("Downloading %d file(s)...", len(files))
    for file_entry in tqdm(
        files,
        total=len(files),
        desc=f"{'Downloading':<15}",
        unit="file",
        disable=not show_progress,
    ):
        url = file_entry.url
        try:
            with downloaded_file(
                http_client, url, chunk_size=chunk_size, temp_dir=temp_dir
            ) as path:
                table = pq.read_table(path)
        except TransportError as e:
            logger.warning("Failed to download file: %s (%s)", url.split("?", 1)[0], e)
            warnings.warn(f"Failed to download file: {url}", PartialDownloadWarning, stacklevel=2)
            failed.append(url)
            continue

        if reference is None:
            reference = table.schema
        else:
            table = _align(table, reference, url)
        decoded.append(table)

    n = len(files)
    if not decoded:
        return TableReadResult(
            table=empty_table(output, columns),
            file_count=n,
            filtered_count=n,
            failed_urls=failed,
            notice=EmptyResultNotice.ALL_FAILED if failed else EmptyResultNotice.NO_FILES,
        )
    if failed:
        logger.warning("%d of %d file(s) failed to download", len(failed), n)
    return TableReadResult(
        table=_combine(decoded, output),
        file_count=n,
        filtered_count=n,
        failed_urls=failed,
    )
