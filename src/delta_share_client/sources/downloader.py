from __future__ import annotations

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import httpx

from ..core.config import DOWNLOAD_CHUNK_SIZE, TEMP_FILE_SUFFIX
from ..core.errors import TransportError


logger = logging.getLogger(__name__)


def _redact(url: str) -> str:
    # signed URLs carry credentials in the query string
    return url.split("?", 1)[0]


def download_to_path(
    client: httpx.Client,
    url: str,
    output_path: Path,
    *,
    chunk_size: int = DOWNLOAD_CHUNK_SIZE,
) -> int:
    """Stream url into output_path and return the number of bytes written.

    Signed file URLs are pre-authorized, so no bearer header is added here;
    the caller's client is used as-is.

    Raises:
        TransportError: on a non-2xx status or a connection failure.
    """
    written = 0
    try:
        with client.stream("GET", url) as r:
            if r.is_error:
                r.read()
                raise TransportError(r.status_code, r.text, url)
            with open(output_path, "wb") as f:
                for chunk in r.iter_bytes(chunk_size=chunk_size):
                    if chunk:
                        f.write(chunk)
                        written += len(chunk)
    except httpx.HTTPError as e:
        raise TransportError(None, str(e), url) from e
    logger.debug("Saved %s → %s (%d bytes)", _redact(url), output_path, written)
    return written


@contextmanager
def downloaded_file(
    client: httpx.Client,
    url: str,
    *,
    chunk_size: int = DOWNLOAD_CHUNK_SIZE,
    suffix: str = TEMP_FILE_SUFFIX,
    temp_dir: Optional[Path] = None,
) -> Iterator[Path]:
    """Download url into a temporary file that exists only inside the block.

    The file is removed when the block exits, whether the download, or the
    caller's work on the file, succeeded or raised.

    Examples:
        >>> with downloaded_file(client, url) as path:  # doctest: +SKIP
        ...     table = pq.read_table(path)
    """
    fd, name = tempfile.mkstemp(suffix=suffix, dir=str(temp_dir) if temp_dir else None)
    os.close(fd)
    tmp_path = Path(name)
    try:
        download_to_path(client, url, tmp_path, chunk_size=chunk_size)
        yield tmp_path
    finally:
        tmp_path.unlink(missing_ok=True)
